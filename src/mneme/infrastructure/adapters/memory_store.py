"""In-memory CardStore, used for tests and for embedding mneme in other tools."""

from mneme.domain.models import Card
from mneme.domain.ports import CardStore
from mneme.infrastructure.serialization import card_from_record, card_to_record


class InMemoryCardStore(CardStore):
    """
    Dict-backed store.

    Cards are kept as field-contract records, so whatever a caller loads
    went through the same conversion a file-backed store would apply.
    """

    def __init__(self, records: dict[str, dict] | None = None):
        self.records: dict[str, dict] = dict(records or {})
        self.save_count = 0

    async def load(self, key: str) -> Card | None:
        record = self.records.get(key)
        if record is None:
            return None
        return card_from_record(record, key)

    async def save(self, key: str, card: Card) -> bool:
        self.records[key] = card_to_record(card)
        self.save_count += 1
        return True

    async def keys(self) -> list[str]:
        return list(self.records)
