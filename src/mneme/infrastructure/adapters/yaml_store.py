"""
YAML-file CardStore.

The whole store is one YAML mapping of key -> record. Every save rewrites
the file through a temporary sibling and an atomic replace, so a crash
mid-write leaves the previous version intact. A rewrite costs O(records),
so bulk updates go through save_many, which writes once per batch.
"""

import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from mneme.domain.errors import StoreError
from mneme.domain.models import Card
from mneme.domain.ports import CardStore
from mneme.infrastructure.serialization import card_from_record, card_to_record

logger = logging.getLogger(__name__)


class YamlCardStore(CardStore):
    def __init__(self, path: Path):
        self.path = Path(path)
        self._records: dict[str, dict[str, Any]] | None = None

    def _read(self) -> dict[str, dict[str, Any]]:
        if self._records is not None:
            return self._records

        if not self.path.exists():
            self._records = {}
            return self._records

        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f"Cannot read card store {self.path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise StoreError(f"Card store {self.path} must contain a mapping")

        records: dict[str, dict[str, Any]] = {}
        for key, record in data.items():
            if isinstance(record, dict):
                records[str(key)] = record
            else:
                logger.warning(f"[yaml_store] Skipping non-mapping record for {key!r}")
        self._records = records
        return records

    def _write(self, records: dict[str, dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        text = yaml.safe_dump(records, sort_keys=True, allow_unicode=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    async def load(self, key: str) -> Card | None:
        record = self._read().get(key)
        if record is None:
            return None
        return card_from_record(record, key)

    async def save(self, key: str, card: Card) -> bool:
        return not await self.save_many({key: card})

    async def save_many(self, cards: Mapping[str, Card]) -> list[str]:
        """Merge all cards into the document and rewrite the file once."""
        if not cards:
            return []
        records = dict(self._read())
        for key, card in cards.items():
            records[key] = card_to_record(card)
        try:
            self._write(records)
        except OSError as e:
            logger.warning(f"[yaml_store] Failed to write {self.path}: {e}")
            return list(cards)
        self._records = records
        return []

    async def keys(self) -> list[str]:
        return list(self._read())
