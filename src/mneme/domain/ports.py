"""
Ports (interfaces) for card persistence and item discovery.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping

from .models import Candidate, Card


class CardStore(ABC):
    """
    Port for loading and saving scheduling records.

    Implementations:
        - InMemoryCardStore: dict-backed, for tests and embedding.
        - YamlCardStore: one YAML document on disk.

    Saves must be idempotent last-write-wins overwrites.
    """

    @abstractmethod
    async def load(self, key: str) -> Card | None:
        """
        Fetch the card stored under key.

        Returns:
            The card, or None when the key is not tracked.
        """
        pass

    @abstractmethod
    async def save(self, key: str, card: Card) -> bool:
        """
        Persist card under key, replacing any previous record.

        Returns:
            True on success, False when the write failed.
        """
        pass

    async def save_many(self, cards: Mapping[str, Card]) -> list[str]:
        """
        Persist several cards at once.

        Stores with whole-file writes should override this to write once.

        Returns:
            Keys that could not be saved.
        """
        failed = []
        for key, card in cards.items():
            if not await self.save(key, card):
                failed.append(key)
        return failed

    @abstractmethod
    async def keys(self) -> list[str]:
        """Return every tracked key."""
        pass


class ItemSource(ABC):
    """
    Port for enumerating reviewable items.

    Implementations:
        - MarkdownItemSource: `question :: answer` lines in markdown files.
    """

    @abstractmethod
    async def list_candidates(self, scope: Iterable[str] | None = None) -> list[Candidate]:
        """
        List items, optionally restricted to a scope.

        Args:
            scope: Source-specific filter (e.g. file paths); None means everything.

        Returns:
            Candidates in a stable order. `card` is set only when the source
            itself carries scheduling data.
        """
        pass
