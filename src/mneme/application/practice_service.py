"""
Practice Service: application layer orchestrator.

Connects an ItemSource and a CardStore to the scheduling core:
    candidates -> tracked cards -> due set -> session entries -> SessionController
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from mneme.application.due_collector import as_utc, collect_due
from mneme.application.scheduler import Scheduler
from mneme.application.session import Clock, SessionController, start_session
from mneme.domain.models import Card, GenerateReport, SessionEntry, State
from mneme.domain.ports import CardStore, ItemSource

logger = logging.getLogger(__name__)


@dataclass
class CardOverview:
    """One dashboard row: a tracked card with derived metrics."""

    key: str
    payload: Any
    state: State
    due: datetime
    last_review: datetime | None
    reps: int
    lapses: int
    stability: float
    difficulty: float
    retrievability: float
    is_due: bool


class PracticeService:
    """
    Application service for building and running practice sessions.

    Follows Dependency Inversion: depends on the CardStore and ItemSource
    abstractions, not concrete adapters.
    """

    def __init__(
        self,
        source: ItemSource,
        store: CardStore,
        scheduler: Scheduler | None = None,
        clock: Clock | None = None,
    ):
        self._source = source
        self._store = store
        self._scheduler = scheduler or Scheduler()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def _tracked(
        self, scope: Iterable[str] | None
    ) -> tuple[dict[str, Card], dict[str, Any]]:
        """Cards and payloads for every candidate that has a card, in source order."""
        cards: dict[str, Card] = {}
        payloads: dict[str, Any] = {}
        for candidate in await self._source.list_candidates(scope):
            card = candidate.card
            if card is None:
                card = await self._store.load(candidate.key)
            if card is None:
                logger.debug(f"[practice] {candidate.key} is untracked, skipping")
                continue
            cards[candidate.key] = card
            payloads[candidate.key] = candidate.payload
        return cards, payloads

    async def collect_entries(
        self, scope: Iterable[str] | None = None, now: datetime | None = None
    ) -> list[SessionEntry]:
        """
        Build the ordered queue of due entries.

        Args:
            scope: Passed to the ItemSource to restrict candidates.
            now: Reference time; defaults to the service clock.

        Returns:
            SessionEntry list, oldest due first.
        """
        now = now or self._clock()
        cards, payloads = await self._tracked(scope)
        keys = collect_due(cards, now)
        logger.info(f"[practice] {len(keys)} of {len(cards)} tracked cards are due")
        return [SessionEntry(key=k, card=cards[k], payload=payloads[k]) for k in keys]

    async def start(
        self, scope: Iterable[str] | None = None, now: datetime | None = None
    ) -> SessionController:
        entries = await self.collect_entries(scope, now)
        return start_session(entries, self._scheduler, self._store, clock=self._clock)

    async def generate(self, now: datetime | None = None) -> GenerateReport:
        """
        Create an empty New card for every candidate that has none yet.

        Existing cards are never touched.
        """
        now = now or self._clock()
        report = GenerateReport()
        missing: dict[str, Card] = {}
        for candidate in await self._source.list_candidates():
            report.scanned += 1
            if candidate.card is not None or await self._store.load(candidate.key) is not None:
                report.existing += 1
                continue
            missing[candidate.key] = Card.new(now)

        if missing:
            report.failed = await self._store.save_many(missing)
        report.created = len(missing) - len(report.failed)

        logger.info(
            f"[practice] Found {report.scanned} flashcards: {report.created} new, "
            f"{report.existing} already tracked"
        )
        return report

    async def overview(
        self, scope: Iterable[str] | None = None, now: datetime | None = None
    ) -> list[CardOverview]:
        """Every tracked card with its current retrievability, soonest due first."""
        now = as_utc(now or self._clock())
        cards, payloads = await self._tracked(scope)
        rows = [
            CardOverview(
                key=key,
                payload=payloads[key],
                state=card.state,
                due=as_utc(card.due),
                last_review=as_utc(card.last_review) if card.last_review else None,
                reps=card.reps,
                lapses=card.lapses,
                stability=card.stability,
                difficulty=card.difficulty,
                retrievability=self._scheduler.retrievability(card, now),
                is_due=as_utc(card.due) <= now,
            )
            for key, card in cards.items()
        ]
        rows.sort(key=lambda row: row.due)
        return rows
