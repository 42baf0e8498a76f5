"""
Review session controller.

Walks a learner through a fixed snapshot of due entries:

    Idle --start--> ShowingHidden --reveal--> ShowingRevealed --rate--> ShowingHidden | Complete
    any --cancel--> Idle

The only suspension point is the store's `save`, awaited once per rated
entry. The cursor advances before the save is awaited, and a failed save
is reported in the StepResult instead of stalling or rolling back the
session.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime, timezone
from enum import Enum

from mneme.application.scheduler import Scheduler
from mneme.domain.errors import SessionStateError
from mneme.domain.models import (
    Card,
    Rating,
    ReviewStats,
    SaveOutcome,
    SessionEntry,
    StepResult,
)
from mneme.domain.ports import CardStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class SessionPhase(str, Enum):
    IDLE = "idle"
    SHOWING_HIDDEN = "showing_hidden"
    SHOWING_REVEALED = "showing_revealed"
    COMPLETE = "complete"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionController:
    """
    Stateful, single-threaded orchestrator for one practice run.

    Owned by its caller; nothing survives between sessions.
    """

    def __init__(self, scheduler: Scheduler, store: CardStore, clock: Clock | None = None):
        self._scheduler = scheduler
        self._store = store
        self._clock = clock or _utcnow
        self._entries: tuple[SessionEntry, ...] = ()
        self._index = 0
        self._phase = SessionPhase.IDLE
        self._stats = ReviewStats()
        self._results: list[StepResult] = []
        self._failed: list[SaveOutcome] = []

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def total(self) -> int:
        return len(self._entries)

    @property
    def total_reviewed(self) -> int:
        return self._stats.total

    @property
    def results(self) -> list[StepResult]:
        return list(self._results)

    @property
    def failed_saves(self) -> list[SaveOutcome]:
        """Every save that did not succeed during this session, oldest first."""
        return list(self._failed)

    def position(self) -> tuple[int, int]:
        """(index of the current entry, number of entries)."""
        return self._index, len(self._entries)

    def is_revealed(self) -> bool:
        return self._phase is SessionPhase.SHOWING_REVEALED

    def is_complete(self) -> bool:
        return self._phase is SessionPhase.COMPLETE

    def current(self) -> SessionEntry | SessionPhase:
        """
        The entry being shown, or SessionPhase.COMPLETE once the queue is done.

        Raises:
            SessionStateError: if no session is running.
        """
        if self._phase is SessionPhase.IDLE:
            raise SessionStateError("No session in progress")
        if self._phase is SessionPhase.COMPLETE:
            return SessionPhase.COMPLETE
        return self._entries[self._index]

    def stats(self) -> ReviewStats:
        """
        Per-rating counts so far.

        Raises:
            SessionStateError: before the first answer has been revealed.
        """
        nothing_shown = self._phase is SessionPhase.SHOWING_HIDDEN and self._index == 0
        if self._phase is SessionPhase.IDLE or nothing_shown:
            raise SessionStateError(f"Stats are not available while {self._phase.value}")
        return replace(self._stats)

    def preview(self) -> dict[Rating, Card]:
        """Projected card per rating for the current entry, evaluated now."""
        entry = self.current()
        if not isinstance(entry, SessionEntry):
            raise SessionStateError("Session is complete")
        return self._scheduler.preview(entry.card, self._clock())

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, entries: Iterable[SessionEntry]) -> None:
        if self._phase is not SessionPhase.IDLE:
            raise SessionStateError(f"Cannot start a session while {self._phase.value}")
        self._entries = tuple(entries)
        self._index = 0
        self._stats = ReviewStats()
        self._results = []
        self._failed = []
        if self._entries:
            self._phase = SessionPhase.SHOWING_HIDDEN
        else:
            self._phase = SessionPhase.COMPLETE
        logger.info(f"[session] Started with {len(self._entries)} due entries")

    def reveal(self) -> None:
        if self._phase is SessionPhase.SHOWING_HIDDEN:
            self._phase = SessionPhase.SHOWING_REVEALED

    async def rate(self, rating: Rating | int | str) -> StepResult:
        """
        Rate the revealed entry, advance, and persist the new card.

        Raises:
            InvalidRating: if `rating` is not Again, Hard, Good or Easy.
            SessionStateError: unless the current answer is revealed.
        """
        rating = Rating.coerce(rating)
        if self._phase is not SessionPhase.SHOWING_REVEALED:
            raise SessionStateError(f"Cannot rate while {self._phase.value}")

        entry = self._entries[self._index]
        card = self._scheduler.apply(entry.card, rating, self._clock())

        self._stats.record(rating)
        self._index += 1
        complete = self._index >= len(self._entries)
        self._phase = SessionPhase.COMPLETE if complete else SessionPhase.SHOWING_HIDDEN
        index = self._index

        # A cancel()/start() during the save swaps these lists out; the
        # outcome stays with the session that issued it.
        results, failed = self._results, self._failed
        save = await self._persist(entry.key, card)
        if not save.ok:
            failed.append(save)

        result = StepResult(
            key=entry.key,
            rating=rating,
            previous=entry.card,
            card=card,
            save=save,
            index=index,
            complete=complete,
        )
        results.append(result)
        if complete and results is self._results:
            logger.info(f"[session] Complete: {self._stats.as_dict()}")
        return result

    def cancel(self) -> None:
        """
        Drop the queue and return to Idle.

        Saves already issued are kept. failed_saves stays readable until the
        next start().
        """
        if self._phase is not SessionPhase.IDLE:
            logger.info(f"[session] Cancelled at {self._index}/{len(self._entries)}")
        self._entries = ()
        self._index = 0
        self._stats = ReviewStats()
        self._phase = SessionPhase.IDLE

    async def _persist(self, key: str, card: Card) -> SaveOutcome:
        try:
            ok = await self._store.save(key, card)
        except Exception as e:
            outcome = SaveOutcome(key=key, ok=False, error=str(e) or type(e).__name__)
        else:
            outcome = SaveOutcome(
                key=key, ok=bool(ok), error=None if ok else "store rejected the write"
            )

        if not outcome.ok:
            logger.warning(f"[session] Failed to save {key}: {outcome.error}")
        return outcome


def start_session(
    entries: Iterable[SessionEntry],
    scheduler: Scheduler,
    store: CardStore,
    clock: Clock | None = None,
) -> SessionController:
    """Build a controller and start it on `entries`."""
    controller = SessionController(scheduler, store, clock=clock)
    controller.start(entries)
    return controller
