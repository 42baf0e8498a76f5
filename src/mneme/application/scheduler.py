"""
Scheduler: review-phase state machine on top of the memory model.

Cards move New -> Learning -> Review, and Review <-> Relearning on lapses.
Learning phases use sub-day steps (minutes); Review uses whole-day
intervals sized from stability and the requested retention.

`apply` is deterministic for a given (card, rating, now, settings, fuzz
provider): the fuzz sample is derived from a seed built out of the inputs,
never from ambient global randomness.
"""

import logging
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone

from mneme.application import memory_model as mm
from mneme.application.config import SchedulerSettings
from mneme.domain.constants import MINUTES_PER_DAY, SECONDS_PER_DAY
from mneme.domain.models import Card, Rating, State

logger = logging.getLogger(__name__)

FuzzProvider = Callable[[str], float]


class SeededFuzz:
    """
    Default fuzz provider: a uniform [0, 1) sample seeded by the given string.

    The same seed always yields the same sample, so schedules are
    reproducible. `salt` lets a deployment decorrelate its jitter from
    other installations.
    """

    def __init__(self, salt: str = ""):
        self.salt = salt

    def __call__(self, seed: str) -> float:
        return random.Random(f"{self.salt}{seed}").random()


@dataclass(frozen=True)
class _Transition:
    state: State
    stability: float
    difficulty: float
    learning_steps: int
    lapses: int
    delay: timedelta


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _days_between(start: datetime, end: datetime) -> float:
    return (_as_utc(end) - _as_utc(start)).total_seconds() / SECONDS_PER_DAY


def _hard_delay(steps: Sequence[float], index: int) -> float:
    """Minutes to wait after Hard on learning step `index`."""
    if index == 0 and len(steps) == 1:
        return min(steps[0] * 1.5, steps[0] + MINUTES_PER_DAY)
    if index == 0:
        return (steps[0] + steps[1]) / 2
    return steps[index]


def _step_after(
    steps: Sequence[float], index: int, rating: Rating
) -> tuple[int, float] | None:
    """
    Next (step index, delay in minutes) within a step sequence.

    Returns None when the card graduates out of the sequence.
    """
    if not steps or rating == Rating.EASY:
        return None
    if rating == Rating.AGAIN:
        return 0, steps[0]
    if rating == Rating.HARD:
        return index, _hard_delay(steps, index)
    if index + 1 < len(steps):
        return index + 1, steps[index + 1]
    return None


class Scheduler:
    """
    Computes the next state of a card for a rating.

    Args:
        settings: Tuning knobs; defaults to SchedulerSettings().
        fuzz: Callable mapping a seed string to a uniform [0, 1) sample.
    """

    def __init__(
        self,
        settings: SchedulerSettings | None = None,
        fuzz: FuzzProvider | None = None,
    ):
        self.settings = settings or SchedulerSettings()
        self._w = tuple(self.settings.weights)
        self._fuzz = fuzz or SeededFuzz(self.settings.fuzz_seed)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def preview(self, card: Card, now: datetime) -> dict[Rating, Card]:
        """Outcome of every rating for `card` at `now`. `card` is untouched."""
        return {rating: self.apply(card, rating, now) for rating in Rating}

    def apply(self, card: Card, rating: Rating | int | str, now: datetime) -> Card:
        """
        Return the card that results from rating `card` at `now`.

        Raises:
            InvalidRating: if `rating` is not Again, Hard, Good or Easy.
        """
        rating = Rating.coerce(rating)
        now = _as_utc(now)

        if card.last_review is not None:
            elapsed = max(0.0, _days_between(card.last_review, now))
            scheduled = max(0.0, _days_between(card.last_review, card.due))
        else:
            elapsed = 0.0
            scheduled = 0.0

        if card.state is State.NEW:
            step = self._from_new(card, rating, now, elapsed)
        elif card.state is State.REVIEW:
            step = self._from_review(card, rating, now, elapsed)
        else:
            step = self._from_learning(card, rating, now, elapsed)

        result = replace(
            card,
            due=now + step.delay,
            stability=step.stability,
            difficulty=step.difficulty,
            elapsed_days=elapsed,
            scheduled_days=scheduled,
            reps=card.reps + 1,
            lapses=step.lapses,
            learning_steps=step.learning_steps,
            state=step.state,
            last_review=now,
        )
        logger.debug(
            f"[scheduler] {card.state.value} --{rating.name}--> {result.state.value} "
            f"S={result.stability:.3f} D={result.difficulty:.3f} due={result.due.isoformat()}"
        )
        return result

    def retrievability(self, card: Card, now: datetime) -> float:
        """Current modeled recall probability; 0.0 for cards never reviewed."""
        if card.state is State.NEW or card.last_review is None:
            return 0.0
        return mm.retrievability(_days_between(card.last_review, now), card.stability)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _from_new(self, card: Card, rating: Rating, now: datetime, elapsed: float) -> _Transition:
        stability = mm.initial_stability(rating, self._w)
        difficulty = mm.initial_difficulty(rating, self._w)
        steps = self._steps(State.LEARNING)

        if not steps:
            # Long-term only: keep the four outcomes ordered like Review does.
            seed = self._seed(card, now)
            intervals = self._ordered_intervals(
                {r: mm.initial_stability(r, self._w) for r in Rating}, elapsed, seed
            )
            return _Transition(
                State.REVIEW, stability, difficulty, 0, card.lapses,
                timedelta(days=intervals[rating]),
            )

        return self._through_steps(
            card, rating, now, elapsed, steps, State.LEARNING, stability, difficulty, card.lapses
        )

    def _from_learning(
        self, card: Card, rating: Rating, now: datetime, elapsed: float
    ) -> _Transition:
        memory = self._memory(card)
        if memory is None:
            stability = mm.initial_stability(rating, self._w)
            difficulty = mm.initial_difficulty(rating, self._w)
        else:
            s, d = memory
            difficulty = mm.next_difficulty(d, rating, self._w)
            if self.settings.enable_short_term and elapsed < 1.0:
                stability = mm.short_term_stability(s, rating, self._w)
            else:
                r = mm.retrievability(elapsed, s)
                if rating == Rating.AGAIN:
                    stability = mm.forget_stability(d, s, r, self._w)
                else:
                    stability = mm.recall_stability(d, s, r, rating, self._w)

        steps = self._steps(card.state)
        return self._through_steps(
            card, rating, now, elapsed, steps, card.state, stability, difficulty, card.lapses
        )

    def _from_review(
        self, card: Card, rating: Rating, now: datetime, elapsed: float
    ) -> _Transition:
        memory = self._memory(card)
        if memory is None:
            # A Review card without usable memory state is treated like a first review.
            s = mm.initial_stability(Rating.GOOD, self._w)
            d = mm.initial_difficulty(Rating.GOOD, self._w)
        else:
            s, d = memory
        r = mm.retrievability(elapsed, s)
        difficulty = mm.next_difficulty(d, rating, self._w)

        if rating == Rating.AGAIN:
            stability = mm.forget_stability(d, s, r, self._w)
            lapses = card.lapses + 1
            steps = self._steps(State.RELEARNING)
            if steps:
                return _Transition(
                    State.RELEARNING, stability, difficulty, 0, lapses,
                    timedelta(minutes=steps[0]),
                )
            days = self._day_interval(stability, elapsed, self._seed(card, now))
            return _Transition(State.REVIEW, stability, difficulty, 0, lapses, timedelta(days=days))

        stabilities = {
            r_: mm.recall_stability(d, s, r, r_, self._w)
            for r_ in (Rating.HARD, Rating.GOOD, Rating.EASY)
        }
        intervals = self._ordered_intervals(stabilities, elapsed, self._seed(card, now))
        return _Transition(
            State.REVIEW, stabilities[rating], difficulty, 0, card.lapses,
            timedelta(days=intervals[rating]),
        )

    def _through_steps(
        self,
        card: Card,
        rating: Rating,
        now: datetime,
        elapsed: float,
        steps: Sequence[float],
        phase: State,
        stability: float,
        difficulty: float,
        lapses: int,
    ) -> _Transition:
        index = min(card.learning_steps, len(steps) - 1) if steps else 0
        if card.state is State.NEW:
            index = 0
        nxt = _step_after(steps, index, rating)
        if nxt is None:
            days = self._day_interval(stability, elapsed, self._seed(card, now))
            return _Transition(State.REVIEW, stability, difficulty, 0, lapses, timedelta(days=days))
        next_index, minutes = nxt
        return _Transition(phase, stability, difficulty, next_index, lapses, timedelta(minutes=minutes))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _steps(self, phase: State) -> list[float]:
        if not self.settings.enable_short_term:
            return []
        if phase is State.RELEARNING:
            return self.settings.relearning_steps
        return self.settings.learning_steps

    @staticmethod
    def _memory(card: Card) -> tuple[float, float] | None:
        if card.stability <= 0 or card.difficulty <= 0:
            return None
        return card.stability, mm.clamp_difficulty(card.difficulty)

    @staticmethod
    def _seed(card: Card, now: datetime) -> str:
        return f"{now.isoformat()}_{card.reps}_{card.difficulty * card.stability!r}"

    def _day_interval(self, stability: float, elapsed: float, seed: str) -> int:
        maximum = self.settings.maximum_interval
        days = mm.next_interval(stability, self.settings.request_retention, maximum)
        if self.settings.enable_fuzz:
            days = mm.fuzz_interval(days, elapsed, maximum, self._fuzz(seed))
        return days

    def _ordered_intervals(
        self, stabilities: dict[Rating, float], elapsed: float, seed: str
    ) -> dict[Rating, int]:
        """
        Day intervals per rating with Again <= Hard <= Good < Easy enforced
        (up to the maximum interval).
        """
        maximum = self.settings.maximum_interval
        raw = {r: self._day_interval(s, elapsed, seed) for r, s in stabilities.items()}
        out: dict[Rating, int] = {}
        if Rating.AGAIN in raw:
            out[Rating.AGAIN] = min(raw[Rating.AGAIN], raw[Rating.HARD])
        out[Rating.HARD] = min(raw[Rating.HARD], raw[Rating.GOOD])
        out[Rating.GOOD] = min(max(raw[Rating.GOOD], out[Rating.HARD] + 1), maximum)
        out[Rating.EASY] = min(max(raw[Rating.EASY], out[Rating.GOOD] + 1), maximum)
        return out
