"""
Domain models for scheduling and review sessions.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

from .errors import InvalidRating


class State(str, Enum):
    """Review phase of a card."""

    NEW = "New"
    LEARNING = "Learning"
    REVIEW = "Review"
    RELEARNING = "Relearning"


class Rating(IntEnum):
    """Recall quality reported by the learner, ordered worst to best."""

    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4

    @classmethod
    def coerce(cls, value: Any) -> "Rating":
        """
        Convert a Rating, an int 1-4, or a rating name into a Rating.

        Raises:
            InvalidRating: for anything else.
        """
        if isinstance(value, Rating):
            return value
        if isinstance(value, bool):
            raise InvalidRating(f"Invalid rating: {value!r}")
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise InvalidRating(f"Invalid rating: {value!r}") from None
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls.coerce(int(text))
            try:
                return cls[text.upper()]
            except KeyError:
                raise InvalidRating(f"Invalid rating: {value!r}") from None
        raise InvalidRating(f"Invalid rating: {value!r}")

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class Card:
    """
    Scheduling record for one item.

    Attributes:
        due: When the next review is warranted (timezone-aware, UTC).
        stability: Days until recall probability decays to the target retention.
        difficulty: Intrinsic difficulty in [1, 10]; meaningful once reps > 0.
        elapsed_days: Days between the previous review and the latest one.
        scheduled_days: Span the previous schedule allowed before the latest review.
        reps: Number of reviews applied.
        lapses: Number of times a Review card was forgotten.
        learning_steps: Index of the current (re)learning step.
        state: Review phase.
        last_review: Time of the latest review, None for new cards.
    """

    due: datetime
    stability: float = 0.0
    difficulty: float = 0.0
    elapsed_days: float = 0.0
    scheduled_days: float = 0.0
    reps: int = 0
    lapses: int = 0
    learning_steps: int = 0
    state: State = State.NEW
    last_review: datetime | None = None

    @classmethod
    def new(cls, now: datetime) -> "Card":
        """Create an empty card that is due immediately."""
        return cls(due=now)

    @property
    def is_new(self) -> bool:
        return self.state is State.NEW


@dataclass(frozen=True)
class Flashcard:
    """Question/answer payload shown to the learner."""

    question: str
    answer: str
    source: str | None = None


@dataclass(frozen=True)
class Candidate:
    """An item offered by an ItemSource, with its card if the source has one."""

    key: str
    payload: Any
    card: Card | None = None


@dataclass(frozen=True)
class SessionEntry:
    """One item queued for review in a session."""

    key: str
    card: Card
    payload: Any = None


@dataclass
class ReviewStats:
    """Per-rating counters for a session."""

    again: int = 0
    hard: int = 0
    good: int = 0
    easy: int = 0

    def record(self, rating: Rating) -> None:
        setattr(self, rating.label, getattr(self, rating.label) + 1)

    @property
    def total(self) -> int:
        return self.again + self.hard + self.good + self.easy

    def as_dict(self) -> dict[str, int]:
        return {
            "again": self.again,
            "hard": self.hard,
            "good": self.good,
            "easy": self.easy,
            "total": self.total,
        }


@dataclass(frozen=True)
class SaveOutcome:
    """Result of asking the store to persist a card."""

    key: str
    ok: bool
    error: str | None = None


@dataclass(frozen=True)
class StepResult:
    """What happened when one entry was rated."""

    key: str
    rating: Rating
    previous: Card
    card: Card
    save: SaveOutcome
    index: int  # cursor after the step
    complete: bool

    @property
    def persisted(self) -> bool:
        return self.save.ok


@dataclass
class GenerateReport:
    """Counts from initialising cards for untracked items."""

    scanned: int = 0
    created: int = 0
    existing: int = 0
    failed: list[str] = field(default_factory=list)
