# Domain Package
from .errors import InvalidRating, MnemeError, SessionStateError, StoreError
from .models import (
    Candidate,
    Card,
    Flashcard,
    GenerateReport,
    Rating,
    ReviewStats,
    SaveOutcome,
    SessionEntry,
    State,
    StepResult,
)
from .ports import CardStore, ItemSource

__all__ = [
    "Candidate",
    "Card",
    "CardStore",
    "Flashcard",
    "GenerateReport",
    "InvalidRating",
    "ItemSource",
    "MnemeError",
    "Rating",
    "ReviewStats",
    "SaveOutcome",
    "SessionEntry",
    "SessionStateError",
    "State",
    "StepResult",
    "StoreError",
]
