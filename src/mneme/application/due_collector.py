"""
Due-set collection: which tracked items should be reviewed now, and in
what order.

Pure functions; cards are never mutated.
"""

from collections.abc import Collection, Mapping
from datetime import datetime, timezone
from typing import TypeVar

from mneme.domain.models import Card

K = TypeVar("K")


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)


def collect_due(
    cards: Mapping[K, Card],
    now: datetime,
    allow: Collection[K] | None = None,
) -> list[K]:
    """
    Keys whose card is due at or before `now`, oldest due first.

    Args:
        cards: key -> Card; iteration order is the tie-breaker.
        now: Reference time.
        allow: If given, only these keys are considered.

    Returns:
        Keys sorted ascending by due; cards due at the same instant keep
        their input order.
    """
    now = as_utc(now)
    due = [
        key
        for key, card in cards.items()
        if (allow is None or key in allow) and as_utc(card.due) <= now
    ]
    # Stable sort: ties keep input order.
    return sorted(due, key=lambda key: as_utc(cards[key].due))


def count_due(
    cards: Mapping[K, Card],
    now: datetime,
    allow: Collection[K] | None = None,
) -> int:
    return len(collect_due(cards, now, allow))
