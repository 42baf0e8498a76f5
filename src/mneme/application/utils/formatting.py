"""Human-readable formatting of intervals and dates for the presentation layer."""

from datetime import datetime

from mneme.domain.models import Card


def format_interval(card: Card) -> str:
    """
    Compact label for how far ahead a card is scheduled: "10m", "3h", "4d", "2mo", "1.5y".

    Measured from the card's last review to its due time.
    """
    if card.last_review is None:
        return "now"

    minutes = round((card.due - card.last_review).total_seconds() / 60)
    if minutes < 1:
        return "< 1m"
    if minutes < 60:
        return f"{minutes}m"
    if minutes < 60 * 24:
        return f"{round(minutes / 60)}h"

    days = round(minutes / (60 * 24))
    if days < 30:
        return f"{days}d"
    if days < 365:
        return f"{round(days / 30)}mo"
    return f"{round(days / 365, 1)}y"


def format_due_date(moment: datetime) -> str:
    """e.g. "Feb 10, 2026"."""
    return f"{moment:%b} {moment.day}, {moment:%Y}"


def format_timestamp(moment: datetime) -> str:
    """e.g. "Tue Feb 10, 2026 16:00"."""
    return f"{moment:%a} {format_due_date(moment)} {moment:%H:%M}"
