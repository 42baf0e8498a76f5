from datetime import datetime, timedelta, timezone

import pytest

from mneme.application.utils.formatting import (
    format_due_date,
    format_interval,
    format_timestamp,
)
from mneme.domain.models import Card

REVIEWED = datetime(2026, 2, 10, 16, 0, tzinfo=timezone.utc)


def _scheduled(delta):
    return Card(due=REVIEWED + delta, last_review=REVIEWED)


@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(seconds=20), "< 1m"),
        (timedelta(minutes=10), "10m"),
        (timedelta(minutes=90), "2h"),
        (timedelta(hours=5), "5h"),
        (timedelta(days=4), "4d"),
        (timedelta(days=60), "2mo"),
        (timedelta(days=365 + 182), "1.5y"),
    ],
)
def test_format_interval(delta, expected):
    assert format_interval(_scheduled(delta)) == expected


def test_new_card_interval():
    assert format_interval(Card.new(REVIEWED)) == "now"


def test_format_due_date():
    assert format_due_date(REVIEWED) == "Feb 10, 2026"
    assert format_due_date(datetime(2026, 3, 1)) == "Mar 1, 2026"


def test_format_timestamp():
    assert format_timestamp(REVIEWED) == "Tue Feb 10, 2026 16:00"
