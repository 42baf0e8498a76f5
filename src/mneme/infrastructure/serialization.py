"""
Card <-> record conversion for the persisted field contract.

Records are flat mappings holding exactly CARD_FIELDS:
timestamps as ISO-8601 strings (UTC, microsecond precision), memory
parameters as floats, counters as ints and `state` by name.

Reading is forgiving: a malformed field falls back to a safe default
(numbers to 0, state to New, due to the epoch, last_review to None) and
the fallback is logged, so one corrupt record never aborts a collection
pass.
"""

import logging
import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from mneme.domain.constants import CARD_FIELDS, FLOAT_FIELDS, INT_FIELDS
from mneme.domain.models import Card, State

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Numeric codes used by older records
_STATE_CODES = {0: State.NEW, 1: State.LEARNING, 2: State.REVIEW, 3: State.RELEARNING}
_STATE_NAMES = {s.value.lower(): s for s in State}


def format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string (or datetime) into an aware UTC datetime; None if unparsable."""
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def card_to_record(card: Card) -> dict[str, Any]:
    return {
        "due": format_timestamp(card.due),
        "stability": float(card.stability),
        "difficulty": float(card.difficulty),
        "elapsed_days": float(card.elapsed_days),
        "scheduled_days": float(card.scheduled_days),
        "reps": int(card.reps),
        "lapses": int(card.lapses),
        "learning_steps": int(card.learning_steps),
        "state": card.state.value,
        "last_review": format_timestamp(card.last_review) if card.last_review else None,
    }


def card_from_record(record: Mapping[str, Any], key: str = "?") -> Card:
    """Build a Card from a stored record, degrading malformed fields to defaults."""
    unknown = set(record) - set(CARD_FIELDS)
    if unknown:
        logger.debug(f"[serialization] {key}: ignoring unknown fields {sorted(unknown)}")

    values: dict[str, Any] = {}
    for name in FLOAT_FIELDS:
        values[name] = _float_field(record.get(name), key, name)
    for name in INT_FIELDS:
        values[name] = _int_field(record.get(name), key, name)

    state = _state_field(record.get("state"), key)

    due = parse_timestamp(record.get("due"))
    if due is None:
        logger.warning(f"[serialization] {key}: bad due {record.get('due')!r}, using epoch")
        due = EPOCH

    raw_last = record.get("last_review")
    last_review = parse_timestamp(raw_last)
    if last_review is None and raw_last not in (None, ""):
        logger.warning(f"[serialization] {key}: bad last_review {raw_last!r}, dropping it")

    return Card(due=due, state=state, last_review=last_review, **values)


def _float_field(value: Any, key: str, name: str) -> float:
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning(f"[serialization] {key}: bad {name} {value!r}, using 0")
        return 0.0
    if not math.isfinite(number):
        logger.warning(f"[serialization] {key}: non-finite {name}, using 0")
        return 0.0
    return number


def _int_field(value: Any, key: str, name: str) -> int:
    number = _float_field(value, key, name)
    if number < 0 or number != int(number):
        logger.warning(f"[serialization] {key}: bad {name} {value!r}, using 0")
        return 0
    return int(number)


def _state_field(value: Any, key: str) -> State:
    if isinstance(value, State):
        return value
    if isinstance(value, int) and not isinstance(value, bool) and value in _STATE_CODES:
        return _STATE_CODES[value]
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit() and int(text) in _STATE_CODES:
            return _STATE_CODES[int(text)]
        if text.lower() in _STATE_NAMES:
            return _STATE_NAMES[text.lower()]
    logger.warning(f"[serialization] {key}: bad state {value!r}, using New")
    return State.NEW
