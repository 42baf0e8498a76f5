"""
Memory model: stability, difficulty and retrievability formulas.

This is a pure computation module with no I/O. Every function takes the
weight vector explicitly so alternative parameter sets can be plugged in
from configuration.

Notation: S = stability (days), D = difficulty [1, 10], R = retrievability,
G = rating (1-4), t = elapsed days.
"""

import math
from collections.abc import Sequence

from mneme.domain.constants import (
    DECAY,
    DEFAULT_WEIGHTS,
    FACTOR,
    FUZZ_MIN_INTERVAL,
    FUZZ_RANGES,
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
    MIN_STABILITY,
)
from mneme.domain.models import Rating

Weights = Sequence[float]


def clamp_difficulty(d: float) -> float:
    return min(max(d, MIN_DIFFICULTY), MAX_DIFFICULTY)


def retrievability(elapsed_days: float, stability: float) -> float:
    """
    Probability of recall after `elapsed_days`, on a power-law curve.

    R(t, S) = (1 + t / (9 S)) ^ -1, so R(S, S) == 0.9.
    """
    if stability <= 0:
        return 0.0
    if elapsed_days <= 0:
        return 1.0
    return (1.0 + FACTOR * elapsed_days / stability) ** DECAY


def initial_stability(rating: Rating, w: Weights = DEFAULT_WEIGHTS) -> float:
    return max(w[rating - 1], MIN_STABILITY)


def initial_difficulty(rating: Rating, w: Weights = DEFAULT_WEIGHTS) -> float:
    return clamp_difficulty(w[4] - (rating - 3) * w[5])


def next_difficulty(d: float, rating: Rating, w: Weights = DEFAULT_WEIGHTS) -> float:
    """
    Shift difficulty by rating, then pull it back toward the Good baseline.

    Again/Hard raise difficulty, Easy lowers it; the w7 mean reversion keeps
    long runs of one rating from pinning D at a bound.
    """
    shifted = d - w[6] * (rating - 3)
    reverted = w[7] * initial_difficulty(Rating.GOOD, w) + (1 - w[7]) * shifted
    return clamp_difficulty(reverted)


def recall_stability(
    d: float, s: float, r: float, rating: Rating, w: Weights = DEFAULT_WEIGHTS
) -> float:
    """Stability after a successful review (Hard, Good or Easy)."""
    hard_penalty = w[15] if rating == Rating.HARD else 1.0
    easy_bonus = w[16] if rating == Rating.EASY else 1.0
    growth = (
        math.exp(w[8])
        * (11 - d)
        * s ** -w[9]
        * (math.exp(w[10] * (1 - r)) - 1)
        * hard_penalty
        * easy_bonus
    )
    return max(s * (1 + growth), MIN_STABILITY)


def forget_stability(d: float, s: float, r: float, w: Weights = DEFAULT_WEIGHTS) -> float:
    """Stability after a lapse. Never exceeds the stability before the lapse."""
    post_lapse = (
        w[11] * d ** -w[12] * ((s + 1) ** w[13] - 1) * math.exp(w[14] * (1 - r))
    )
    return max(min(post_lapse, s), MIN_STABILITY)


def short_term_stability(s: float, rating: Rating, w: Weights = DEFAULT_WEIGHTS) -> float:
    """Stability after a same-day review during (re)learning."""
    return max(s * math.exp(w[17] * (rating - 3 + w[18])), MIN_STABILITY)


def raw_interval(stability: float, request_retention: float) -> float:
    """Days until R falls to `request_retention`: 9 S (1 / r - 1)."""
    return stability / FACTOR * (request_retention ** (1 / DECAY) - 1)


def next_interval(stability: float, request_retention: float, maximum_interval: int) -> int:
    """Whole-day interval for a stability, clamped to [1, maximum_interval]."""
    days = round(raw_interval(stability, request_retention))
    return min(max(days, 1), maximum_interval)


def fuzz_range(interval: float, elapsed_days: float, maximum_interval: int) -> tuple[int, int]:
    """
    Inclusive [low, high] bounds a fuzzed interval may take.

    The spread widens piecewise with the interval length (see FUZZ_RANGES).
    The lower bound never drops below 2 days nor, when the interval extends
    past the time already elapsed, below elapsed_days + 1.
    """
    delta = 1.0
    for start, end, factor in FUZZ_RANGES:
        delta += factor * max(min(interval, end) - start, 0.0)

    interval = min(interval, maximum_interval)
    low = max(2, round(interval - delta))
    high = min(round(interval + delta), maximum_interval)
    if interval > elapsed_days:
        low = max(low, math.floor(elapsed_days) + 1)
    low = min(low, high)
    return low, high


def fuzz_interval(
    interval: int, elapsed_days: float, maximum_interval: int, u: float
) -> int:
    """
    Jitter an interval using a uniform sample `u` in [0, 1).

    Intervals shorter than FUZZ_MIN_INTERVAL are returned unchanged.
    """
    if interval < FUZZ_MIN_INTERVAL:
        return interval
    low, high = fuzz_range(interval, elapsed_days, maximum_interval)
    fuzzed = math.floor(u * (high - low + 1) + low)
    return min(fuzzed, maximum_interval)
