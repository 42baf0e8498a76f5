"""Centralized constants for mneme.

Tuning defaults and model parameters live here so every layer imports
from a single source of truth. All of them can be overridden through
configuration.
"""

# ---------- Scheduling defaults ----------
DEFAULT_REQUEST_RETENTION = 0.9
DEFAULT_MAXIMUM_INTERVAL = 365  # days
DEFAULT_LEARNING_STEPS = (1.0, 10.0)  # minutes
DEFAULT_RELEARNING_STEPS = (10.0,)  # minutes

# ---------- Memory model ----------
# Power-law forgetting curve R = (1 + FACTOR * t / S) ** DECAY
DECAY = -1.0
FACTOR = 1.0 / 9.0

# w0-w3: initial stability per rating, w4-w7: difficulty,
# w8-w10: recall stability, w11-w14: forget stability,
# w15/w16: hard penalty / easy bonus, w17/w18: same-day stability.
DEFAULT_WEIGHTS = (
    0.4,
    0.6,
    2.4,
    5.8,
    4.93,
    0.94,
    0.86,
    0.01,
    1.49,
    0.14,
    0.94,
    2.18,
    0.05,
    0.34,
    1.26,
    0.29,
    2.61,
    0.51655,
    0.6621,
)
WEIGHT_COUNT = len(DEFAULT_WEIGHTS)

MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 10.0
MIN_STABILITY = 0.1

# ---------- Fuzz ----------
FUZZ_MIN_INTERVAL = 2.5  # days; shorter intervals are never fuzzed
# (start, end, factor): the allowed spread grows by `factor` per day in range
FUZZ_RANGES = (
    (2.5, 7.0, 0.15),
    (7.0, 20.0, 0.1),
    (20.0, float("inf"), 0.05),
)

# ---------- Time ----------
SECONDS_PER_DAY = 86400.0
MINUTES_PER_DAY = 1440.0

# ---------- Persisted field contract ----------
CARD_FIELDS = (
    "due",
    "stability",
    "difficulty",
    "elapsed_days",
    "scheduled_days",
    "reps",
    "lapses",
    "learning_steps",
    "state",
    "last_review",
)
FLOAT_FIELDS = ("stability", "difficulty", "elapsed_days", "scheduled_days")
INT_FIELDS = ("reps", "lapses", "learning_steps")

# ---------- Item source ----------
FLASHCARD_SEPARATOR = "::"
KEY_HASH_LEN = 12
