"""Centralized constants for the cadence scheduler.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Time ----------
MS_PER_MINUTE = 60 * 1000
MS_PER_DAY = 24 * 60 * MS_PER_MINUTE

# ---------- Session ----------
UNDO_HISTORY_LIMIT = 20
ESTIMATED_SECONDS_PER_CARD = 30
DEFAULT_TIMEZONE = "UTC"

# ---------- Step fallbacks ----------
FALLBACK_LEARNING_STEP = 1  # minutes
FALLBACK_RELEARNING_STEP = 10  # minutes

# ---------- Scheduler settings ----------
DEFAULT_NEW_CARDS_PER_DAY = 20
DEFAULT_MAX_REVIEWS_PER_DAY = 200  # 0 = unlimited
DEFAULT_LEARNING_STEPS = (1, 10)  # minutes
DEFAULT_RELEARNING_STEPS = (10, 1440)  # minutes
DEFAULT_GRADUATING_INTERVAL = 1  # days
DEFAULT_EASY_INTERVAL = 4  # days
DEFAULT_STARTING_EASE = 2.5
DEFAULT_MINIMUM_EASE = 1.3
DEFAULT_LAPSE_EASE_PENALTY = 0.2
DEFAULT_EASY_EASE_BONUS = 0.15
DEFAULT_HARD_INTERVAL_FACTOR = 1.2
DEFAULT_EASY_INTERVAL_FACTOR = 1.3
DEFAULT_LAPSE_RECOVERY_FACTOR = 0.2
DEFAULT_INTERVAL_MODIFIER = 1.0
DEFAULT_LEECH_THRESHOLD = 8
DEFAULT_LEECH_ACTION = "suspend"
DEFAULT_NEW_CARD_ORDER = "random"
DEFAULT_REVIEW_AHEAD = False
DEFAULT_BURY_SIBLINGS = False
DEFAULT_MAX_INTERVAL = 36500  # days (100 years)

# (min, max) per numeric setting
NUMERIC_BOUNDS: dict[str, tuple[float, float]] = {
    "new_cards_per_day": (0, 9999),
    "max_reviews_per_day": (0, 99999),
    "graduating_interval": (1, 36500),
    "easy_interval": (1, 36500),
    "starting_ease": (1.3, 5.0),
    "minimum_ease": (1.0, 3.0),
    "lapse_ease_penalty": (0.0, 1.0),
    "easy_ease_bonus": (0.0, 1.0),
    "hard_interval_factor": (0.5, 2.0),
    "easy_interval_factor": (1.0, 3.0),
    "lapse_recovery_factor": (0.0, 1.0),
    "interval_modifier": (0.1, 3.0),
    "leech_threshold": (1, 999),
    "max_interval": (1, 36500),
}

INTEGER_SETTINGS = frozenset(
    {"new_cards_per_day", "max_reviews_per_day", "leech_threshold", "max_interval"}
)

LEECH_ACTIONS = ("suspend", "tag")
NEW_CARD_ORDERS = ("random", "fifo")
