"""Centralized constants for episteme.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Day boundary ----------
DEFAULT_DAY_START_HOUR = 4  # new review day starts at 04:00 like Anki

# ---------- Maturity ----------
MATURE_THRESHOLD_DAYS = 21.0  # Review cards with scheduled_days >= this are Mature

# ---------- Daily quotas ----------
DEFAULT_NEW_CARDS_PER_DAY = 20
DEFAULT_REVIEWS_PER_DAY = 200

# ---------- Review queue ----------
LEARN_AHEAD_LIMIT_MINUTES = 20  # learning cards due this soon are shown now
DEFAULT_NEW_CARD_ORDER = "random"
DEFAULT_REVIEW_ORDER = "due-date"
DEFAULT_NEW_REVIEW_MIX = "mix-with-reviews"

# ---------- FSRS ----------
WEIGHT_COUNT = 21
DEFAULT_DESIRED_RETENTION = 0.9
MIN_DESIRED_RETENTION = 0.7
MAX_DESIRED_RETENTION = 0.99
DEFAULT_MAXIMUM_INTERVAL = 36500  # days
DEFAULT_LEARNING_STEPS_MINUTES = (1, 10)
DEFAULT_RELEARNING_STEPS_MINUTES = (10,)

# ---------- Simulator ----------
HISTORY_CAP = 50
DEFAULT_SEQUENCES = ("3333", "3332", "3331", "2333", "1333", "4331")
SEQUENCE_PATTERN = r"^[1-4]+$"
PARAMETER_DISPLAY_DECIMALS = 4
