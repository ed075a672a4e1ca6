"""Centralized constants for the repaso scheduling core.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Card content ----------
MAX_TEXT_LENGTH = 500

# ---------- SM-2 ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
MIN_GRADE = 0
MAX_GRADE = 5
PASSING_GRADE = 3
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
FAILED_INTERVAL_DAYS = 1
MAX_INTERVAL_DAYS = 365

# ---------- Legacy fixed-table policy (migration only) ----------
LEGACY_INTERVALS_DAYS = (1, 2, 4, 8, 16, 32)

# ---------- Difficulty proxy ----------
MAX_DIFFICULTY = 5
DIFFICULTY_BUCKETS = tuple(range(MAX_DIFFICULTY + 1))

# ---------- Classification ----------
OVERDUE_INTERVAL_MULTIPLIER = 1.5

# ---------- Session planner ----------
BASE_PRIORITY = 100
NEW_CARD_BONUS = 50
DIFFICULTY_PENALTY = 10
DAYS_SINCE_REVIEW_WEIGHT = 2
MAX_RECENCY_BONUS = 40
FEW_REVIEWS_THRESHOLD = 3
FEW_REVIEWS_BONUS = 10
DEFAULT_SESSION_LIMIT = 10
MAX_SESSION_SIZE = 50
MAX_DUE_LISTING = 100

# ---------- Recommendations ----------
OVERDUE_ALERT_THRESHOLD = 5
NEW_CARD_ALERT_THRESHOLD = 20
LOW_DIFFICULTY_THRESHOLD = 2
MAINTENANCE_REVIEW_THRESHOLD = 100
MAINTENANCE_LOAD_THRESHOLD = 5
