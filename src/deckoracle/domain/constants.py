"""Centralized constants for DeckOracle.

All magic numbers and policy defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Study sessions ----------
DEFAULT_STUDY_MODE = "standard"
SESSION_ID_PREFIX = "ses_"
OUTCOME_ID_PREFIX = "out_"

# ---------- Timing ----------
MS_PER_MINUTE = 60_000

# ---------- Mastery policy ----------
# Statuses that mark a card as "learned" when they are its most recent outcome.
DEFAULT_LEARNED_STATUSES = ("easy",)

# ---------- Analytics ----------
DEFAULT_TIMEZONE = "UTC"
PERCENT_PRECISION = 2
CARD_PERFORMANCE_LIMIT = 100
# Widest date range a dense learning curve zero-fills.
DENSE_CURVE_MAX_DAYS = 366
STREAK_HISTORY_DAYS = 30
# A streak survives one full calendar day without outcomes (today, before studying).
STREAK_GRACE_DAYS = 1

# ---------- Server ----------
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8787
