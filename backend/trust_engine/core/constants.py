"""
Moderation policy constants.

Centralizes scoring weights, thresholds and input bounds used by the
intake gate, review queue and enforcement engine.
"""

# =============================================================================
# Intake
# =============================================================================

# Reports a single reporter may file in the trailing window
REPORTS_PER_WINDOW_LIMIT = 5
REPORT_RATE_WINDOW_SECONDS = 60 * 60
REPORT_RATE_KEY_PREFIX = "reports:"

REPORT_DESCRIPTION_MAX_LENGTH = 2000
REPORT_EVIDENCE_MAX_URLS = 10

# =============================================================================
# Priority scoring
# =============================================================================

REASON_WEIGHT: dict[str, int] = {
    "underage": 10,
    "illegal_content": 9,
    "fraud": 7,
    "impersonation": 6,
    "harassment": 5,
    "copyright": 4,
    "spam": 2,
    "other": 1,
}
DEFAULT_REASON_WEIGHT = 1

TRUSTED_REPORTER_BOOST = 5
FLAGGED_REPORTER_PENALTY = 3

# =============================================================================
# Reporter credibility
# =============================================================================

CREDIBILITY_NEUTRAL_SCORE = 50
TRUSTED_MIN_SCORE = 80
TRUSTED_MIN_RESOLVED = 5
FLAGGED_MAX_SCORE = 20
FLAGGED_MIN_FALSE_REPORTS = 3

# =============================================================================
# Review queue
# =============================================================================

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 50
MY_REPORTS_LIMIT = 20

# =============================================================================
# Enforcement
# =============================================================================

ACTION_NOTE_MAX_LENGTH = 1000
SUSPENSION_MIN_DAYS = 1
SUSPENSION_MAX_DAYS = 365
SUSPEND_REASON_MIN_LENGTH = 5
SUSPEND_REASON_MAX_LENGTH = 500
