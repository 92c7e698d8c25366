"""
Reporter credibility store and scoring.

Handles:
- Initial report priority from reason weight + reporter standing
- Neutral defaults for reporters with no resolved history

The row itself is only written in SQL: intake increments total_reports in
create_report_with_credibility, and review_report folds each resolution into
the valid/false counters, score and flags in the same transaction that closes
the report.
"""

from typing import Optional

from supabase import Client

from trust_engine.core.constants import (
    DEFAULT_REASON_WEIGHT,
    FLAGGED_REPORTER_PENALTY,
    REASON_WEIGHT,
    TRUSTED_REPORTER_BOOST,
)
from trust_engine.core.database import get_supabase
from trust_engine.models.moderation import ReportReason, ReporterCredibility

_CREDIBILITY_COLUMNS = (
    "user_id, total_reports, valid_reports, false_reports, score, "
    "is_trusted, is_flagged, updated_at"
)


def compute_priority(reason: ReportReason, credibility: Optional[ReporterCredibility]) -> int:
    """
    Queue priority for a new report. Clamped at 0, no upper bound.

    Computed once at creation from the reporter's standing at that moment.
    """
    priority = REASON_WEIGHT.get(reason.value, DEFAULT_REASON_WEIGHT)
    if credibility is not None:
        if credibility.is_trusted:
            priority += TRUSTED_REPORTER_BOOST
        if credibility.is_flagged:
            priority -= FLAGGED_REPORTER_PENALTY
    return max(0, priority)


class CredibilityService:
    """Service for reporter credibility reads."""

    def __init__(self, supabase: Optional[Client] = None) -> None:
        self._supabase = supabase

    @property
    def supabase(self) -> Client:
        if self._supabase is None:
            self._supabase = get_supabase()
        return self._supabase

    def find(self, user_id: str) -> Optional[ReporterCredibility]:
        """Get the credibility row for a reporter, or None if they never reported."""
        result = (
            self.supabase.table("reporter_credibility")
            .select(_CREDIBILITY_COLUMNS)
            .eq("user_id", user_id)
            .execute()
        )
        if not result.data:
            return None
        return ReporterCredibility(**result.data[0])

    def get(self, user_id: str) -> ReporterCredibility:
        """Get credibility, falling back to a neutral untrusted/unflagged record."""
        return self.find(user_id) or ReporterCredibility(user_id=user_id)
