"""
Enforcement engine: executes an administrator's decision on one report.

The whole decision runs inside the review_report SQL function, one
transaction per review:
- Exactly-once closing of a report (row lock on the open report)
- Action side effect, one CASE branch per report_action:
    dismissed / warning_issued -> no system effect
    content_removed            -> unpublish target content
    creator_suspended          -> suspend creator's account (temporary or permanent)
    user_banned                -> permanent suspension of the target account
- Audit entries for every mutated target plus the review decision itself
- Reporter credibility update (valid unless dismissed)

A failure at any step rolls back the close, so a report is never left
resolved without its audit trail or credibility update. Side effects whose
referenced entity has since been deleted are skipped; the report still closes.
"""

import logging
import re
from typing import Optional

from supabase import Client

from trust_engine.core.constants import (
    FLAGGED_MAX_SCORE,
    FLAGGED_MIN_FALSE_REPORTS,
    TRUSTED_MIN_RESOLVED,
    TRUSTED_MIN_SCORE,
)
from trust_engine.core.database import get_supabase
from trust_engine.core.logging_config import ModerationLogAdapter
from trust_engine.models.moderation import (
    Report,
    ReportAction,
    ReportAlreadyResolvedError,
    ReportNotFoundError,
    ReportStatus,
    validate_suspension_days,
)

logger = logging.getLogger(__name__)

_ALREADY_RESOLVED = re.compile(r"REPORT_ALREADY_RESOLVED:(\w+)")


class EnforcementService:
    """Service that resolves reports and applies their enforcement actions."""

    def __init__(self, supabase: Optional[Client] = None) -> None:
        self._supabase = supabase

    @property
    def supabase(self) -> Client:
        if self._supabase is None:
            self._supabase = get_supabase()
        return self._supabase

    def review_report(
        self,
        report_id: str,
        admin_id: str,
        action: ReportAction,
        action_note: Optional[str] = None,
        suspension_days: Optional[int] = None,
        ip_address: Optional[str] = None,
    ) -> Report:
        """
        Close a report with the given action and apply its side effect.

        suspension_days only applies to creator_suspended; it is ignored for
        every other action.

        Returns:
            The report in its terminal state

        Raises:
            ReportNotFoundError: No such report
            ReportAlreadyResolvedError: Report already closed (or closed concurrently)
            MissingSuspensionContextError: suspension_days out of range
        """
        log = ModerationLogAdapter(logger, report_id=report_id, admin_id=admin_id)

        days = validate_suspension_days(action, suspension_days)
        if suspension_days is not None and days is None:
            log.info(
                "Ignoring suspension_days=%d for action %s", suspension_days, action.value
            )

        rpc_params = {
            "p_report_id": report_id,
            "p_admin_id": admin_id,
            "p_action": action.value,
            "p_action_note": action_note,
            "p_suspension_days": days,
            "p_ip_address": ip_address,
            "p_trusted_min_score": TRUSTED_MIN_SCORE,
            "p_trusted_min_resolved": TRUSTED_MIN_RESOLVED,
            "p_flagged_max_score": FLAGGED_MAX_SCORE,
            "p_flagged_min_false_reports": FLAGGED_MIN_FALSE_REPORTS,
        }

        try:
            result = self.supabase.rpc("review_report", rpc_params).execute()
        except Exception as e:
            error_msg = str(e)
            if "REPORT_NOT_FOUND" in error_msg:
                raise ReportNotFoundError(f"Report {report_id} not found")
            resolved = _ALREADY_RESOLVED.search(error_msg)
            if resolved:
                raise ReportAlreadyResolvedError(report_id, ReportStatus(resolved.group(1)))
            raise

        closed = Report(**result.data[0])
        log.info("Report reviewed: action=%s status=%s", action.value, closed.status.value)
        return closed
