"""
Report intake gate and review queue.

Handles:
- Report submission: rate limit, target resolution, self-report and
  duplicate guards, priority scoring
- Atomic persist: report insert + credibility upsert in one SQL RPC, with the
  open-report unique index as the final duplicate guard
- Review queue listing (priority desc, then newest first) and detail view
- A reporter's own report history
"""

import logging
from typing import Any, Optional

from supabase import Client

from trust_engine.core.config import get_settings
from trust_engine.core.constants import MY_REPORTS_LIMIT, REPORT_RATE_KEY_PREFIX
from trust_engine.core.database import get_supabase
from trust_engine.core.logging_config import ModerationLogAdapter
from trust_engine.core.rate_limit import SlidingWindowRateLimiter
from trust_engine.models.moderation import (
    OPEN_REPORT_STATUSES,
    CreateReportRequest,
    DuplicateReportError,
    MyReportItem,
    Pagination,
    Report,
    ReportDetail,
    ReportListFilter,
    ReportNotFoundError,
    ReportPage,
    ReportRateLimitedError,
    ReportSummary,
    ReportTargetNotFoundError,
    ReportType,
    SelfReportError,
    TargetResolution,
)
from trust_engine.services.credibility_service import CredibilityService, compute_priority
from trust_engine.services.target_directory import TargetDirectory

logger = logging.getLogger(__name__)

REPORT_COLUMNS = (
    "id, reporter_id, report_type, target_id, target_content_id, target_creator_id, "
    "target_message_id, target_user_id, reason, description, evidence_urls, status, "
    "priority, action, action_note, reviewed_by, reviewed_at, created_at, updated_at"
)

_QUEUE_COLUMNS = (
    "id, report_type, reason, description, status, priority, created_at, "
    "target_content_id, target_creator_id, target_message_id, target_user_id, "
    "reporter:users!reports_reporter_id_fkey(id, username, email)"
)

# Column that holds the declared target for each report type
_TARGET_COLUMN = {
    ReportType.CONTENT: "target_content_id",
    ReportType.CREATOR: "target_creator_id",
    ReportType.MESSAGE: "target_message_id",
    ReportType.USER: "target_user_id",
}


def _is_duplicate_violation(error: Exception) -> bool:
    message = str(error)
    return "DUPLICATE_REPORT" in message or "23505" in message


class ReportService:
    """Service for report intake and the admin review queue."""

    def __init__(
        self,
        supabase: Optional[Client] = None,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        directory: Optional[TargetDirectory] = None,
        credibility: Optional[CredibilityService] = None,
    ) -> None:
        self._supabase = supabase
        self._rate_limiter = rate_limiter
        self._directory = directory
        self._credibility = credibility

    @property
    def supabase(self) -> Client:
        if self._supabase is None:
            self._supabase = get_supabase()
        return self._supabase

    @property
    def rate_limiter(self) -> SlidingWindowRateLimiter:
        if self._rate_limiter is None:
            self._rate_limiter = SlidingWindowRateLimiter()
        return self._rate_limiter

    @property
    def directory(self) -> TargetDirectory:
        if self._directory is None:
            self._directory = TargetDirectory(supabase=self.supabase)
        return self._directory

    @property
    def credibility(self) -> CredibilityService:
        if self._credibility is None:
            self._credibility = CredibilityService(supabase=self.supabase)
        return self._credibility

    # =========================================================================
    # Intake
    # =========================================================================

    def create_report(self, reporter_id: str, request: CreateReportRequest) -> Report:
        """
        File a new report (status=pending).

        The quota slot is taken up front so concurrent submissions cannot
        overshoot it, and handed back if the report is not stored: only filed
        reports count against the window.

        Raises:
            ReportRateLimitedError: Reporter hit the trailing-window quota
            ReportTargetNotFoundError: Target does not exist
            SelfReportError: Target is owned by the reporter
            DuplicateReportError: An open report already covers this target
        """
        settings = get_settings()
        quota_key = f"{REPORT_RATE_KEY_PREFIX}{reporter_id}"
        quota = self.rate_limiter.check_and_consume(
            quota_key,
            settings.report_rate_limit,
            settings.report_rate_window_seconds,
        )
        if not quota.allowed:
            raise ReportRateLimitedError(
                settings.report_rate_limit, settings.report_rate_window_seconds
            )

        try:
            return self._file_report(reporter_id, request)
        except Exception:
            if quota.member:
                self.rate_limiter.release(quota_key, quota.member)
            raise

    def _file_report(self, reporter_id: str, request: CreateReportRequest) -> Report:
        resolution = self.directory.resolve(request.report_type, request.target_id)
        if not resolution.exists:
            raise ReportTargetNotFoundError(
                f"{request.report_type.value} {request.target_id} not found"
            )

        if resolution.owner_user_id == reporter_id:
            raise SelfReportError("Cannot report yourself")

        if self._has_open_report(reporter_id, request.report_type, request.target_id):
            raise DuplicateReportError("You have already reported this and it is still open")

        priority = compute_priority(request.reason, self.credibility.find(reporter_id))

        params = {
            "p_reporter_id": reporter_id,
            "p_report_type": request.report_type.value,
            "p_target_id": request.target_id,
            "p_reason": request.reason.value,
            "p_description": request.description,
            "p_evidence_urls": request.evidence_urls,
            "p_priority": priority,
            **self._target_columns(request.report_type, request.target_id, resolution),
        }

        # Insert + credibility upsert commit together; the partial unique index
        # on open reports rejects a concurrent twin of this submission.
        try:
            result = self.supabase.rpc("create_report_with_credibility", params).execute()
        except Exception as e:
            if _is_duplicate_violation(e):
                raise DuplicateReportError(
                    "You have already reported this and it is still open"
                ) from e
            raise

        report = Report(**result.data[0])
        log = ModerationLogAdapter(logger, report_id=report.id, reporter_id=reporter_id)
        log.info(
            "Report created: type=%s reason=%s priority=%d",
            report.report_type.value,
            report.reason.value,
            report.priority,
        )
        return report

    def _has_open_report(self, reporter_id: str, report_type: ReportType, target_id: str) -> bool:
        result = (
            self.supabase.table("reports")
            .select("id")
            .eq("reporter_id", reporter_id)
            .eq("report_type", report_type.value)
            .eq("target_id", target_id)
            .in_("status", [s.value for s in OPEN_REPORT_STATUSES])
            .limit(1)
            .execute()
        )
        return bool(result.data)

    @staticmethod
    def _target_columns(
        report_type: ReportType, target_id: str, resolution: TargetResolution
    ) -> dict[str, Optional[str]]:
        """
        Target reference columns for the new row.

        The declared target always fills its own column. Creator and message
        reports also keep the owning account so enforcement can reach it
        without another lookup.
        """
        columns: dict[str, Optional[str]] = {
            "p_target_content_id": None,
            "p_target_creator_id": None,
            "p_target_message_id": None,
            "p_target_user_id": None,
        }
        columns[f"p_{_TARGET_COLUMN[report_type]}"] = target_id
        if report_type in (ReportType.CREATOR, ReportType.MESSAGE):
            columns["p_target_user_id"] = resolution.owner_user_id
        return columns

    def get_my_reports(self, reporter_id: str) -> list[MyReportItem]:
        """Get reports submitted by this user, newest first."""
        result = (
            self.supabase.table("reports")
            .select("id, report_type, reason, status, created_at")
            .eq("reporter_id", reporter_id)
            .order("created_at", desc=True)
            .limit(MY_REPORTS_LIMIT)
            .execute()
        )
        return [MyReportItem(**r) for r in result.data]

    # =========================================================================
    # Review queue
    # =========================================================================

    def list_reports(self, filters: ReportListFilter) -> ReportPage:
        """
        Page through the review queue.

        Order is priority desc, then created_at desc, with id as the final
        tiebreaker so equal rows keep a fixed position between page fetches.
        Rows and total come from one query, i.e. one read-committed snapshot.
        """
        offset = (filters.page - 1) * filters.page_size

        query = self.supabase.table("reports").select(_QUEUE_COLUMNS, count="exact")
        if filters.status != "all":
            query = query.eq("status", filters.status.value)
        if filters.report_type != "all":
            query = query.eq("report_type", filters.report_type.value)
        if filters.reason != "all":
            query = query.eq("reason", filters.reason.value)

        result = (
            query.order("priority", desc=True)
            .order("created_at", desc=True)
            .order("id", desc=True)
            .range(offset, offset + filters.page_size - 1)
            .execute()
        )

        rows: list[dict[str, Any]] = result.data or []
        return ReportPage(
            data=[ReportSummary(**row) for row in rows],
            pagination=Pagination.build(filters.page, filters.page_size, result.count or 0),
        )

    def get_report(self, report_id: str) -> Report:
        """
        Raises:
            ReportNotFoundError: No such report
        """
        result = self.supabase.table("reports").select(REPORT_COLUMNS).eq("id", report_id).execute()
        if not result.data:
            raise ReportNotFoundError(f"Report {report_id} not found")
        return Report(**result.data[0])

    def get_report_detail(self, report_id: str) -> ReportDetail:
        """Report plus reporter summary and a live snapshot of its target."""
        report = self.get_report(report_id)
        return ReportDetail(
            **report.model_dump(),
            reporter=self.directory.get_user_summary(report.reporter_id),
            target=self.directory.snapshot(report),
        )
