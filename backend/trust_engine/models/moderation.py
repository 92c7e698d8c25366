"""
Moderation & trust models.

Reports flow: intake gate (pending) -> review queue -> enforcement (resolved /
dismissed). Resolution feeds reporter credibility, which feeds the priority
of that reporter's future reports.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from trust_engine.core.constants import (
    ACTION_NOTE_MAX_LENGTH,
    CREDIBILITY_NEUTRAL_SCORE,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    REPORT_DESCRIPTION_MAX_LENGTH,
    REPORT_EVIDENCE_MAX_URLS,
    SUSPEND_REASON_MAX_LENGTH,
    SUSPEND_REASON_MIN_LENGTH,
    SUSPENSION_MAX_DAYS,
    SUSPENSION_MIN_DAYS,
)

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"

# ===========================================
# Enums
# ===========================================


class ReportType(str, Enum):
    """Kind of entity a report accuses."""

    CONTENT = "content"
    CREATOR = "creator"
    MESSAGE = "message"
    USER = "user"


class ReportReason(str, Enum):
    ILLEGAL_CONTENT = "illegal_content"
    UNDERAGE = "underage"
    HARASSMENT = "harassment"
    SPAM = "spam"
    COPYRIGHT = "copyright"
    IMPERSONATION = "impersonation"
    FRAUD = "fraud"
    OTHER = "other"


class ReportStatus(str, Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


OPEN_REPORT_STATUSES = (ReportStatus.PENDING, ReportStatus.UNDER_REVIEW)


class ReportAction(str, Enum):
    """Enforcement decision taken by an administrator."""

    DISMISSED = "dismissed"
    WARNING_ISSUED = "warning_issued"
    CONTENT_REMOVED = "content_removed"
    CREATOR_SUSPENDED = "creator_suspended"
    USER_BANNED = "user_banned"


class SuspensionType(str, Enum):
    TEMPORARY = "temporary"
    PERMANENT = "permanent"


class AuditAction(str, Enum):
    """Administrative actions recorded in the audit log."""

    REPORT_REVIEWED = "report_reviewed"
    REPORT_DISMISSED = "report_dismissed"
    CONTENT_REMOVED = "content_removed"
    ACCOUNT_SUSPENDED = "account_suspended"
    ACCOUNT_UNSUSPENDED = "account_unsuspended"
    ACCOUNT_BANNED = "account_banned"


# ===========================================
# Stored rows
# ===========================================


class Report(BaseModel):
    """A claim that a target entity violates policy (reports table row)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    reporter_id: str
    report_type: ReportType
    target_id: str  # The declared target; dedup key together with reporter + type
    target_content_id: Optional[str] = None
    target_creator_id: Optional[str] = None
    target_message_id: Optional[str] = None
    target_user_id: Optional[str] = None
    reason: ReportReason
    description: Optional[str] = None
    evidence_urls: list[str] = Field(default_factory=list)
    status: ReportStatus = ReportStatus.PENDING
    priority: int = 0
    action: Optional[ReportAction] = None
    action_note: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ReporterCredibility(BaseModel):
    """Aggregate trust state for one reporter."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    total_reports: int = 0
    valid_reports: int = 0
    false_reports: int = 0
    score: int = CREDIBILITY_NEUTRAL_SCORE
    is_trusted: bool = False
    is_flagged: bool = False
    updated_at: Optional[datetime] = None

    @property
    def total_resolved(self) -> int:
        return self.valid_reports + self.false_reports


class AccountSuspension(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: SuspensionType
    reason: str
    report_id: Optional[str] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None  # None: permanent or until lifted
    suspended_by: Optional[str] = None
    is_active: bool = True
    revoked_at: Optional[datetime] = None
    revoked_by: Optional[str] = None
    revocation_reason: Optional[str] = None
    created_at: datetime


class AuditLogEntry(BaseModel):
    """Append-only record of an administrative action."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    admin_id: Optional[str] = None  # None once the admin account is deleted
    action: AuditAction
    target_type: str
    target_id: str
    details: dict[str, Any] = Field(default_factory=dict)
    ip_address: Optional[str] = None
    created_at: datetime


class TargetResolution(BaseModel):
    """Result of resolving a report target through the directory."""

    exists: bool
    owner_user_id: Optional[str] = None
    owner_creator_id: Optional[str] = None


# ===========================================
# Request Models
# ===========================================


class CreateReportRequest(BaseModel):
    report_type: ReportType
    target_id: str = Field(..., pattern=UUID_PATTERN)
    reason: ReportReason
    description: Optional[str] = Field(None, max_length=REPORT_DESCRIPTION_MAX_LENGTH)
    evidence_urls: list[str] = Field(default_factory=list, max_length=REPORT_EVIDENCE_MAX_URLS)


class ReviewReportRequest(BaseModel):
    """Administrator decision on one report."""

    action: ReportAction
    action_note: Optional[str] = Field(None, max_length=ACTION_NOTE_MAX_LENGTH)
    # Only meaningful for creator_suspended; omitted means permanent
    suspension_days: Optional[int] = None


class ReportListFilter(BaseModel):
    """Review queue filter. "all" lifts the restriction on that field."""

    status: Union[ReportStatus, Literal["all"]] = ReportStatus.PENDING
    report_type: Union[ReportType, Literal["all"]] = "all"
    reason: Union[ReportReason, Literal["all"]] = "all"
    page: int = Field(1, ge=1)
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)


class AuditLogFilter(BaseModel):
    action: Optional[AuditAction] = None
    admin_id: Optional[str] = None
    target_type: Optional[str] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)


class LiftSuspensionRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=ACTION_NOTE_MAX_LENGTH)


class SuspendUserRequest(BaseModel):
    """Direct suspension by an administrator. No days means permanent."""

    reason: str = Field(
        ..., min_length=SUSPEND_REASON_MIN_LENGTH, max_length=SUSPEND_REASON_MAX_LENGTH
    )
    days: Optional[int] = Field(None, ge=SUSPENSION_MIN_DAYS, le=SUSPENSION_MAX_DAYS)


# ===========================================
# Response Models
# ===========================================


class Pagination(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, page_size: int, total: int) -> "Pagination":
        return cls(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=(total + page_size - 1) // page_size,
        )


class UserSummary(BaseModel):
    id: str
    username: Optional[str] = None
    email: Optional[str] = None


class ReportSummary(BaseModel):
    """Review queue row."""

    id: str
    report_type: ReportType
    reason: ReportReason
    description: Optional[str] = None
    status: ReportStatus
    priority: int
    created_at: datetime
    target_content_id: Optional[str] = None
    target_creator_id: Optional[str] = None
    target_message_id: Optional[str] = None
    target_user_id: Optional[str] = None
    reporter: Optional[UserSummary] = None


class ReportPage(BaseModel):
    data: list[ReportSummary]
    pagination: Pagination


class ReportDetail(Report):
    """A report with its reporter and a target snapshot resolved at read time."""

    reporter: Optional[UserSummary] = None
    target: dict[str, Any] = Field(default_factory=dict)


class ReportCreatedResponse(BaseModel):
    id: str
    status: ReportStatus
    created_at: datetime
    message: str = "Report submitted. Our team will review it."


class ReviewReportResponse(BaseModel):
    success: bool = True
    status: ReportStatus
    message: str


class MyReportItem(BaseModel):
    id: str
    report_type: ReportType
    reason: ReportReason
    status: ReportStatus
    created_at: datetime


class MyReportsResponse(BaseModel):
    reports: list[MyReportItem]
    total: int


class AuditLogPage(BaseModel):
    data: list[AuditLogEntry]
    pagination: Pagination


class SuccessResponse(BaseModel):
    success: bool = True


# ===========================================
# Exception Classes
# ===========================================


class ModerationError(Exception):
    """Base exception for moderation errors."""

    pass


class ReportRateLimitedError(ModerationError):
    """Reporter exceeded the report quota for the trailing window."""

    def __init__(self, limit: int, window_seconds: int):
        self.limit = limit
        self.window_seconds = window_seconds
        super().__init__(f"Report limit reached: {limit} per {window_seconds // 60} minutes")


class ReportTargetNotFoundError(ModerationError):
    """The reported entity does not exist."""

    pass


class SelfReportError(ModerationError):
    """Cannot report yourself or your own content."""

    pass


class DuplicateReportError(ModerationError):
    """An open report from this reporter already targets this entity."""

    pass


class ReportNotFoundError(ModerationError):
    pass


class ReportAlreadyResolvedError(ModerationError):
    """Report is already in a terminal status."""

    def __init__(self, report_id: str, status: ReportStatus):
        self.report_id = report_id
        self.status = status
        super().__init__(f"Report {report_id} is already {status.value}")


class MissingSuspensionContextError(ModerationError):
    """suspension_days out of range for a creator suspension."""

    pass


class SuspensionNotFoundError(ModerationError):
    """User has no active suspension."""

    pass


class AccountSuspendedError(ModerationError):
    """Raised by the authorization gate for a suspended account."""

    def __init__(self, suspension: AccountSuspension):
        self.suspension = suspension
        super().__init__(f"Account suspended: {suspension.reason}")


class CannotSuspendAdminError(ModerationError):
    """Administrators cannot be suspended."""

    pass


class AccountAlreadySuspendedError(ModerationError):
    """User already has a suspension in force."""

    pass


def validate_suspension_days(
    action: ReportAction, suspension_days: Optional[int]
) -> Optional[int]:
    """
    Suspension length to apply for a review decision.

    Only creator suspensions take a length; for every other action the value
    is dropped (a ban is always permanent). Out-of-range lengths are rejected.
    """
    if suspension_days is None or action != ReportAction.CREATOR_SUSPENDED:
        return None
    if not SUSPENSION_MIN_DAYS <= suspension_days <= SUSPENSION_MAX_DAYS:
        raise MissingSuspensionContextError(
            f"suspension_days must be between {SUSPENSION_MIN_DAYS} and {SUSPENSION_MAX_DAYS}"
        )
    return suspension_days
