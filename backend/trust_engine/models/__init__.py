"""Pydantic models for the Trust Engine API."""

from trust_engine.models.moderation import (
    AccountAlreadySuspendedError,
    AccountSuspendedError,
    AccountSuspension,
    AuditAction,
    AuditLogEntry,
    CannotSuspendAdminError,
    CreateReportRequest,
    DuplicateReportError,
    MissingSuspensionContextError,
    ModerationError,
    Report,
    ReportAction,
    ReportAlreadyResolvedError,
    ReportNotFoundError,
    ReportRateLimitedError,
    ReporterCredibility,
    ReportReason,
    ReportStatus,
    ReportTargetNotFoundError,
    ReportType,
    SelfReportError,
    SuspensionNotFoundError,
    SuspensionType,
)
from trust_engine.models.user import UserProfile, UserRole

__all__ = [
    "AccountAlreadySuspendedError",
    "AccountSuspendedError",
    "AccountSuspension",
    "AuditAction",
    "AuditLogEntry",
    "CannotSuspendAdminError",
    "CreateReportRequest",
    "DuplicateReportError",
    "MissingSuspensionContextError",
    "ModerationError",
    "Report",
    "ReportAction",
    "ReportAlreadyResolvedError",
    "ReportNotFoundError",
    "ReportRateLimitedError",
    "ReporterCredibility",
    "ReportReason",
    "ReportStatus",
    "ReportTargetNotFoundError",
    "ReportType",
    "SelfReportError",
    "SuspensionNotFoundError",
    "SuspensionType",
    "UserProfile",
    "UserRole",
]
