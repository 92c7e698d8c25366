"""Business logic services for the Trust Engine API."""

from trust_engine.services.audit_service import AuditService
from trust_engine.services.credibility_service import CredibilityService, compute_priority
from trust_engine.services.enforcement_service import EnforcementService
from trust_engine.services.report_service import ReportService
from trust_engine.services.suspension_service import SuspensionService
from trust_engine.services.target_directory import TargetDirectory
from trust_engine.services.user_service import UserNotFoundError, UserService

__all__ = [
    "AuditService",
    "CredibilityService",
    "EnforcementService",
    "ReportService",
    "SuspensionService",
    "TargetDirectory",
    "UserNotFoundError",
    "UserService",
    "compute_priority",
]
