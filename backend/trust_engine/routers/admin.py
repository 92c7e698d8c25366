"""
Admin moderation endpoints.

Endpoints:
- GET /reports: Review queue (priority desc, newest first)
- GET /reports/{report_id}: Report detail with live target snapshot
- POST /reports/{report_id}/review: Resolve or dismiss a report
- GET /audit-logs: Administrative audit trail
- POST /users/{user_id}/suspend: Suspend a user directly
- POST /users/{user_id}/unsuspend: Lift a user's active suspensions
"""

import logging
from typing import Literal, Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from trust_engine.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from trust_engine.core.rate_limit import limiter
from trust_engine.models.moderation import (
    AuditAction,
    AuditLogFilter,
    AuditLogPage,
    LiftSuspensionRequest,
    ReportDetail,
    ReportListFilter,
    ReportPage,
    ReportReason,
    ReportStatus,
    ReportType,
    ReviewReportRequest,
    ReviewReportResponse,
    SuccessResponse,
    SuspendUserRequest,
)
from trust_engine.models.user import UserProfile
from trust_engine.routers.dependencies import get_client_ip, require_admin
from trust_engine.services.audit_service import AuditService
from trust_engine.services.enforcement_service import EnforcementService
from trust_engine.services.report_service import ReportService
from trust_engine.services.suspension_service import SuspensionService

logger = logging.getLogger(__name__)
router = APIRouter()


def get_report_service() -> ReportService:
    return ReportService()


def get_enforcement_service() -> EnforcementService:
    return EnforcementService()


def get_audit_service() -> AuditService:
    return AuditService()


def get_suspension_service() -> SuspensionService:
    return SuspensionService()


@router.get("/reports", response_model=ReportPage)
async def list_reports(
    status: Union[ReportStatus, Literal["all"]] = Query(ReportStatus.PENDING),
    report_type: Union[ReportType, Literal["all"]] = Query("all", alias="type"),
    reason: Union[ReportReason, Literal["all"]] = Query("all"),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    admin: UserProfile = Depends(require_admin),
    report_service: ReportService = Depends(get_report_service),
) -> ReportPage:
    """List reports for review. "all" lifts a filter."""
    filters = ReportListFilter(
        status=status,
        report_type=report_type,
        reason=reason,
        page=page,
        page_size=page_size,
    )
    return report_service.list_reports(filters)


@router.get("/reports/{report_id}", response_model=ReportDetail)
async def get_report(
    report_id: UUID,
    admin: UserProfile = Depends(require_admin),
    report_service: ReportService = Depends(get_report_service),
) -> ReportDetail:
    return report_service.get_report_detail(str(report_id))


@router.post("/reports/{report_id}/review", response_model=ReviewReportResponse)
@limiter.limit("60/minute")
async def review_report(
    request: Request,
    report_id: UUID,
    body: ReviewReportRequest,
    admin: UserProfile = Depends(require_admin),
    enforcement_service: EnforcementService = Depends(get_enforcement_service),
) -> ReviewReportResponse:
    """
    Close a report and apply its enforcement action.

    Raises:
        404: Report not found
        409: Report already resolved or dismissed
        422: suspension_days out of range for creator_suspended
    """
    report = enforcement_service.review_report(
        report_id=str(report_id),
        admin_id=admin.id,
        action=body.action,
        action_note=body.action_note,
        suspension_days=body.suspension_days,
        ip_address=get_client_ip(request),
    )
    return ReviewReportResponse(
        status=report.status,
        message=f"Report {report.status.value} with action {body.action.value}",
    )


@router.get("/audit-logs", response_model=AuditLogPage)
async def list_audit_logs(
    action: Optional[AuditAction] = Query(None),
    admin_id: Optional[UUID] = Query(None),
    target_type: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    admin: UserProfile = Depends(require_admin),
    audit_service: AuditService = Depends(get_audit_service),
) -> AuditLogPage:
    filters = AuditLogFilter(
        action=action,
        admin_id=str(admin_id) if admin_id else None,
        target_type=target_type,
        page=page,
        page_size=page_size,
    )
    return audit_service.list_entries(filters)


@router.post("/users/{user_id}/suspend", response_model=SuccessResponse)
async def suspend_user(
    request: Request,
    user_id: UUID,
    body: SuspendUserRequest,
    admin: UserProfile = Depends(require_admin),
    suspension_service: SuspensionService = Depends(get_suspension_service),
) -> SuccessResponse:
    """
    Suspend a user outside the report flow. Permanent unless days is given.

    Raises:
        403: Target is an administrator
        404: User not found
        409: User already suspended
    """
    suspension_service.suspend_user(
        user_id=str(user_id),
        admin_id=admin.id,
        reason=body.reason,
        days=body.days,
        ip_address=get_client_ip(request),
    )
    return SuccessResponse()


@router.post("/users/{user_id}/unsuspend", response_model=SuccessResponse)
async def unsuspend_user(
    request: Request,
    user_id: UUID,
    body: LiftSuspensionRequest,
    admin: UserProfile = Depends(require_admin),
    suspension_service: SuspensionService = Depends(get_suspension_service),
) -> SuccessResponse:
    """
    Lift every active suspension on a user.

    Raises:
        404: User has no active suspension
    """
    suspension_service.lift_suspension(
        user_id=str(user_id),
        admin_id=admin.id,
        reason=body.reason,
        ip_address=get_client_ip(request),
    )
    return SuccessResponse()
