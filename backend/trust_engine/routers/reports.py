"""
Reporter-facing endpoints.

Endpoints:
- POST /: Submit a report on content, a creator, a message or a user
- GET /mine: Reports submitted by the authenticated user
"""

import logging

from fastapi import APIRouter, Depends, Request, status

from trust_engine.core.rate_limit import limiter
from trust_engine.models.moderation import (
    CreateReportRequest,
    MyReportsResponse,
    ReportCreatedResponse,
)
from trust_engine.models.user import UserProfile
from trust_engine.routers.dependencies import require_active_account
from trust_engine.services.report_service import ReportService

logger = logging.getLogger(__name__)
router = APIRouter()


def get_report_service() -> ReportService:
    return ReportService()


@router.post("", response_model=ReportCreatedResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def submit_report(
    request: Request,
    body: CreateReportRequest,
    profile: UserProfile = Depends(require_active_account),
    report_service: ReportService = Depends(get_report_service),
) -> ReportCreatedResponse:
    """
    Submit a report for admin review.

    Raises:
        429: Report quota for the trailing hour used up
        404: Reported item does not exist
        400: Reporting yourself or your own content
        409: An open report from you already covers this item
    """
    report = report_service.create_report(profile.id, body)
    return ReportCreatedResponse(id=report.id, status=report.status, created_at=report.created_at)


@router.get("/mine", response_model=MyReportsResponse)
async def get_my_reports(
    profile: UserProfile = Depends(require_active_account),
    report_service: ReportService = Depends(get_report_service),
) -> MyReportsResponse:
    """Get reports submitted by the authenticated user."""
    reports = report_service.get_my_reports(profile.id)
    return MyReportsResponse(reports=reports, total=len(reports))
