"""Unit tests for admin moderation endpoints.

Endpoints tested:
- GET /admin/reports - list_reports()
- GET /admin/reports/{report_id} - get_report()
- POST /admin/reports/{report_id}/review - review_report()
- GET /admin/audit-logs - list_audit_logs()
- POST /admin/users/{user_id}/suspend - suspend_user()
- POST /admin/users/{user_id}/unsuspend - unsuspend_user()
"""

from unittest.mock import MagicMock
from uuid import UUID

import pytest
from conftest import ADMIN_ID, OWNER_ID, REPORT_ID, make_report_row

from trust_engine.models.moderation import (
    AccountAlreadySuspendedError,
    AuditAction,
    CannotSuspendAdminError,
    LiftSuspensionRequest,
    Report,
    ReportAction,
    ReportAlreadyResolvedError,
    ReportReason,
    ReportStatus,
    ReportType,
    ReviewReportRequest,
    SuspendUserRequest,
    SuspensionNotFoundError,
)
from trust_engine.models.user import UserProfile, UserRole
from trust_engine.routers.admin import (
    get_report,
    list_audit_logs,
    list_reports,
    review_report,
    suspend_user,
    unsuspend_user,
)
from trust_engine.services.user_service import UserNotFoundError


@pytest.fixture
def admin() -> UserProfile:
    return UserProfile(id=ADMIN_ID, auth_id="auth-admin", role=UserRole.ADMIN)


@pytest.fixture
def request_from_proxy() -> MagicMock:
    request = MagicMock()
    request.headers = {"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}
    return request


class TestListReports:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_builds_filter_from_query(self, admin) -> None:
        service = MagicMock()

        result = await list_reports(
            status="all",
            report_type=ReportType.MESSAGE,
            reason=ReportReason.SPAM,
            page=2,
            page_size=10,
            admin=admin,
            report_service=service,
        )

        filters = service.list_reports.call_args[0][0]
        assert filters.status == "all"
        assert filters.report_type == ReportType.MESSAGE
        assert filters.reason == ReportReason.SPAM
        assert filters.page == 2
        assert filters.page_size == 10
        assert result is service.list_reports.return_value

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_defaults_to_pending_queue(self, admin) -> None:
        service = MagicMock()

        await list_reports(
            status=ReportStatus.PENDING,
            report_type="all",
            reason="all",
            page=1,
            page_size=20,
            admin=admin,
            report_service=service,
        )

        filters = service.list_reports.call_args[0][0]
        assert filters.status == ReportStatus.PENDING
        assert filters.report_type == "all"


class TestGetReport:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_passes_id_as_string(self, admin) -> None:
        service = MagicMock()

        await get_report(report_id=UUID(REPORT_ID), admin=admin, report_service=service)

        service.get_report_detail.assert_called_once_with(REPORT_ID)


class TestReviewReport:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_resolves_with_client_ip(self, admin, request_from_proxy) -> None:
        service = MagicMock()
        service.review_report.return_value = Report(
            **make_report_row(status="resolved", action="creator_suspended")
        )
        body = ReviewReportRequest(
            action=ReportAction.CREATOR_SUSPENDED, action_note="Repeat", suspension_days=7
        )

        result = await review_report(
            request=request_from_proxy,
            report_id=UUID(REPORT_ID),
            body=body,
            admin=admin,
            enforcement_service=service,
        )

        assert result.success is True
        assert result.status == ReportStatus.RESOLVED
        assert result.message == "Report resolved with action creator_suspended"
        service.review_report.assert_called_once_with(
            report_id=REPORT_ID,
            admin_id=ADMIN_ID,
            action=ReportAction.CREATOR_SUSPENDED,
            action_note="Repeat",
            suspension_days=7,
            ip_address="203.0.113.7",
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_dismissal_message(self, admin, request_from_proxy) -> None:
        service = MagicMock()
        service.review_report.return_value = Report(
            **make_report_row(status="dismissed", action="dismissed")
        )

        result = await review_report(
            request=request_from_proxy,
            report_id=UUID(REPORT_ID),
            body=ReviewReportRequest(action=ReportAction.DISMISSED),
            admin=admin,
            enforcement_service=service,
        )

        assert result.status == ReportStatus.DISMISSED
        assert result.message == "Report dismissed with action dismissed"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_conflict_propagates(self, admin, request_from_proxy) -> None:
        service = MagicMock()
        service.review_report.side_effect = ReportAlreadyResolvedError(
            REPORT_ID, ReportStatus.RESOLVED
        )

        with pytest.raises(ReportAlreadyResolvedError):
            await review_report(
                request=request_from_proxy,
                report_id=UUID(REPORT_ID),
                body=ReviewReportRequest(action=ReportAction.WARNING_ISSUED),
                admin=admin,
                enforcement_service=service,
            )


class TestListAuditLogs:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_builds_filter(self, admin) -> None:
        service = MagicMock()

        await list_audit_logs(
            action=AuditAction.ACCOUNT_SUSPENDED,
            admin_id=UUID(ADMIN_ID),
            target_type="user",
            page=1,
            page_size=20,
            admin=admin,
            audit_service=service,
        )

        filters = service.list_entries.call_args[0][0]
        assert filters.action == AuditAction.ACCOUNT_SUSPENDED
        assert filters.admin_id == ADMIN_ID
        assert filters.target_type == "user"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_admin_filter(self, admin) -> None:
        service = MagicMock()

        await list_audit_logs(
            action=None,
            admin_id=None,
            target_type=None,
            page=1,
            page_size=20,
            admin=admin,
            audit_service=service,
        )

        assert service.list_entries.call_args[0][0].admin_id is None


class TestSuspendUser:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_temporary_suspension(self, admin, request_from_proxy) -> None:
        service = MagicMock()

        result = await suspend_user(
            request=request_from_proxy,
            user_id=UUID(OWNER_ID),
            body=SuspendUserRequest(reason="Chargeback abuse", days=14),
            admin=admin,
            suspension_service=service,
        )

        assert result.success is True
        service.suspend_user.assert_called_once_with(
            user_id=OWNER_ID,
            admin_id=ADMIN_ID,
            reason="Chargeback abuse",
            days=14,
            ip_address="203.0.113.7",
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_permanent_when_no_days(self, admin, request_from_proxy) -> None:
        service = MagicMock()

        await suspend_user(
            request=request_from_proxy,
            user_id=UUID(OWNER_ID),
            body=SuspendUserRequest(reason="Repeated fraud"),
            admin=admin,
            suspension_service=service,
        )

        assert service.suspend_user.call_args.kwargs["days"] is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            CannotSuspendAdminError("admin"),
            AccountAlreadySuspendedError("suspended"),
            UserNotFoundError("missing"),
        ],
    )
    async def test_guard_errors_propagate(self, admin, request_from_proxy, error) -> None:
        service = MagicMock()
        service.suspend_user.side_effect = error

        with pytest.raises(type(error)):
            await suspend_user(
                request=request_from_proxy,
                user_id=UUID(OWNER_ID),
                body=SuspendUserRequest(reason="Chargeback abuse"),
                admin=admin,
                suspension_service=service,
            )


class TestUnsuspendUser:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_lifts_suspension(self, admin, request_from_proxy) -> None:
        service = MagicMock()

        result = await unsuspend_user(
            request=request_from_proxy,
            user_id=UUID(OWNER_ID),
            body=LiftSuspensionRequest(reason="Appeal accepted"),
            admin=admin,
            suspension_service=service,
        )

        assert result.success is True
        service.lift_suspension.assert_called_once_with(
            user_id=OWNER_ID,
            admin_id=ADMIN_ID,
            reason="Appeal accepted",
            ip_address="203.0.113.7",
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_nothing_to_lift_propagates(self, admin, request_from_proxy) -> None:
        service = MagicMock()
        service.lift_suspension.side_effect = SuspensionNotFoundError("none")

        with pytest.raises(SuspensionNotFoundError):
            await unsuspend_user(
                request=request_from_proxy,
                user_id=UUID(OWNER_ID),
                body=LiftSuspensionRequest(reason="Appeal accepted"),
                admin=admin,
                suspension_service=service,
            )
