"""
Global exception handlers for FastAPI.

Maps domain exceptions to HTTP responses, eliminating try/except
boilerplate from routers. Register with register_exception_handlers(app).
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


def error_response(status_code: int, detail: str, code: Optional[str] = None) -> JSONResponse:
    """Build a standardized error JSON response."""
    content: dict = {"detail": detail}
    if code:
        content["code"] = code
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all domain exception handlers on the FastAPI app."""
    from trust_engine.models.moderation import (
        AccountAlreadySuspendedError,
        AccountSuspendedError,
        CannotSuspendAdminError,
        DuplicateReportError,
        MissingSuspensionContextError,
        ReportAlreadyResolvedError,
        ReportNotFoundError,
        ReportRateLimitedError,
        ReportTargetNotFoundError,
        SelfReportError,
        SuspensionNotFoundError,
    )
    from trust_engine.services.user_service import UserNotFoundError

    # --- Intake handlers ---

    @app.exception_handler(ReportRateLimitedError)
    async def _report_rate_limited(request: Request, exc: ReportRateLimitedError) -> JSONResponse:
        response = error_response(
            429,
            f"Report limit reached ({exc.limit} per {exc.window_seconds // 60} minutes). "
            "Please try again later.",
            "REPORT_RATE_LIMITED",
        )
        response.headers["Retry-After"] = str(exc.window_seconds)
        return response

    @app.exception_handler(ReportTargetNotFoundError)
    async def _target_not_found(request: Request, exc: ReportTargetNotFoundError) -> JSONResponse:
        return error_response(404, "Reported item not found.", "TARGET_NOT_FOUND")

    @app.exception_handler(SelfReportError)
    async def _self_report(request: Request, exc: SelfReportError) -> JSONResponse:
        return error_response(400, "Cannot report yourself or your own content.", "SELF_REPORT")

    @app.exception_handler(DuplicateReportError)
    async def _duplicate_report(request: Request, exc: DuplicateReportError) -> JSONResponse:
        return error_response(
            409, "You already have an open report on this item.", "DUPLICATE_REPORT"
        )

    # --- Review handlers ---

    @app.exception_handler(ReportNotFoundError)
    async def _report_not_found(request: Request, exc: ReportNotFoundError) -> JSONResponse:
        return error_response(404, "Report not found.", "REPORT_NOT_FOUND")

    @app.exception_handler(ReportAlreadyResolvedError)
    async def _already_resolved(
        request: Request, exc: ReportAlreadyResolvedError
    ) -> JSONResponse:
        return error_response(
            409, f"Report is already {exc.status.value}.", "REPORT_ALREADY_RESOLVED"
        )

    @app.exception_handler(MissingSuspensionContextError)
    async def _missing_suspension_context(
        request: Request, exc: MissingSuspensionContextError
    ) -> JSONResponse:
        return error_response(422, str(exc), "INVALID_SUSPENSION_DAYS")

    @app.exception_handler(SuspensionNotFoundError)
    async def _suspension_not_found(
        request: Request, exc: SuspensionNotFoundError
    ) -> JSONResponse:
        return error_response(404, "User has no active suspension.", "SUSPENSION_NOT_FOUND")

    # --- Account handlers ---

    @app.exception_handler(AccountSuspendedError)
    async def _account_suspended(request: Request, exc: AccountSuspendedError) -> JSONResponse:
        suspension = exc.suspension
        if suspension.ends_at is None:
            detail = "Your account is suspended."
        else:
            detail = f"Your account is suspended until {suspension.ends_at.isoformat()}."
        return JSONResponse(
            status_code=403,
            content={
                "detail": detail,
                "code": "ACCOUNT_SUSPENDED",
                "suspension": {
                    "type": suspension.type.value,
                    "reason": suspension.reason,
                    "ends_at": suspension.ends_at.isoformat() if suspension.ends_at else None,
                },
            },
        )

    @app.exception_handler(UserNotFoundError)
    async def _user_not_found(request: Request, exc: UserNotFoundError) -> JSONResponse:
        return error_response(404, "User not found.", "USER_NOT_FOUND")

    @app.exception_handler(CannotSuspendAdminError)
    async def _cannot_suspend_admin(
        request: Request, exc: CannotSuspendAdminError
    ) -> JSONResponse:
        return error_response(403, "Administrators cannot be suspended.", "CANNOT_SUSPEND_ADMIN")

    @app.exception_handler(AccountAlreadySuspendedError)
    async def _already_suspended(
        request: Request, exc: AccountAlreadySuspendedError
    ) -> JSONResponse:
        return error_response(409, "User is already suspended.", "ALREADY_SUSPENDED")

    # --- Catch-all ---

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return error_response(500, "Internal server error.", "INTERNAL_ERROR")
