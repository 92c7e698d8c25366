"""
Middleware for FastAPI.

Contains:
- CorrelationIDMiddleware: Extracts/generates request correlation IDs
- JWTValidationMiddleware: Validates JWT tokens and attaches user context
"""

import logging
import uuid
from contextvars import ContextVar

from fastapi import HTTPException, Request
from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from trust_engine.core.auth import AuthOptionalUser, decode_supabase_token

logger = logging.getLogger(__name__)

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Get the current correlation ID from context."""
    return correlation_id_var.get()


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Takes the correlation ID from X-Request-ID / X-Correlation-ID or generates
    one, exposes it on request.state and to the logging filter, and echoes it
    back in the X-Request-ID response header.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )
        request.state.correlation_id = correlation_id
        token = correlation_id_var.set(correlation_id)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = correlation_id
            return response
        finally:
            correlation_id_var.reset(token)


class JWTValidationMiddleware(BaseHTTPMiddleware):
    """
    Validates the Bearer token (if any) and attaches request.state.user.

    Requests without a valid token continue as anonymous; protected routes
    reject them through require_auth_from_state.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.user = AuthOptionalUser(is_authenticated=False)
        request.state.token_error = None

        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token = auth_header[7:]
            try:
                payload = await decode_supabase_token(token)
                if payload.get("sub"):
                    request.state.user = AuthOptionalUser(
                        auth_id=payload["sub"],
                        email=payload.get("email"),
                        is_authenticated=True,
                    )
            except JWTError as e:
                request.state.token_error = str(e)
            except HTTPException as e:
                request.state.token_error = str(e.detail)

        return await call_next(request)
