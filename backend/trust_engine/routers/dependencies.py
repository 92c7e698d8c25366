"""
Shared router dependencies.

Resolve the authenticated identity to a users row, then apply the
authorization gate (active suspension) and, for admin routes, the role check.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from trust_engine.core.auth import AuthUser, require_auth_from_state
from trust_engine.models.user import UserProfile
from trust_engine.services.suspension_service import SuspensionService
from trust_engine.services.user_service import UserNotFoundError, UserService


def get_user_service() -> UserService:
    """Dependency to get UserService instance."""
    return UserService()


def get_suspension_service() -> SuspensionService:
    return SuspensionService()


async def get_current_profile(
    user: AuthUser = Depends(require_auth_from_state),
    user_service: UserService = Depends(get_user_service),
) -> UserProfile:
    profile = user_service.get_user_by_auth_id(user.auth_id)
    if not profile:
        raise UserNotFoundError(user.auth_id)
    return profile


async def require_active_account(
    profile: UserProfile = Depends(get_current_profile),
    suspension_service: SuspensionService = Depends(get_suspension_service),
) -> UserProfile:
    """Reject suspended accounts (403 ACCOUNT_SUSPENDED)."""
    suspension_service.check_access(profile.id)
    return profile


async def require_admin(
    profile: UserProfile = Depends(require_active_account),
) -> UserProfile:
    if not profile.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return profile


def get_client_ip(request: Request) -> Optional[str]:
    """Client IP for audit entries, honoring the reverse proxy headers."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    return request.client.host if request.client else None
