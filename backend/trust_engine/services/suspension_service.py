"""
Account suspensions and the authorization gate that honors them.

Handles:
- Direct suspension by an administrator (report-driven suspensions are
  written by the review_report SQL function)
- Access checks: most recent active suspension wins; an expired one is
  deactivated on read and the request is let through (lazy expiry)
- Manual lift by an administrator
- Bulk expiry for the periodic sweep task
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from supabase import Client

from trust_engine.core.database import get_supabase
from trust_engine.core.logging_config import ModerationLogAdapter
from trust_engine.models.moderation import (
    AccountAlreadySuspendedError,
    AccountSuspendedError,
    AccountSuspension,
    AuditAction,
    CannotSuspendAdminError,
    SuspensionNotFoundError,
)
from trust_engine.services.audit_service import AuditService
from trust_engine.services.target_directory import TargetDirectory
from trust_engine.services.user_service import UserNotFoundError

logger = logging.getLogger(__name__)


class SuspensionService:
    """Service for account suspension records."""

    def __init__(
        self,
        supabase: Optional[Client] = None,
        directory: Optional[TargetDirectory] = None,
        audit: Optional[AuditService] = None,
    ) -> None:
        self._supabase = supabase
        self._directory = directory
        self._audit = audit

    @property
    def supabase(self) -> Client:
        if self._supabase is None:
            self._supabase = get_supabase()
        return self._supabase

    @property
    def directory(self) -> TargetDirectory:
        if self._directory is None:
            self._directory = TargetDirectory(supabase=self.supabase)
        return self._directory

    @property
    def audit(self) -> AuditService:
        if self._audit is None:
            self._audit = AuditService(supabase=self.supabase)
        return self._audit

    def suspend_user(
        self,
        user_id: str,
        admin_id: str,
        reason: str,
        days: Optional[int] = None,
        ip_address: Optional[str] = None,
    ) -> AccountSuspension:
        """
        Suspend an account directly, outside the report flow.

        Temporary for `days` when given, permanent otherwise. The suspension
        record, the users flag and the audit entry are written in one
        transaction by the suspend_user SQL function.

        Raises:
            UserNotFoundError: No such user
            CannotSuspendAdminError: Target is an administrator
            AccountAlreadySuspendedError: A suspension is already in force
        """
        rpc_params = {
            "p_user_id": user_id,
            "p_admin_id": admin_id,
            "p_reason": reason,
            "p_days": days,
            "p_ip_address": ip_address,
        }
        try:
            result = self.supabase.rpc("suspend_user", rpc_params).execute()
        except Exception as e:
            error_msg = str(e)
            if "USER_NOT_FOUND" in error_msg:
                raise UserNotFoundError(user_id)
            if "CANNOT_SUSPEND_ADMIN" in error_msg:
                raise CannotSuspendAdminError(f"User {user_id} is an administrator")
            if "ALREADY_SUSPENDED" in error_msg:
                raise AccountAlreadySuspendedError(f"User {user_id} is already suspended")
            raise

        suspension = AccountSuspension(**result.data[0])
        log = ModerationLogAdapter(logger, user_id=user_id, admin_id=admin_id)
        log.info(
            "Account suspended: type=%s ends_at=%s", suspension.type.value, suspension.ends_at
        )
        return suspension

    def get_active(self, user_id: str) -> Optional[AccountSuspension]:
        """Most recent active suspension for a user, if any."""
        result = (
            self.supabase.table("account_suspensions")
            .select("*")
            .eq("user_id", user_id)
            .eq("is_active", True)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        return AccountSuspension(**result.data[0]) if result.data else None

    def check_access(self, user_id: str, now: Optional[datetime] = None) -> None:
        """
        Authorization gate.

        Raises:
            AccountSuspendedError: Most recent active suspension still in force
        """
        suspension = self.get_active(user_id)
        if suspension is None:
            return

        now = now or datetime.now(timezone.utc)
        if suspension.ends_at is not None and suspension.ends_at <= now:
            self._expire(suspension)
            return

        raise AccountSuspendedError(suspension)

    def _expire(self, suspension: AccountSuspension) -> None:
        self.supabase.table("account_suspensions").update({"is_active": False}).eq(
            "id", suspension.id
        ).eq("is_active", True).execute()
        if self.get_active(suspension.user_id) is None:
            self.directory.set_user_suspended(suspension.user_id, False)
        logger.info("Suspension expired: id=%s user=%s", suspension.id, suspension.user_id)

    def lift_suspension(
        self,
        user_id: str,
        admin_id: str,
        reason: str,
        ip_address: Optional[str] = None,
    ) -> int:
        """
        Revoke every active suspension for a user.

        Returns:
            Number of suspension records revoked

        Raises:
            SuspensionNotFoundError: User has no active suspension
        """
        result = (
            self.supabase.table("account_suspensions")
            .update(
                {
                    "is_active": False,
                    "revoked_at": datetime.now(timezone.utc).isoformat(),
                    "revoked_by": admin_id,
                    "revocation_reason": reason,
                }
            )
            .eq("user_id", user_id)
            .eq("is_active", True)
            .execute()
        )
        if not result.data:
            raise SuspensionNotFoundError(f"User {user_id} has no active suspension")

        self.directory.set_user_suspended(user_id, False)
        self.audit.record(
            admin_id=admin_id,
            action=AuditAction.ACCOUNT_UNSUSPENDED,
            target_type="user",
            target_id=user_id,
            details={"reason": reason},
            ip_address=ip_address,
        )
        log = ModerationLogAdapter(logger, user_id=user_id, admin_id=admin_id)
        log.info("Suspension lifted: revoked=%d", len(result.data))
        return len(result.data)

    def expire_due(self, now: Optional[datetime] = None) -> int:
        """
        Deactivate every active suspension whose ends_at has passed.

        Returns:
            Number of suspensions expired
        """
        now = now or datetime.now(timezone.utc)
        result = (
            self.supabase.table("account_suspensions")
            .update({"is_active": False})
            .eq("is_active", True)
            .lt("ends_at", now.isoformat())
            .execute()
        )
        expired = result.data or []

        for user_id in {row["user_id"] for row in expired}:
            if self.get_active(user_id) is None:
                self.directory.set_user_suspended(user_id, False)

        if expired:
            logger.info("Suspensions expired by sweep: %d", len(expired))
        return len(expired)
