"""Append-only audit trail of administrative actions."""

import logging
from typing import Any, Optional

from supabase import Client

from trust_engine.core.database import get_supabase
from trust_engine.models.moderation import (
    AuditAction,
    AuditLogEntry,
    AuditLogFilter,
    AuditLogPage,
    Pagination,
)

logger = logging.getLogger(__name__)


class AuditService:
    """Writes and lists audit_logs rows. Rows are never updated or deleted."""

    def __init__(self, supabase: Optional[Client] = None) -> None:
        self._supabase = supabase

    @property
    def supabase(self) -> Client:
        if self._supabase is None:
            self._supabase = get_supabase()
        return self._supabase

    def record(
        self,
        admin_id: str,
        action: AuditAction,
        target_type: str,
        target_id: str,
        details: Optional[dict[str, Any]] = None,
        ip_address: Optional[str] = None,
    ) -> None:
        self.supabase.table("audit_logs").insert(
            {
                "admin_id": admin_id,
                "action": action.value,
                "target_type": target_type,
                "target_id": target_id,
                "details": details or {},
                "ip_address": ip_address,
            }
        ).execute()
        logger.info(
            "Audit: admin=%s action=%s target=%s:%s",
            admin_id,
            action.value,
            target_type,
            target_id,
        )

    def list_entries(self, filters: AuditLogFilter) -> AuditLogPage:
        """List audit entries, newest first."""
        offset = (filters.page - 1) * filters.page_size

        query = self.supabase.table("audit_logs").select("*", count="exact")
        if filters.action is not None:
            query = query.eq("action", filters.action.value)
        if filters.admin_id:
            query = query.eq("admin_id", filters.admin_id)
        if filters.target_type:
            query = query.eq("target_type", filters.target_type)

        result = (
            query.order("created_at", desc=True)
            .range(offset, offset + filters.page_size - 1)
            .execute()
        )

        return AuditLogPage(
            data=[AuditLogEntry(**row) for row in result.data or []],
            pagination=Pagination.build(filters.page, filters.page_size, result.count or 0),
        )
