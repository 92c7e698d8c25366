"""
Directory of reportable entities (contents, creators, messages, users).

The engine does not own these tables. It reads them to check a target
exists, to find who owns it, and to snapshot it for the admin detail view;
the only write here is the users.is_suspended flag, cleared when a
suspension is lifted or expires.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from supabase import Client

from trust_engine.core.database import get_supabase
from trust_engine.models.moderation import (
    Report,
    ReportType,
    TargetResolution,
    UserSummary,
)


class TargetDirectory:
    """Lookups and the permitted mutations on report targets."""

    def __init__(self, supabase: Optional[Client] = None) -> None:
        self._supabase = supabase

    @property
    def supabase(self) -> Client:
        if self._supabase is None:
            self._supabase = get_supabase()
        return self._supabase

    def _first(self, table: str, columns: str, row_id: str) -> Optional[dict[str, Any]]:
        result = self.supabase.table(table).select(columns).eq("id", row_id).execute()
        return result.data[0] if result.data else None

    # =========================================================================
    # Resolution
    # =========================================================================

    def resolve(self, report_type: ReportType, target_id: str) -> TargetResolution:
        """
        Check the target exists and find its owning user (and creator).

        Content resolves through its creator to the creator's account so that
        a creator cannot report their own posts.
        """
        if report_type == ReportType.CONTENT:
            content = self._first("contents", "id, creator_id", target_id)
            if content is None:
                return TargetResolution(exists=False)
            creator_id = content.get("creator_id")
            return TargetResolution(
                exists=True,
                owner_creator_id=creator_id,
                owner_user_id=self.get_creator_owner(creator_id) if creator_id else None,
            )

        if report_type == ReportType.CREATOR:
            creator = self._first("creators", "id, user_id", target_id)
            if creator is None:
                return TargetResolution(exists=False)
            return TargetResolution(
                exists=True,
                owner_creator_id=creator["id"],
                owner_user_id=creator.get("user_id"),
            )

        if report_type == ReportType.MESSAGE:
            message = self._first("messages", "id, sender_id", target_id)
            if message is None:
                return TargetResolution(exists=False)
            return TargetResolution(exists=True, owner_user_id=message.get("sender_id"))

        user = self._first("users", "id", target_id)
        if user is None:
            return TargetResolution(exists=False)
        return TargetResolution(exists=True, owner_user_id=user["id"])

    def get_creator_owner(self, creator_id: str) -> Optional[str]:
        """Account id behind a creator profile, or None if the creator is gone."""
        creator = self._first("creators", "user_id", creator_id)
        return creator.get("user_id") if creator else None

    def get_user_summary(self, user_id: str) -> Optional[UserSummary]:
        user = self._first("users", "id, username, email", user_id)
        return UserSummary(**user) if user else None

    # =========================================================================
    # Suspension flag
    # =========================================================================

    def set_user_suspended(self, user_id: str, suspended: bool) -> bool:
        """Flip the account's suspended flag. Returns False if the user is gone."""
        now = datetime.now(timezone.utc).isoformat()
        result = (
            self.supabase.table("users")
            .update(
                {
                    "is_suspended": suspended,
                    "suspended_at": now if suspended else None,
                    "updated_at": now,
                }
            )
            .eq("id", user_id)
            .execute()
        )
        return bool(result.data)

    # =========================================================================
    # Admin snapshot
    # =========================================================================

    def snapshot(self, report: Report) -> dict[str, Any]:
        """
        Current state of the report's target for the admin detail view.

        Read live on every call; an empty dict means the target was deleted.
        """
        if report.report_type == ReportType.CONTENT and report.target_content_id:
            content = self._first(
                "contents",
                "id, creator_id, type, text, media, visibility, is_published, created_at",
                report.target_content_id,
            )
            if content is None:
                return {}
            creator = None
            if content.get("creator_id"):
                creator = self._first("creators", "id, display_name", content["creator_id"])
            return {"content": content, "creator": creator}

        if report.report_type == ReportType.CREATOR and report.target_creator_id:
            creator = self._first(
                "creators",
                "id, user_id, display_name, bio, subscriber_count, verified, created_at",
                report.target_creator_id,
            )
            if creator is None:
                return {}
            user = None
            if creator.get("user_id"):
                user = self._first("users", "id, email, username", creator["user_id"])
            return {"creator": creator, "user": user}

        if report.report_type == ReportType.MESSAGE and report.target_message_id:
            message = self._first(
                "messages", "id, sender_id, text, created_at", report.target_message_id
            )
            if message is None:
                return {}
            sender = None
            if message.get("sender_id"):
                sender = self._first("users", "id, username", message["sender_id"])
            return {"message": message, "sender": sender}

        if report.report_type == ReportType.USER and report.target_user_id:
            user = self._first(
                "users", "id, email, username, is_suspended, created_at", report.target_user_id
            )
            return {"user": user} if user else {}

        return {}
