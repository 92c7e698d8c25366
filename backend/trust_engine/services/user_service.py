"""
User lookups for request authorization.

Maps the Supabase auth id carried by the JWT to the internal users row.
"""

from typing import Optional

from supabase import Client

from trust_engine.core.database import get_supabase
from trust_engine.models.user import UserProfile

_PROFILE_COLUMNS = "id, auth_id, email, username, role, is_suspended, suspended_at, created_at"


class UserNotFoundError(Exception):
    """No users row for the authenticated identity."""

    pass


class UserService:
    """Service for user profile reads."""

    def __init__(self, supabase: Optional[Client] = None):
        self._supabase = supabase

    @property
    def supabase(self) -> Client:
        if self._supabase is None:
            self._supabase = get_supabase()
        return self._supabase

    def get_user_by_auth_id(self, auth_id: str) -> Optional[UserProfile]:
        """
        Fetch user by Supabase auth ID.

        Args:
            auth_id: Supabase auth.uid()

        Returns:
            UserProfile if found, None otherwise
        """
        result = (
            self.supabase.table("users").select(_PROFILE_COLUMNS).eq("auth_id", auth_id).execute()
        )
        if not result.data:
            return None
        return UserProfile(**result.data[0])
