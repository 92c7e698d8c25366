"""Account model as seen by the trust engine."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserRole(str, Enum):
    SUBSCRIBER = "subscriber"
    CREATOR = "creator"
    ADMIN = "admin"


class UserProfile(BaseModel):
    """Subset of the users row the engine reads for authorization."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    auth_id: str
    email: Optional[str] = None
    username: Optional[str] = None
    role: UserRole = UserRole.SUBSCRIBER
    is_suspended: bool = False
    suspended_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
