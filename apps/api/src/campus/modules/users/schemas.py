"""
User & Membership Schemas
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from campus.modules.users.models import UserRole


class MemberResponse(BaseModel):
    """A school member: the user plus their role in that school."""

    user_id: str
    membership_id: str
    email: str
    first_name: str
    last_name: str
    phone: str | None = None
    avatar_url: str | None = None
    role: UserRole
    permissions: dict = {}
    is_active: bool
    joined_at: datetime


class MemberAddRequest(BaseModel):
    email: EmailStr
    role: UserRole
    permissions: dict[str, bool] | None = None


class MemberRoleUpdate(BaseModel):
    role: UserRole
    permissions: dict[str, bool] | None = None


class UserUpdate(BaseModel):
    """Profile fields a user (or their school manager) may change."""

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=20)
    avatar_url: str | None = Field(None, max_length=500)
