"""
User Models

Identity model shared by every role. School-scoped roles are held through
``SchoolUser`` memberships (see ``campus.modules.schools.models``); the
``role`` column on the user is the global/primary role.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.dialects.postgresql import ENUM
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus.modules.shared import BaseModel

if TYPE_CHECKING:
    from campus.modules.schools.models import SchoolUser


class UserRole(str, Enum):
    """Roles known to the platform."""

    SUPER_ADMIN = "super_admin"
    SUPPORT_ADMIN = "support_admin"
    SALES_ADMIN = "sales_admin"
    CONTENT_ADMIN = "content_admin"
    FINANCE_ADMIN = "finance_admin"
    SCHOOL_ADMIN = "school_admin"
    PRINCIPAL = "principal"
    TEACHER = "teacher"
    STAFF = "staff"
    STUDENT = "student"
    PARENT = "parent"
    GUEST = "guest"


class User(BaseModel):
    """
    User account.

    Platform operators (super_admin and the admin-portal sub-roles) usually
    hold no memberships; everyone else reaches school data through an active
    ``SchoolUser`` row.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    phone: Mapped[str | None] = mapped_column(
        String(20),
        unique=True,
        index=True,
        nullable=True,
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    role: Mapped[UserRole] = mapped_column(
        ENUM(UserRole, name="user_role", create_type=True),
        nullable=False,
        default=UserRole.STUDENT,
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    memberships: Mapped[list["SchoolUser"]] = relationship(
        "SchoolUser",
        back_populates="user",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"

    @property
    def full_name(self) -> str:
        """Return user's full name."""
        return f"{self.first_name} {self.last_name}"

    @property
    def active_memberships(self) -> list["SchoolUser"]:
        return [m for m in self.memberships if m.is_active]
