"""
School Models

Schools are the tenants of the platform. ``SchoolUser`` binds a user to a
school with a school-scoped role and optional permission overrides.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import ENUM, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus.modules.shared import BaseModel, utcnow
from campus.modules.users.models import UserRole

if TYPE_CHECKING:
    from campus.modules.users.models import User


class SchoolStatus(str, Enum):
    """Status of a school tenant."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    DEACTIVATED = "deactivated"


class SchoolType(str, Enum):
    NURSERY = "nursery"
    PRIMARY = "primary"
    SECONDARY = "secondary"
    TERTIARY = "tertiary"
    MIXED = "mixed"


class SubscriptionPlan(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PRO = "pro"
    PREMIUM = "premium"


class School(BaseModel):
    """
    School tenant model.

    All school-scoped data (memberships, students, grades, fees, ...)
    references this model via ``school_id``.
    """

    __tablename__ = "schools"

    code: Mapped[str] = mapped_column(String(20), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)

    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    country: Mapped[str] = mapped_column(String(100), nullable=False, default="Kenya")

    school_type: Mapped[SchoolType] = mapped_column(
        ENUM(SchoolType, name="school_type", create_type=True),
        nullable=False,
        default=SchoolType.MIXED,
    )
    motto: Mapped[str | None] = mapped_column(Text, nullable=True)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    subscription_plan: Mapped[SubscriptionPlan] = mapped_column(
        ENUM(SubscriptionPlan, name="subscription_plan", create_type=True),
        nullable=False,
        default=SubscriptionPlan.FREE,
    )
    subscription_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Free-form school configuration, e.g. {"features": {"sms": true}}
    settings: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)

    status: Mapped[SchoolStatus] = mapped_column(
        ENUM(SchoolStatus, name="school_status", create_type=True),
        nullable=False,
        default=SchoolStatus.ACTIVE,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    memberships: Mapped[list["SchoolUser"]] = relationship(
        "SchoolUser",
        back_populates="school",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<School(id={self.id}, code={self.code}, status={self.status.value})>"


class SchoolUser(BaseModel):
    """Membership of a user in a school."""

    __tablename__ = "school_users"
    __table_args__ = (UniqueConstraint("school_id", "user_id", name="uq_school_users_school_user"),)

    school_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[UserRole] = mapped_column(
        ENUM(UserRole, name="user_role", create_type=False),
        nullable=False,
    )
    # Overrides on top of the role's default permissions, e.g. {"fees:edit": true}
    permissions: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    school: Mapped["School"] = relationship(
        "School",
        back_populates="memberships",
        lazy="selectin",
    )
    user: Mapped["User"] = relationship(
        "User",
        back_populates="memberships",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<SchoolUser(school_id={self.school_id}, user_id={self.user_id}, role={self.role.value})>"
