"""
Teacher Models
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import ENUM, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus.modules.shared import BaseModel

if TYPE_CHECKING:
    from campus.modules.users.models import User


class TeacherStatus(str, Enum):
    ACTIVE = "active"
    ON_LEAVE = "on_leave"
    INACTIVE = "inactive"


class Teacher(BaseModel):
    """Employment record of a teacher within one school."""

    __tablename__ = "teachers"
    __table_args__ = (
        UniqueConstraint("school_id", "employee_id", name="uq_teachers_school_employee"),
    )

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    school_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[str] = mapped_column(String(50), nullable=False)
    qualification: Mapped[str | None] = mapped_column(String(200), nullable=True)
    specialization: Mapped[str | None] = mapped_column(String(200), nullable=True)
    salary: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    hire_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[TeacherStatus] = mapped_column(
        ENUM(TeacherStatus, name="teacher_status", create_type=True),
        nullable=False,
        default=TeacherStatus.ACTIVE,
    )

    user: Mapped["User"] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Teacher(id={self.id}, employee_id={self.employee_id}, school_id={self.school_id})>"
