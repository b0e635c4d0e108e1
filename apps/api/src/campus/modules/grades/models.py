"""
Grade Models
"""

from decimal import Decimal
from enum import Enum

from sqlalchemy import ForeignKey, Numeric, String, Text
from sqlalchemy.dialects.postgresql import ENUM, UUID
from sqlalchemy.orm import Mapped, mapped_column

from campus.modules.shared import BaseModel

DEFAULT_MAX_SCORE = Decimal("100")


class AssessmentType(str, Enum):
    TEST = "test"
    EXAM = "exam"
    ASSIGNMENT = "assignment"
    PROJECT = "project"
    CONTINUOUS_ASSESSMENT = "continuous_assessment"


class Grade(BaseModel):
    __tablename__ = "grades"

    student_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subject_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    academic_term_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("academic_terms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assessment_type: Mapped[AssessmentType] = mapped_column(
        ENUM(AssessmentType, name="assessment_type", create_type=True),
        nullable=False,
    )
    score: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    max_score: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=DEFAULT_MAX_SCORE)
    grade: Mapped[str | None] = mapped_column(String(5), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    recorded_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
