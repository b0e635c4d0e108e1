"""
Grade & Report Card Schemas
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from campus.modules.attendance.schemas import AttendanceSummary
from campus.modules.grades.models import DEFAULT_MAX_SCORE, AssessmentType
from campus.modules.schools.schemas import SchoolStatsResponse
from campus.modules.shared import UUIDStr


class GradeCreate(BaseModel):
    student_id: UUIDStr
    subject_id: UUIDStr
    academic_term_id: UUIDStr
    assessment_type: AssessmentType
    score: Decimal = Field(..., ge=0)
    max_score: Decimal = Field(DEFAULT_MAX_SCORE, gt=0)
    grade: str | None = Field(None, max_length=5)
    remarks: str | None = Field(None, max_length=1000)


class GradeUpdate(BaseModel):
    score: Decimal | None = Field(None, ge=0)
    max_score: Decimal | None = Field(None, gt=0)
    grade: str | None = Field(None, max_length=5)
    remarks: str | None = Field(None, max_length=1000)


class GradeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    subject_id: str
    academic_term_id: str
    assessment_type: AssessmentType
    score: Decimal
    max_score: Decimal
    grade: str | None = None
    remarks: str | None = None
    recorded_by: str | None = None
    created_at: datetime


class SubjectResult(BaseModel):
    subject_id: str
    subject_name: str
    subject_code: str
    assessments: int
    average: float
    grade: str


class ReportCardResponse(BaseModel):
    student_id: str
    student_number: str
    student_name: str
    term_id: str
    term_name: str
    term_start: date
    term_end: date
    subjects: list[SubjectResult]
    overall_average: float
    overall_grade: str
    attendance: AttendanceSummary


class StudentPerformance(BaseModel):
    student_id: str
    student_number: str
    student_name: str
    subjects: list[SubjectResult]
    overall_average: float | None = None
    overall_grade: str | None = None


class ClassPerformanceResponse(BaseModel):
    class_id: str
    class_name: str
    term_id: str | None = None
    subject_id: str | None = None
    class_average: float | None = None
    students: list[StudentPerformance]


class GradeBand(BaseModel):
    grade: str
    count: int


class SchoolAnalyticsResponse(BaseModel):
    """School statistics plus how its recorded grades are spread."""

    stats: SchoolStatsResponse
    graded_assessments: int
    average_grade: float
    grade_distribution: list[GradeBand]
