"""
Academic Structure Schemas
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from campus.modules.academics.models import DEFAULT_CLASS_CAPACITY
from campus.modules.shared import UUIDStr


class TermCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    start_date: date
    end_date: date
    is_current: bool = False

    @model_validator(mode="after")
    def check_dates(self) -> "TermCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TermResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    name: str
    start_date: date
    end_date: date
    is_current: bool


class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)
    is_core: bool = False
    description: str | None = Field(None, max_length=1000)


class SubjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    name: str
    code: str
    is_core: bool
    description: str | None = None


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    level: str | None = Field(None, max_length=50)
    section: str | None = Field(None, max_length=50)
    capacity: int = Field(DEFAULT_CLASS_CAPACITY, ge=1, le=500)
    class_teacher_id: UUIDStr | None = None
    academic_term_id: UUIDStr | None = None


class ClassUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    level: str | None = Field(None, max_length=50)
    section: str | None = Field(None, max_length=50)
    capacity: int | None = Field(None, ge=1, le=500)
    class_teacher_id: UUIDStr | None = None
    academic_term_id: UUIDStr | None = None


class ClassResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    name: str
    level: str | None = None
    section: str | None = None
    capacity: int
    class_teacher_id: str | None = None
    academic_term_id: str | None = None
    created_at: datetime


class ClassListItem(ClassResponse):
    student_count: int = 0


class ClassStudent(BaseModel):
    id: str
    student_number: str
    first_name: str
    last_name: str
    status: str


class ClassDetailResponse(ClassResponse):
    students: list[ClassStudent]
