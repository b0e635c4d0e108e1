"""
Student Schemas
"""

from datetime import date, datetime

from pydantic import BaseModel, EmailStr, Field

from campus.modules.shared import PaginationMeta, UUIDStr
from campus.modules.students.models import Gender, StudentStatus


class StudentBase(BaseModel):
    class_id: UUIDStr | None = None
    date_of_birth: date | None = None
    gender: Gender | None = None
    blood_group: str | None = Field(None, max_length=5)
    address: str | None = Field(None, max_length=500)
    guardian_name: str | None = Field(None, max_length=200)
    guardian_phone: str | None = Field(None, max_length=20)
    guardian_email: EmailStr | None = None
    medical_conditions: str | None = Field(None, max_length=2000)


class StudentCreate(StudentBase):
    user_id: UUIDStr
    student_number: str = Field(..., min_length=1, max_length=50)
    admission_date: date | None = None


class StudentUpdate(StudentBase):
    """Only these fields can change after enrolment."""

    status: StudentStatus | None = None


class StudentResponse(BaseModel):
    id: str
    user_id: str
    school_id: str
    student_number: str
    first_name: str
    last_name: str
    email: str
    class_id: str | None = None
    date_of_birth: date | None = None
    gender: Gender | None = None
    blood_group: str | None = None
    address: str | None = None
    guardian_name: str | None = None
    guardian_phone: str | None = None
    guardian_email: str | None = None
    medical_conditions: str | None = None
    admission_date: date | None = None
    status: StudentStatus
    created_at: datetime


class StudentListResponse(BaseModel):
    students: list[StudentResponse]
    pagination: PaginationMeta
