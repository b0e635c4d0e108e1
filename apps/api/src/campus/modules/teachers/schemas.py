"""
Teacher Schemas
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from campus.modules.shared import PaginationMeta, UUIDStr
from campus.modules.teachers.models import TeacherStatus


class TeacherCreate(BaseModel):
    user_id: UUIDStr
    employee_id: str = Field(..., min_length=1, max_length=50)
    qualification: str | None = Field(None, max_length=200)
    specialization: str | None = Field(None, max_length=200)
    salary: Decimal | None = Field(None, ge=0)
    hire_date: date | None = None


class TeacherUpdate(BaseModel):
    qualification: str | None = Field(None, max_length=200)
    specialization: str | None = Field(None, max_length=200)
    salary: Decimal | None = Field(None, ge=0)
    hire_date: date | None = None
    status: TeacherStatus | None = None


class TeacherResponse(BaseModel):
    id: str
    user_id: str
    school_id: str
    employee_id: str
    first_name: str
    last_name: str
    email: str
    qualification: str | None = None
    specialization: str | None = None
    salary: Decimal | None = None
    hire_date: date | None = None
    status: TeacherStatus
    created_at: datetime


class TeacherListResponse(BaseModel):
    teachers: list[TeacherResponse]
    pagination: PaginationMeta
