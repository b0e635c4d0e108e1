"""
School Schemas
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from campus.modules.schools.models import SchoolStatus, SchoolType, SubscriptionPlan
from campus.modules.shared import PaginationMeta


class SchoolAdminAccount(BaseModel):
    """Optional administrator account created together with a school."""

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=20)


class SchoolCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    email: EmailStr
    phone: str | None = Field(None, max_length=20)
    address: str | None = Field(None, max_length=500)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    country: str = Field("Kenya", max_length=100)
    school_type: SchoolType = SchoolType.MIXED
    motto: str | None = Field(None, max_length=300)
    logo_url: str | None = Field(None, max_length=500)
    admin: SchoolAdminAccount | None = None


class SchoolUpdate(BaseModel):
    """Fields a school administrator may change."""

    name: str | None = Field(None, min_length=2, max_length=200)
    phone: str | None = Field(None, max_length=20)
    address: str | None = Field(None, max_length=500)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    country: str | None = Field(None, max_length=100)
    school_type: SchoolType | None = None
    motto: str | None = Field(None, max_length=300)
    logo_url: str | None = Field(None, max_length=500)


class SchoolStatusUpdate(BaseModel):
    status: SchoolStatus
    reason: str | None = Field(None, max_length=500)


class SchoolResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    name: str
    email: str
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    country: str
    school_type: SchoolType
    motto: str | None = None
    logo_url: str | None = None
    subscription_plan: SubscriptionPlan
    subscription_expires_at: datetime | None = None
    settings: dict = {}
    status: SchoolStatus
    is_active: bool
    created_at: datetime


class SchoolPublicResponse(BaseModel):
    """Search result shown to unauthenticated visitors."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    name: str
    city: str | None = None
    country: str
    school_type: SchoolType
    logo_url: str | None = None


class SchoolCounts(BaseModel):
    members: int = 0
    students: int = 0
    teachers: int = 0
    classes: int = 0


class SchoolDetailResponse(SchoolResponse):
    counts: SchoolCounts


class SchoolCreateResponse(BaseModel):
    school: SchoolResponse
    admin_user_id: str | None = None
    message: str


class SchoolListItem(SchoolResponse):
    member_count: int = 0
    student_count: int = 0


class SchoolListResponse(BaseModel):
    schools: list[SchoolListItem]
    pagination: PaginationMeta


class EnrollmentPoint(BaseModel):
    month: str
    count: int


class SchoolStatsResponse(BaseModel):
    school_id: str
    active_students: int
    active_teachers: int
    classes: int
    subjects: int
    attendance_records_30d: int
    revenue_30d: float
    announcements_7d: int
    enrollment_trend: list[EnrollmentPoint]
