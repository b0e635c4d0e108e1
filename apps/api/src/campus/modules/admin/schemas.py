"""
Admin Portal Schemas
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from campus.modules.auth.schemas import UserResponse
from campus.modules.schools.models import SubscriptionPlan
from campus.modules.shared import PaginationMeta


class ActivityItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    action: str
    user_id: str | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    success: bool
    created_at: datetime


class AdminOverview(BaseModel):
    active_schools: int
    total_schools: int
    total_users: int
    total_students: int
    total_teachers: int
    revenue_30d: float
    paid_schools: int
    plan_distribution: dict[str, int]
    recent_activity: list[ActivityItem]


class AdminUserListResponse(BaseModel):
    users: list[UserResponse]
    pagination: PaginationMeta


class SuspendRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class SubscriptionUpdate(BaseModel):
    plan: SubscriptionPlan
    expires_at: datetime | None = None


class FeatureUpdate(BaseModel):
    features: dict[str, Any]


class SystemLogItem(ActivityItem):
    old_values: dict | None = None
    new_values: dict | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    details: str | None = None


class SystemLogListResponse(BaseModel):
    logs: list[SystemLogItem]
    pagination: PaginationMeta


class BroadcastRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)
    audience: Literal["all", "schools", "admins"] = "all"
    type: str = Field("announcement", max_length=50)


class BroadcastResponse(BaseModel):
    success: bool = True
    recipients: int


class JobInfo(BaseModel):
    job_id: str
    next_run_time: str | None = None
    is_paused: bool


class JobListResponse(BaseModel):
    jobs: list[JobInfo]


class JobToggleResponse(BaseModel):
    job_id: str
    paused: bool
