"""
Parent Link Schemas
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from campus.modules.parent_links.models import ParentLinkStatus
from campus.modules.shared import UUIDStr


class LinkCodeRequest(BaseModel):
    student_id: UUIDStr


class LinkClaimRequest(BaseModel):
    code: str = Field(..., min_length=8, max_length=16)


class ParentLinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    student_id: str
    code: str
    status: ParentLinkStatus
    parent_id: str | None = None
    expires_at: datetime
    reviewed_at: datetime | None = None


class LinkedChild(BaseModel):
    student_id: str
    school_id: str
    student_number: str
    first_name: str
    last_name: str
    class_id: str | None = None
    relationship: str
