"""
Announcement & Event Schemas
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from campus.modules.announcements.models import AnnouncementPriority, EventType, TargetAudience


class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=20000)
    target_audience: TargetAudience = TargetAudience.ALL
    priority: AnnouncementPriority = AnnouncementPriority.NORMAL
    publish_date: datetime | None = None
    expires_at: datetime | None = None
    is_published: bool = True


class AnnouncementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    title: str
    content: str
    target_audience: TargetAudience
    priority: AnnouncementPriority
    publish_date: datetime
    expires_at: datetime | None = None
    is_published: bool
    created_by: str | None = None
    created_at: datetime


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    event_type: EventType = EventType.OTHER
    start_date: datetime
    end_date: datetime | None = None
    location: str | None = Field(None, max_length=200)
    target_audience: TargetAudience = TargetAudience.ALL

    @model_validator(mode="after")
    def check_dates(self) -> "EventCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    title: str
    description: str | None = None
    event_type: EventType
    start_date: datetime
    end_date: datetime | None = None
    location: str | None = None
    target_audience: TargetAudience
    created_by: str | None = None
