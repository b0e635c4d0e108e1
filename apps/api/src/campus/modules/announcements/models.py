"""
Announcement and Event Models
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import ENUM, UUID
from sqlalchemy.orm import Mapped, mapped_column

from campus.modules.shared import BaseModel, utcnow


class TargetAudience(str, Enum):
    ALL = "all"
    STUDENTS = "students"
    TEACHERS = "teachers"
    PARENTS = "parents"
    STAFF = "staff"


class AnnouncementPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class EventType(str, Enum):
    EXAM = "exam"
    HOLIDAY = "holiday"
    MEETING = "meeting"
    SPORTS = "sports"
    CULTURAL = "cultural"
    ACADEMIC = "academic"
    OTHER = "other"


class Announcement(BaseModel):
    __tablename__ = "announcements"

    school_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    target_audience: Mapped[TargetAudience] = mapped_column(
        ENUM(TargetAudience, name="target_audience", create_type=True),
        nullable=False,
        default=TargetAudience.ALL,
    )
    priority: Mapped[AnnouncementPriority] = mapped_column(
        ENUM(AnnouncementPriority, name="announcement_priority", create_type=True),
        nullable=False,
        default=AnnouncementPriority.NORMAL,
    )
    publish_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )


class Event(BaseModel):
    __tablename__ = "events"

    school_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_type: Mapped[EventType] = mapped_column(
        ENUM(EventType, name="event_type", create_type=True),
        nullable=False,
        default=EventType.OTHER,
    )
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    target_audience: Mapped[TargetAudience] = mapped_column(
        ENUM(TargetAudience, name="target_audience", create_type=False),
        nullable=False,
        default=TargetAudience.ALL,
    )
    created_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
