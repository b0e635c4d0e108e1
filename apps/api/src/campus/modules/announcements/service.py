"""
Announcements & Events Service

Members only see published, unexpired announcements addressed to everyone
or to their audience. Staff with edit rights also see drafts.
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.tenancy import SchoolContext
from campus.modules.announcements.models import Announcement, Event, TargetAudience
from campus.modules.announcements.schemas import AnnouncementCreate, EventCreate
from campus.modules.shared import utcnow
from campus.modules.users.models import UserRole

logger = logging.getLogger(__name__)

ROLE_AUDIENCE = {
    UserRole.STUDENT.value: TargetAudience.STUDENTS,
    UserRole.PARENT.value: TargetAudience.PARENTS,
    UserRole.TEACHER.value: TargetAudience.TEACHERS,
    UserRole.STAFF.value: TargetAudience.STAFF,
}


def audience_for(context: SchoolContext, requested: TargetAudience | None) -> TargetAudience | None:
    """
    Audience to filter by. Managers see everything unless they ask for a
    specific audience; other members are limited to their own.
    """
    if context.is_manager:
        return requested
    return ROLE_AUDIENCE.get(context.role, TargetAudience.ALL)


def _audience_clause(column, audience: TargetAudience | None):
    if audience is None:
        return None
    if audience == TargetAudience.ALL:
        return column == TargetAudience.ALL
    return or_(column == TargetAudience.ALL, column == audience)


async def create_announcement(
    db: AsyncSession,
    context: SchoolContext,
    data: AnnouncementCreate,
) -> Announcement:
    fields = data.model_dump()
    if fields["publish_date"] is None:
        fields["publish_date"] = utcnow()
    announcement = Announcement(school_id=context.school_id, created_by=context.user.id, **fields)
    db.add(announcement)
    await db.flush()
    await db.refresh(announcement)
    logger.info(f"Announcement {announcement.id} created in school {context.school_id}")
    return announcement


async def list_announcements(
    db: AsyncSession,
    context: SchoolContext,
    *,
    audience: TargetAudience | None = None,
    limit: int = 50,
) -> list[Announcement]:
    now = utcnow()
    query = select(Announcement).where(
        Announcement.school_id == context.school_id,
        or_(Announcement.expires_at.is_(None), Announcement.expires_at > now),
    )
    if not context.has("announcements:edit"):
        query = query.where(Announcement.is_published.is_(True), Announcement.publish_date <= now)

    clause = _audience_clause(Announcement.target_audience, audience_for(context, audience))
    if clause is not None:
        query = query.where(clause)

    result = await db.execute(query.order_by(Announcement.publish_date.desc()).limit(limit))
    return list(result.scalars().all())


async def create_event(db: AsyncSession, context: SchoolContext, data: EventCreate) -> Event:
    event = Event(school_id=context.school_id, created_by=context.user.id, **data.model_dump())
    db.add(event)
    await db.flush()
    await db.refresh(event)
    logger.info(f"Event {event.id} created in school {context.school_id}")
    return event


async def list_events(
    db: AsyncSession,
    context: SchoolContext,
    *,
    upcoming_only: bool = False,
    audience: TargetAudience | None = None,
    limit: int = 100,
) -> list[Event]:
    query = select(Event).where(Event.school_id == context.school_id)
    if upcoming_only:
        now = utcnow()
        query = query.where(or_(Event.start_date >= now, Event.end_date >= now))

    clause = _audience_clause(Event.target_audience, audience_for(context, audience))
    if clause is not None:
        query = query.where(clause)

    result = await db.execute(query.order_by(Event.start_date).limit(limit))
    return list(result.scalars().all())
