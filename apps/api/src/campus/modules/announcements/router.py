"""
Announcements & Events Routers

Endpoints:
- POST /announcements/school/{school_id} - Publish an announcement
- GET /announcements/school/{school_id} - Current announcements for the caller
- POST /events/school/{school_id} - Create an event
- GET /events/school/{school_id} - School calendar
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.database import get_db
from campus.core.tenancy import SchoolContext, require_permission
from campus.modules.announcements import service
from campus.modules.announcements.models import TargetAudience
from campus.modules.announcements.schemas import (
    AnnouncementCreate,
    AnnouncementResponse,
    EventCreate,
    EventResponse,
)

announcements_router = APIRouter()
events_router = APIRouter()


@announcements_router.post(
    "/school/{school_id}",
    response_model=AnnouncementResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_announcement(
    data: AnnouncementCreate,
    context: SchoolContext = Depends(require_permission("announcements:create")),
    db: AsyncSession = Depends(get_db),
) -> AnnouncementResponse:
    announcement = await service.create_announcement(db, context, data)
    return AnnouncementResponse.model_validate(announcement)


@announcements_router.get("/school/{school_id}", response_model=list[AnnouncementResponse])
async def list_announcements(
    audience: TargetAudience | None = None,
    limit: int = Query(50, ge=1, le=200),
    context: SchoolContext = Depends(require_permission("announcements:view")),
    db: AsyncSession = Depends(get_db),
) -> list[AnnouncementResponse]:
    announcements = await service.list_announcements(db, context, audience=audience, limit=limit)
    return [AnnouncementResponse.model_validate(a) for a in announcements]


@events_router.post(
    "/school/{school_id}",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_event(
    data: EventCreate,
    context: SchoolContext = Depends(require_permission("events:create")),
    db: AsyncSession = Depends(get_db),
) -> EventResponse:
    event = await service.create_event(db, context, data)
    return EventResponse.model_validate(event)


@events_router.get("/school/{school_id}", response_model=list[EventResponse])
async def list_events(
    upcoming_only: bool = False,
    audience: TargetAudience | None = None,
    limit: int = Query(100, ge=1, le=500),
    context: SchoolContext = Depends(require_permission("events:view")),
    db: AsyncSession = Depends(get_db),
) -> list[EventResponse]:
    events = await service.list_events(
        db, context, upcoming_only=upcoming_only, audience=audience, limit=limit
    )
    return [EventResponse.model_validate(e) for e in events]
