"""
Dashboard Service

Assembles the widgets for each dashboard from the feature services. No
dashboard owns data of its own.
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser
from campus.core.permissions import STAFF_ROLES
from campus.core.tenancy import check_school_access, ensure_staff, parse_school_id
from campus.modules.announcements import service as announcement_service
from campus.modules.announcements.models import Announcement, Event, TargetAudience
from campus.modules.announcements.schemas import AnnouncementResponse, EventResponse
from campus.modules.attendance.schemas import AttendanceSummary
from campus.modules.attendance.service import student_summary
from campus.modules.dashboard.schemas import (
    ChildOverview,
    GuestDashboard,
    ParentDashboard,
    SchoolDashboard,
    StudentDashboard,
)
from campus.modules.fees.service import student_fee_status
from campus.modules.grades.schemas import GradeResponse
from campus.modules.grades.service import list_student_grades
from campus.modules.messaging.service import unread_count
from campus.modules.parent_links.service import list_children
from campus.modules.schools.models import School
from campus.modules.schools.repository import SchoolRepository
from campus.modules.schools.schemas import SchoolPublicResponse
from campus.modules.schools.service import get_school_stats
from campus.modules.shared import utcnow
from campus.modules.shared.errors import InvalidRequestError, NotFoundError
from campus.modules.students import repository as student_repository
from campus.modules.students.service import to_response
from campus.modules.users.models import UserRole

logger = logging.getLogger(__name__)

RECENT_GRADES = 5
FEED_LIMIT = 10


def _announcements(items) -> list[AnnouncementResponse]:
    return [AnnouncementResponse.model_validate(a) for a in items]


def _events(items) -> list[EventResponse]:
    return [EventResponse.model_validate(e) for e in items]


async def _recent_grades(db: AsyncSession, student_id: str) -> list[GradeResponse]:
    grades = await list_student_grades(db, student_id)
    return [GradeResponse.model_validate(g) for g in grades[:RECENT_GRADES]]


async def student_dashboard(db: AsyncSession, user: CurrentUser) -> StudentDashboard:
    """Own profile, attendance, latest grades, fees and the school feed."""
    unread = await unread_count(db, user.id)
    students = await student_repository.get_for_user(db, user.id)
    if not students:
        return StudentDashboard(attendance=AttendanceSummary(), unread_notifications=unread)

    student = students[0]
    context = check_school_access(user, student.school_id)
    return StudentDashboard(
        student=to_response(student),
        attendance=await student_summary(db, student.id),
        recent_grades=await _recent_grades(db, student.id),
        fees=await student_fee_status(db, student),
        announcements=_announcements(
            await announcement_service.list_announcements(db, context, limit=FEED_LIMIT)
        ),
        upcoming_events=_events(
            await announcement_service.list_events(db, context, upcoming_only=True, limit=FEED_LIMIT)
        ),
        unread_notifications=unread,
    )


async def parent_dashboard(db: AsyncSession, user: CurrentUser) -> ParentDashboard:
    """One overview per linked child plus announcements from the children's schools."""
    overviews = []
    for child in await list_children(db, user.id):
        student = await student_repository.get_by_id(db, child.student_id)
        if student is None:
            continue
        overviews.append(
            ChildOverview(
                child=child,
                attendance=await student_summary(db, student.id),
                recent_grades=await _recent_grades(db, student.id),
                fees=await student_fee_status(db, student),
            )
        )

    announcements = []
    for school_id in sorted({c.child.school_id for c in overviews}):
        if school_id not in user.memberships:
            continue
        context = check_school_access(user, school_id)
        announcements.extend(
            await announcement_service.list_announcements(db, context, limit=FEED_LIMIT)
        )
    announcements.sort(key=lambda a: a.publish_date, reverse=True)

    return ParentDashboard(
        children=overviews,
        announcements=_announcements(announcements[:FEED_LIMIT]),
        unread_notifications=await unread_count(db, user.id),
    )


async def _guest_school(db: AsyncSession, user: CurrentUser | None, school_code: str | None) -> School | None:
    if school_code:
        school = await SchoolRepository.get_by_code(db, school_code.strip().upper())
        if school is None or not school.is_active:
            raise NotFoundError("School", school_code)
        return school
    if user is not None and user.memberships:
        return await SchoolRepository.get_by_id(db, next(iter(user.memberships)))
    return None


async def guest_dashboard(
    db: AsyncSession,
    user: CurrentUser | None,
    school_code: str | None = None,
) -> GuestDashboard:
    """
    Public view of a school: published announcements and upcoming events
    addressed to everyone.

    Raises:
        NotFoundError: ``school_code`` does not match an active school
    """
    school = await _guest_school(db, user, school_code)
    if school is None:
        return GuestDashboard()

    now = utcnow()
    announcements = await db.execute(
        select(Announcement)
        .where(
            Announcement.school_id == school.id,
            Announcement.is_published.is_(True),
            Announcement.publish_date <= now,
            Announcement.target_audience == TargetAudience.ALL,
            or_(Announcement.expires_at.is_(None), Announcement.expires_at > now),
        )
        .order_by(Announcement.publish_date.desc())
        .limit(FEED_LIMIT)
    )
    events = await db.execute(
        select(Event)
        .where(
            Event.school_id == school.id,
            Event.target_audience == TargetAudience.ALL,
            or_(Event.start_date >= now, Event.end_date >= now),
        )
        .order_by(Event.start_date)
        .limit(FEED_LIMIT)
    )
    return GuestDashboard(
        school=SchoolPublicResponse.model_validate(school),
        announcements=_announcements(announcements.scalars().all()),
        upcoming_events=_events(events.scalars().all()),
    )


def resolve_staff_school(user: CurrentUser, school_id: str | None) -> str:
    """
    School for the staff dashboard: the requested one, or the user's only
    staff membership.

    Raises:
        InvalidRequestError: No school given and zero or several staff memberships
    """
    if school_id:
        return parse_school_id(school_id)

    staff_schools = [sid for sid, m in user.memberships.items() if m.role in STAFF_ROLES]
    if len(staff_schools) == 1:
        return staff_schools[0]
    raise InvalidRequestError("school_id is required.", "SCHOOL_ID_REQUIRED")


async def school_dashboard(
    db: AsyncSession,
    user: CurrentUser,
    school_id: str | None = None,
) -> SchoolDashboard:
    """Statistics and feed for teachers and school managers."""
    context = check_school_access(user, resolve_staff_school(user, school_id))
    ensure_staff(context)

    return SchoolDashboard(
        role=context.role or UserRole.SUPER_ADMIN.value,
        stats=await get_school_stats(db, context.school_id),
        announcements=_announcements(
            await announcement_service.list_announcements(db, context, limit=FEED_LIMIT)
        ),
        upcoming_events=_events(
            await announcement_service.list_events(db, context, upcoming_only=True, limit=FEED_LIMIT)
        ),
        unread_notifications=await unread_count(db, user.id),
    )
