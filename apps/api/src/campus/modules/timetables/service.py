"""
Timetable Service

A class and a teacher can each be in only one lesson at a time, so a new
slot may not overlap an existing one for either on the same weekday.
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus.modules.academics.models import SchoolClass, Subject
from campus.modules.academics.service import CLASS_TEACHER_ROLES, get_subject_in_school
from campus.modules.schools.repository import MembershipRepository
from campus.modules.shared.errors import ConflictError, InvalidRequestError
from campus.modules.timetables.models import TimetableEntry
from campus.modules.timetables.schemas import (
    ClassTimetableResponse,
    TimetableEntryCreate,
    TimetableEntryResponse,
    TimetableSlot,
)
from campus.modules.users.models import User

logger = logging.getLogger(__name__)


async def find_clash(db: AsyncSession, data: TimetableEntryCreate) -> TimetableEntry | None:
    """An existing slot for the same class or teacher that overlaps ``data``."""
    result = await db.execute(
        select(TimetableEntry)
        .where(
            TimetableEntry.day_of_week == data.day_of_week,
            or_(TimetableEntry.class_id == data.class_id, TimetableEntry.teacher_id == data.teacher_id),
            TimetableEntry.start_time < data.end_time,
            TimetableEntry.end_time > data.start_time,
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_entry(db: AsyncSession, school_class: SchoolClass, data: TimetableEntryCreate) -> TimetableEntry:
    """
    Add a lesson to a class timetable.

    Raises:
        NotFoundError: Subject not in the class's school
        InvalidRequestError: Teacher does not teach at this school
        ConflictError: Class or teacher already booked in that slot
    """
    await get_subject_in_school(db, school_class.school_id, data.subject_id)

    membership = await MembershipRepository.get_active(db, school_class.school_id, data.teacher_id)
    if membership is None or membership.role not in CLASS_TEACHER_ROLES:
        raise InvalidRequestError("Teacher must be a teacher of this school.", "INVALID_TEACHER")

    clash = await find_clash(db, data)
    if clash is not None:
        booked = "class" if clash.class_id == school_class.id else "teacher"
        raise ConflictError(
            f"The {booked} already has a lesson from {clash.start_time:%H:%M} to {clash.end_time:%H:%M}.",
            "TIMETABLE_CLASH",
        )

    entry = TimetableEntry(**data.model_dump())
    db.add(entry)
    await db.flush()
    await db.refresh(entry)
    logger.info(f"Added timetable slot {entry.id} to class {school_class.id}")
    return entry


async def class_timetable(db: AsyncSession, school_class: SchoolClass) -> ClassTimetableResponse:
    result = await db.execute(
        select(TimetableEntry, Subject, User)
        .join(Subject, Subject.id == TimetableEntry.subject_id)
        .join(User, User.id == TimetableEntry.teacher_id)
        .where(TimetableEntry.class_id == school_class.id)
        .order_by(TimetableEntry.day_of_week, TimetableEntry.start_time)
    )
    entries = [
        TimetableSlot(
            **TimetableEntryResponse.model_validate(entry).model_dump(),
            subject_name=subject.name,
            subject_code=subject.code,
            teacher_name=f"{teacher.first_name} {teacher.last_name}",
        )
        for entry, subject, teacher in result.all()
    ]
    return ClassTimetableResponse(class_id=school_class.id, class_name=school_class.name, entries=entries)
