"""
Attendance Service

Attendance is marked per class and day. Re-submitting a day for a student
updates the existing record instead of creating a second one.
"""

import logging
from collections import Counter
from collections.abc import Iterable
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from campus.modules.academics.models import SchoolClass
from campus.modules.attendance.models import Attendance, AttendanceStatus
from campus.modules.attendance.schemas import (
    AttendanceBulkRequest,
    AttendanceBulkResponse,
    AttendanceResponse,
    AttendanceSummary,
)
from campus.modules.shared.errors import InvalidRequestError
from campus.modules.students.models import Student

logger = logging.getLogger(__name__)


def summarize(statuses: Iterable[AttendanceStatus]) -> AttendanceSummary:
    """
    Count statuses and compute the attendance rate.

    Late counts as attended. The rate is a percentage rounded to two
    decimals, and 0 when there are no records.
    """
    counts = Counter(statuses)
    total = sum(counts.values())
    attended = counts[AttendanceStatus.PRESENT] + counts[AttendanceStatus.LATE]
    rate = round(attended / total * 100, 2) if total else 0.0
    return AttendanceSummary(
        total=total,
        present=counts[AttendanceStatus.PRESENT],
        absent=counts[AttendanceStatus.ABSENT],
        late=counts[AttendanceStatus.LATE],
        excused=counts[AttendanceStatus.EXCUSED],
        attendance_rate=rate,
    )


async def mark_class_attendance(
    db: AsyncSession,
    school_class: SchoolClass,
    data: AttendanceBulkRequest,
    *,
    marked_by: str,
) -> AttendanceBulkResponse:
    """
    Upsert one day of attendance for a class.

    Raises:
        InvalidRequestError: A student is unknown or belongs to another school
    """
    student_ids = {entry.student_id for entry in data.records}
    result = await db.execute(
        select(Student.id).where(
            Student.id.in_(student_ids),
            Student.school_id == school_class.school_id,
        )
    )
    known = set(result.scalars().all())
    unknown = student_ids - known
    if unknown:
        raise InvalidRequestError(
            f"Students not found in this school: {', '.join(sorted(unknown))}",
            "INVALID_STUDENTS",
        )

    existing_rows = await db.execute(
        select(Attendance).where(
            Attendance.student_id.in_(student_ids),
            Attendance.date == data.date,
        )
    )
    existing = {row.student_id: row for row in existing_rows.scalars().all()}

    created = updated = 0
    records = []
    for entry in data.records:
        record = existing.get(entry.student_id)
        if record is None:
            record = Attendance(
                student_id=entry.student_id,
                class_id=school_class.id,
                date=data.date,
                status=entry.status,
                remarks=entry.remarks,
                marked_by=marked_by,
            )
            db.add(record)
            existing[entry.student_id] = record
            created += 1
        else:
            record.class_id = school_class.id
            record.status = entry.status
            record.remarks = entry.remarks
            record.marked_by = marked_by
            updated += 1
        records.append(record)

    await db.flush()
    logger.info(
        f"Attendance for class {school_class.id} on {data.date}: {created} created, {updated} updated"
    )
    return AttendanceBulkResponse(
        class_id=school_class.id,
        date=data.date,
        created=created,
        updated=updated,
        records=[AttendanceResponse.model_validate(r) for r in records],
    )


async def list_class_attendance(db: AsyncSession, class_id: str, day: date) -> list[Attendance]:
    result = await db.execute(
        select(Attendance)
        .where(Attendance.class_id == class_id, Attendance.date == day)
        .order_by(Attendance.created_at)
    )
    return list(result.scalars().all())


async def student_statuses(
    db: AsyncSession,
    student_id: str,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[AttendanceStatus]:
    query = select(Attendance.status).where(Attendance.student_id == student_id)
    if start_date is not None:
        query = query.where(Attendance.date >= start_date)
    if end_date is not None:
        query = query.where(Attendance.date <= end_date)
    result = await db.execute(query)
    return list(result.scalars().all())


async def student_summary(
    db: AsyncSession,
    student_id: str,
    start_date: date | None = None,
    end_date: date | None = None,
) -> AttendanceSummary:
    return summarize(await student_statuses(db, student_id, start_date, end_date))
