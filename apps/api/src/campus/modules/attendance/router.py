"""
Attendance Router

Endpoints:
- POST /attendance/class/{class_id} - Mark (or re-mark) a day for a class
- GET /attendance/class/{class_id}/date/{date} - Records for a class and day
- GET /attendance/student/{student_id}/summary - Totals and attendance rate
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser, get_current_user
from campus.core.database import get_db
from campus.core.tenancy import ensure_permission, ensure_staff
from campus.modules.academics.service import get_class_or_404
from campus.modules.attendance import service
from campus.modules.attendance.schemas import (
    AttendanceBulkRequest,
    AttendanceBulkResponse,
    AttendanceResponse,
    StudentAttendanceSummary,
)
from campus.modules.shared.errors import InvalidRequestError
from campus.modules.students.service import get_visible_student

router = APIRouter()


@router.post("/class/{class_id}", response_model=AttendanceBulkResponse)
async def mark_attendance(
    class_id: UUID,
    data: AttendanceBulkRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> AttendanceBulkResponse:
    school_class = await get_class_or_404(db, str(class_id))
    ensure_permission(user, school_class.school_id, "attendance:create")
    return await service.mark_class_attendance(db, school_class, data, marked_by=user.id)


@router.get("/class/{class_id}/date/{day}", response_model=list[AttendanceResponse])
async def class_attendance(
    class_id: UUID,
    day: date,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[AttendanceResponse]:
    school_class = await get_class_or_404(db, str(class_id))
    context = ensure_permission(user, school_class.school_id, "attendance:view")
    ensure_staff(context)
    records = await service.list_class_attendance(db, school_class.id, day)
    return [AttendanceResponse.model_validate(r) for r in records]


@router.get("/student/{student_id}/summary", response_model=StudentAttendanceSummary)
async def student_summary(
    student_id: UUID,
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> StudentAttendanceSummary:
    if start_date and end_date and end_date < start_date:
        raise InvalidRequestError("end_date must not be before start_date.", "INVALID_DATE_RANGE")
    student = await get_visible_student(db, user, str(student_id))
    summary = await service.student_summary(db, student.id, start_date, end_date)
    return StudentAttendanceSummary(
        student_id=student.id,
        start_date=start_date,
        end_date=end_date,
        **summary.model_dump(),
    )
