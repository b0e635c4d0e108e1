"""
School Service Layer

Registration, lookup, statistics and administrative status changes for
schools. Tenant checks happen in the router; functions here assume the
caller has already been authorised for the school they touch.
"""

import logging
import re
import secrets
from datetime import timedelta

from fastapi import Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.email import send_school_welcome_email
from campus.core.security import hash_password
from campus.core.sms import normalize_phone
from campus.modules.academics.models import SchoolClass, Subject
from campus.modules.announcements.models import Announcement
from campus.modules.attendance.models import Attendance
from campus.modules.audit.repository import log_action
from campus.modules.fees.models import FeePayment, FeeStructure, PaymentStatus
from campus.modules.schools.models import School, SchoolStatus
from campus.modules.schools.repository import MembershipRepository, SchoolRepository
from campus.modules.schools.schemas import (
    EnrollmentPoint,
    SchoolCounts,
    SchoolCreate,
    SchoolCreateResponse,
    SchoolDetailResponse,
    SchoolListItem,
    SchoolListResponse,
    SchoolResponse,
    SchoolStatsResponse,
    SchoolUpdate,
)
from campus.modules.shared import PaginationMeta, utcnow
from campus.modules.shared.errors import ConflictError, NotFoundError, ServiceError
from campus.modules.students.models import Student, StudentStatus
from campus.modules.teachers.models import Teacher, TeacherStatus
from campus.modules.users.models import UserRole
from campus.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

CODE_PREFIX_LENGTH = 6
CODE_ATTEMPTS = 5
ENROLLMENT_TREND_MONTHS = 6


class SchoolCodeUnavailableError(ServiceError):
    def __init__(self):
        super().__init__(
            message="Could not generate a unique school code. Please try again.",
            error_code="SCHOOL_CODE_UNAVAILABLE",
            status_code=503,
        )


def generate_school_code(name: str) -> str:
    """
    Build a candidate school code.

    The first six alphanumerics of the name, uppercased, followed by three
    random digits. Names without any alphanumerics fall back to ``SCH``.
    """
    prefix = re.sub(r"[^A-Za-z0-9]", "", name)[:CODE_PREFIX_LENGTH].upper() or "SCH"
    return f"{prefix}{secrets.randbelow(1000):03d}"


async def allocate_school_code(db: AsyncSession, name: str) -> str:
    for _ in range(CODE_ATTEMPTS):
        code = generate_school_code(name)
        if not await SchoolRepository.code_exists(db, code):
            return code
        logger.info(f"School code collision on {code}, retrying")
    raise SchoolCodeUnavailableError()


async def get_school_or_404(db: AsyncSession, school_id: str) -> School:
    school = await SchoolRepository.get_by_id(db, school_id)
    if school is None:
        raise NotFoundError("School", school_id)
    return school


async def create_school(
    db: AsyncSession,
    data: SchoolCreate,
    request: Request | None = None,
) -> SchoolCreateResponse:
    """
    Register a school, optionally with its first administrator.

    The school, the admin user and the membership are flushed in the same
    session so the request transaction commits them together.

    Raises:
        ConflictError: School email, admin email or admin phone already registered
    """
    if await SchoolRepository.get_by_email(db, data.email):
        raise ConflictError("A school with this email already exists.", "SCHOOL_EMAIL_EXISTS")

    admin = data.admin
    if admin is not None and await UserRepository.email_exists(db, admin.email):
        raise ConflictError("An account with this email already exists.", "EMAIL_EXISTS")

    admin_phone = normalize_phone(admin.phone) if admin is not None and admin.phone else None
    if admin_phone and await UserRepository.phone_exists(db, admin_phone):
        raise ConflictError("An account with this phone number already exists.", "PHONE_EXISTS")

    code = await allocate_school_code(db, data.name)
    school = await SchoolRepository.create(
        db,
        code=code,
        **data.model_dump(exclude={"admin"}),
    )

    admin_user_id = None
    if admin is not None:
        user = await UserRepository.create(
            db,
            email=admin.email,
            password_hash=hash_password(admin.password),
            first_name=admin.first_name,
            last_name=admin.last_name,
            phone=admin_phone or None,
            role=UserRole.SCHOOL_ADMIN,
        )
        await MembershipRepository.create(
            db,
            school_id=school.id,
            user_id=user.id,
            role=UserRole.SCHOOL_ADMIN,
        )
        admin_user_id = user.id

    await log_action(
        db,
        action="school_registered",
        user_id=admin_user_id,
        entity_type="school",
        entity_id=school.id,
        new_values={"name": school.name, "code": school.code},
        request=request,
    )

    await send_school_welcome_email(school.email, school.name, school.code)

    return SchoolCreateResponse(
        school=SchoolResponse.model_validate(school),
        admin_user_id=admin_user_id,
        message=f"School registered. Your school code is {school.code}.",
    )


async def _count(db: AsyncSession, query) -> int:
    return (await db.execute(query)).scalar_one() or 0


async def get_school_detail(db: AsyncSession, school_id: str) -> SchoolDetailResponse:
    school = await get_school_or_404(db, school_id)

    counts = SchoolCounts(
        members=await MembershipRepository.count_members(db, school.id),
        students=await _count(
            db, select(func.count(Student.id)).where(Student.school_id == school.id)
        ),
        teachers=await _count(
            db, select(func.count(Teacher.id)).where(Teacher.school_id == school.id)
        ),
        classes=await _count(
            db, select(func.count(SchoolClass.id)).where(SchoolClass.school_id == school.id)
        ),
    )
    return SchoolDetailResponse(**SchoolResponse.model_validate(school).model_dump(), counts=counts)


async def list_schools(
    db: AsyncSession,
    *,
    page: int,
    limit: int,
    search: str | None = None,
    school_type: str | None = None,
    status: SchoolStatus | None = None,
) -> SchoolListResponse:
    offset = (page - 1) * limit
    schools, total = await SchoolRepository.list_paginated(
        db,
        search=search,
        school_type=school_type,
        status=status,
        offset=offset,
        limit=limit,
    )

    items = []
    for school in schools:
        student_count = await _count(
            db, select(func.count(Student.id)).where(Student.school_id == school.id)
        )
        items.append(
            SchoolListItem(
                **SchoolResponse.model_validate(school).model_dump(),
                member_count=await MembershipRepository.count_members(db, school.id),
                student_count=student_count,
            )
        )

    return SchoolListResponse(schools=items, pagination=PaginationMeta.build(page, limit, total))


async def search_schools(db: AsyncSession, query: str) -> list[School]:
    return await SchoolRepository.search_public(db, query.strip())


async def update_school(
    db: AsyncSession,
    school_id: str,
    data: SchoolUpdate,
    *,
    actor_id: str,
    request: Request | None = None,
) -> School:
    school = await get_school_or_404(db, school_id)
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        return school

    old_values = {field: getattr(school, field) for field in changes}
    school = await SchoolRepository.update_fields(db, school, changes)
    await log_action(
        db,
        action="school_updated",
        user_id=actor_id,
        entity_type="school",
        entity_id=school.id,
        old_values={k: str(v) if v is not None else None for k, v in old_values.items()},
        new_values={k: str(v) if v is not None else None for k, v in changes.items()},
        request=request,
    )
    return school


async def set_school_status(
    db: AsyncSession,
    school_id: str,
    status: SchoolStatus,
    *,
    actor_id: str,
    reason: str | None = None,
    request: Request | None = None,
) -> School:
    school = await get_school_or_404(db, school_id)
    previous = school.status
    school = await SchoolRepository.update_status(db, school.id, status)
    await log_action(
        db,
        action="school_status_changed",
        user_id=actor_id,
        entity_type="school",
        entity_id=school.id,
        old_values={"status": previous.value},
        new_values={"status": status.value},
        details=reason,
        request=request,
    )
    return school


def _month_starts(now, months: int) -> list:
    """First day of each of the last ``months`` months, oldest first."""
    starts = []
    year, month = now.year, now.month
    for _ in range(months):
        starts.append(now.replace(year=year, month=month, day=1, hour=0, minute=0, second=0, microsecond=0))
        month -= 1
        if month == 0:
            month, year = 12, year - 1
    return list(reversed(starts))


async def get_school_stats(db: AsyncSession, school_id: str) -> SchoolStatsResponse:
    """Dashboard statistics for one school."""
    school = await get_school_or_404(db, school_id)
    now = utcnow()
    month_ago = now - timedelta(days=30)
    week_ago = now - timedelta(days=7)

    active_students = await _count(
        db,
        select(func.count(Student.id)).where(
            Student.school_id == school.id, Student.status == StudentStatus.ACTIVE
        ),
    )
    active_teachers = await _count(
        db,
        select(func.count(Teacher.id)).where(
            Teacher.school_id == school.id, Teacher.status == TeacherStatus.ACTIVE
        ),
    )
    classes = await _count(
        db, select(func.count(SchoolClass.id)).where(SchoolClass.school_id == school.id)
    )
    subjects = await _count(db, select(func.count(Subject.id)).where(Subject.school_id == school.id))
    attendance_records = await _count(
        db,
        select(func.count(Attendance.id))
        .join(Student, Student.id == Attendance.student_id)
        .where(Student.school_id == school.id, Attendance.date >= month_ago.date()),
    )
    revenue = (
        await db.execute(
            select(func.coalesce(func.sum(FeePayment.amount_paid), 0))
            .join(FeeStructure, FeeStructure.id == FeePayment.fee_structure_id)
            .where(
                FeeStructure.school_id == school.id,
                FeePayment.status == PaymentStatus.COMPLETED,
                FeePayment.payment_date >= month_ago,
            )
        )
    ).scalar_one()
    announcements = await _count(
        db,
        select(func.count(Announcement.id)).where(
            Announcement.school_id == school.id, Announcement.created_at >= week_ago
        ),
    )

    starts = _month_starts(now, ENROLLMENT_TREND_MONTHS)
    trend = []
    for index, start in enumerate(starts):
        end = starts[index + 1] if index + 1 < len(starts) else None
        query = select(func.count(Student.id)).where(
            Student.school_id == school.id, Student.created_at >= start
        )
        if end is not None:
            query = query.where(Student.created_at < end)
        trend.append(EnrollmentPoint(month=start.strftime("%Y-%m"), count=await _count(db, query)))

    return SchoolStatsResponse(
        school_id=school.id,
        active_students=active_students,
        active_teachers=active_teachers,
        classes=classes,
        subjects=subjects,
        attendance_records_30d=attendance_records,
        revenue_30d=float(revenue or 0),
        announcements_7d=announcements,
        enrollment_trend=trend,
    )
