"""
Student Service

Enrolment and profile management, plus the visibility rule shared by every
module that exposes per-student data (attendance, grades, fees, reports).
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser
from campus.core.permissions import STAFF_ROLES
from campus.core.tenancy import SchoolContext
from campus.modules.academics import repository as academics_repository
from campus.modules.schools.repository import MembershipRepository
from campus.modules.shared import PaginationMeta
from campus.modules.shared.errors import ConflictError, ForbiddenError, InvalidRequestError, NotFoundError
from campus.modules.students import repository
from campus.modules.students.models import Student, StudentStatus
from campus.modules.students.schemas import (
    StudentCreate,
    StudentListResponse,
    StudentResponse,
    StudentUpdate,
)
from campus.modules.users.models import UserRole
from campus.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

STAFF_ONLY_FIELDS = frozenset({"class_id", "status"})


def to_response(student: Student) -> StudentResponse:
    user = student.user
    return StudentResponse(
        id=student.id,
        user_id=student.user_id,
        school_id=student.school_id,
        student_number=student.student_number,
        first_name=user.first_name if user else "",
        last_name=user.last_name if user else "",
        email=user.email if user else "",
        class_id=student.class_id,
        date_of_birth=student.date_of_birth,
        gender=student.gender,
        blood_group=student.blood_group,
        address=student.address,
        guardian_name=student.guardian_name,
        guardian_phone=student.guardian_phone,
        guardian_email=student.guardian_email,
        medical_conditions=student.medical_conditions,
        admission_date=student.admission_date,
        status=student.status,
        created_at=student.created_at,
    )


async def get_student_or_404(db: AsyncSession, student_id: str) -> Student:
    student = await repository.get_by_id(db, student_id)
    if student is None:
        raise NotFoundError("Student", student_id)
    return student


async def can_view_student(db: AsyncSession, user: CurrentUser, student: Student) -> bool:
    """Super admins, staff of the student's school, the student, or a linked parent."""
    if user.is_super_admin:
        return True
    if user.school_role(student.school_id) in STAFF_ROLES:
        return True
    if student.user_id == user.id:
        return True
    return await repository.is_linked_parent(db, user.id, student.id)


async def get_visible_student(db: AsyncSession, user: CurrentUser, student_id: str) -> Student:
    """
    Load a student the caller may see.

    Raises:
        NotFoundError: Unknown student
        ForbiddenError: Caller may not see this student
    """
    student = await get_student_or_404(db, student_id)
    if not await can_view_student(db, user, student):
        logger.warning(f"{user} denied access to student {student_id}")
        raise ForbiddenError("You do not have access to this student.", "STUDENT_ACCESS_DENIED")
    return student


async def _ensure_class_in_school(db: AsyncSession, school_id: str, class_id: str | None) -> None:
    if not class_id:
        return
    school_class = await academics_repository.get_class(db, class_id)
    if school_class is None or school_class.school_id != school_id:
        raise InvalidRequestError("Class does not belong to this school.", "INVALID_CLASS")


async def list_students(
    db: AsyncSession,
    school_id: str,
    *,
    page: int,
    limit: int,
    class_id: str | None = None,
    status: StudentStatus | None = None,
    search: str | None = None,
) -> StudentListResponse:
    students, total = await repository.list_paginated(
        db,
        school_id,
        class_id=class_id,
        status=status,
        search=search,
        offset=(page - 1) * limit,
        limit=limit,
    )
    return StudentListResponse(
        students=[to_response(s) for s in students],
        pagination=PaginationMeta.build(page, limit, total),
    )


async def create_student(db: AsyncSession, context: SchoolContext, data: StudentCreate) -> Student:
    """
    Enrol an existing user as a student of the school.

    The user gets a student membership in the school if they have none.

    Raises:
        NotFoundError: Unknown user
        ConflictError: Student number already used in this school
        InvalidRequestError: Class belongs to another school
    """
    user = await UserRepository.get_by_id(db, data.user_id)
    if user is None:
        raise NotFoundError("User", data.user_id)

    if await repository.get_by_number(db, context.school_id, data.student_number):
        raise ConflictError(
            f"Student number {data.student_number} already exists in this school.",
            "STUDENT_NUMBER_EXISTS",
        )

    await _ensure_class_in_school(db, context.school_id, data.class_id)

    student = await repository.create(
        db,
        school_id=context.school_id,
        status=StudentStatus.ACTIVE,
        **data.model_dump(),
    )

    if await MembershipRepository.get(db, context.school_id, user.id) is None:
        await MembershipRepository.create(
            db,
            school_id=context.school_id,
            user_id=user.id,
            role=UserRole.STUDENT,
        )

    logger.info(f"Enrolled student {student.student_number} in school {context.school_id}")
    return student


def ensure_can_edit_student(user: CurrentUser, student: Student, data: StudentUpdate) -> None:
    """
    Staff edit any student of their school. A student may edit their own
    profile details but not their class or enrolment status.

    Raises:
        ForbiddenError: Not the caller's record, or a staff-only field
    """
    if user.is_super_admin or user.school_role(student.school_id) in STAFF_ROLES:
        return
    if student.user_id != user.id:
        raise ForbiddenError("You can only edit your own student profile.", "STUDENT_ACCESS_DENIED")
    locked = sorted(data.model_fields_set & STAFF_ONLY_FIELDS)
    if locked:
        raise ForbiddenError(f"Only school staff can change: {', '.join(locked)}.", "FIELD_NOT_EDITABLE")


async def update_student(db: AsyncSession, student: Student, data: StudentUpdate) -> Student:
    changes = data.model_dump(exclude_unset=True)
    if "class_id" in changes:
        await _ensure_class_in_school(db, student.school_id, changes["class_id"])

    for field, value in changes.items():
        setattr(student, field, value)
    await db.flush()
    await db.refresh(student)
    return student
