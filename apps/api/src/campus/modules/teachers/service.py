"""
Teacher Service
"""

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.tenancy import SchoolContext
from campus.modules.schools.repository import MembershipRepository
from campus.modules.shared import PaginationMeta
from campus.modules.shared.errors import ConflictError, NotFoundError
from campus.modules.teachers.models import Teacher, TeacherStatus
from campus.modules.teachers.schemas import (
    TeacherCreate,
    TeacherListResponse,
    TeacherResponse,
    TeacherUpdate,
)
from campus.modules.users.models import User, UserRole
from campus.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


def to_response(teacher: Teacher, *, include_salary: bool = False) -> TeacherResponse:
    user = teacher.user
    return TeacherResponse(
        id=teacher.id,
        user_id=teacher.user_id,
        school_id=teacher.school_id,
        employee_id=teacher.employee_id,
        first_name=user.first_name if user else "",
        last_name=user.last_name if user else "",
        email=user.email if user else "",
        qualification=teacher.qualification,
        specialization=teacher.specialization,
        salary=teacher.salary if include_salary else None,
        hire_date=teacher.hire_date,
        status=teacher.status,
        created_at=teacher.created_at,
    )


async def get_teacher_or_404(db: AsyncSession, teacher_id: str) -> Teacher:
    teacher = await db.get(Teacher, teacher_id)
    if teacher is None:
        raise NotFoundError("Teacher", teacher_id)
    return teacher


async def list_teachers(
    db: AsyncSession,
    school_id: str,
    *,
    page: int,
    limit: int,
    status: TeacherStatus | None = None,
    search: str | None = None,
    include_salary: bool = False,
) -> TeacherListResponse:
    query = select(Teacher).join(User, User.id == Teacher.user_id).where(Teacher.school_id == school_id)
    if status is not None:
        query = query.where(Teacher.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                Teacher.employee_id.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                Teacher.specialization.ilike(pattern),
            )
        )

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(
        query.order_by(User.last_name, User.first_name).offset((page - 1) * limit).limit(limit)
    )
    return TeacherListResponse(
        teachers=[to_response(t, include_salary=include_salary) for t in result.scalars().all()],
        pagination=PaginationMeta.build(page, limit, total),
    )


async def create_teacher(db: AsyncSession, context: SchoolContext, data: TeacherCreate) -> Teacher:
    """
    Register an existing user as a teacher of the school.

    Raises:
        NotFoundError: Unknown user
        ConflictError: Employee id already used in this school
    """
    user = await UserRepository.get_by_id(db, data.user_id)
    if user is None:
        raise NotFoundError("User", data.user_id)

    existing = await db.execute(
        select(Teacher.id).where(
            Teacher.school_id == context.school_id,
            Teacher.employee_id == data.employee_id,
        )
    )
    if existing.first() is not None:
        raise ConflictError(
            f"Employee ID {data.employee_id} already exists in this school.",
            "EMPLOYEE_ID_EXISTS",
        )

    teacher = Teacher(school_id=context.school_id, status=TeacherStatus.ACTIVE, **data.model_dump())
    db.add(teacher)
    await db.flush()
    await db.refresh(teacher)

    if await MembershipRepository.get(db, context.school_id, user.id) is None:
        await MembershipRepository.create(
            db,
            school_id=context.school_id,
            user_id=user.id,
            role=UserRole.TEACHER,
        )

    logger.info(f"Registered teacher {teacher.employee_id} in school {context.school_id}")
    return teacher


async def update_teacher(db: AsyncSession, teacher: Teacher, data: TeacherUpdate) -> Teacher:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(teacher, field, value)
    await db.flush()
    await db.refresh(teacher)
    return teacher
