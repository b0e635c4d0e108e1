"""
Student Repository
"""

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus.modules.parent_links.models import ParentStudent
from campus.modules.students.models import Student, StudentStatus
from campus.modules.users.models import User


async def create(db: AsyncSession, **fields) -> Student:
    student = Student(**fields)
    db.add(student)
    await db.flush()
    await db.refresh(student)
    return student


async def get_by_id(db: AsyncSession, student_id: str) -> Student | None:
    return await db.get(Student, str(student_id))


async def get_by_number(db: AsyncSession, school_id: str, student_number: str) -> Student | None:
    result = await db.execute(
        select(Student).where(
            Student.school_id == school_id,
            Student.student_number == student_number,
        )
    )
    return result.scalar_one_or_none()


async def get_for_user(db: AsyncSession, user_id: str, school_id: str | None = None) -> list[Student]:
    query = select(Student).where(Student.user_id == str(user_id))
    if school_id:
        query = query.where(Student.school_id == school_id)
    result = await db.execute(query.order_by(Student.created_at))
    return list(result.scalars().all())


async def list_paginated(
    db: AsyncSession,
    school_id: str,
    *,
    class_id: str | None = None,
    status: StudentStatus | None = None,
    search: str | None = None,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Student], int]:
    query = select(Student).join(User, User.id == Student.user_id).where(Student.school_id == school_id)
    if class_id:
        query = query.where(Student.class_id == class_id)
    if status is not None:
        query = query.where(Student.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                Student.student_number.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern),
            )
        )

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(
        query.order_by(Student.student_number).offset(offset).limit(limit)
    )
    return list(result.scalars().all()), total


async def is_linked_parent(db: AsyncSession, parent_id: str, student_id: str) -> bool:
    result = await db.execute(
        select(func.count(ParentStudent.id)).where(
            ParentStudent.parent_id == str(parent_id),
            ParentStudent.student_id == str(student_id),
        )
    )
    return result.scalar_one() > 0

