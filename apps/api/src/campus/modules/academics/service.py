"""
Academic Structure Service

Terms, subjects and classes of a school.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from campus.modules.academics import repository
from campus.modules.academics.models import AcademicTerm, SchoolClass, Subject
from campus.modules.academics.schemas import (
    ClassCreate,
    ClassDetailResponse,
    ClassListItem,
    ClassResponse,
    ClassStudent,
    ClassUpdate,
    SubjectCreate,
    TermCreate,
)
from campus.modules.schools.repository import MembershipRepository
from campus.modules.shared.errors import ConflictError, InvalidRequestError, NotFoundError
from campus.modules.users.models import UserRole

logger = logging.getLogger(__name__)

CLASS_TEACHER_ROLES = (UserRole.TEACHER, UserRole.PRINCIPAL, UserRole.SCHOOL_ADMIN)


async def create_term(db: AsyncSession, school_id: str, data: TermCreate) -> AcademicTerm:
    """Create a term. A new current term replaces the previous one."""
    if data.is_current:
        await repository.clear_current_term(db, school_id)
    term = await repository.create_term(db, school_id, **data.model_dump())
    logger.info(f"Created term {term.name} for school {school_id} (current={term.is_current})")
    return term


async def set_current_term(db: AsyncSession, school_id: str, term_id: str) -> AcademicTerm:
    term = await get_term_in_school(db, school_id, term_id)
    await repository.clear_current_term(db, school_id)
    term.is_current = True
    await db.flush()
    await db.refresh(term)
    return term


async def get_term_in_school(db: AsyncSession, school_id: str, term_id: str) -> AcademicTerm:
    term = await repository.get_term(db, term_id)
    if term is None or term.school_id != school_id:
        raise NotFoundError("Term", term_id)
    return term


async def create_subject(db: AsyncSession, school_id: str, data: SubjectCreate) -> Subject:
    code = data.code.strip().upper()
    if await repository.get_subject_by_code(db, school_id, code):
        raise ConflictError(f"Subject code {code} already exists in this school.", "SUBJECT_CODE_EXISTS")
    return await repository.create_subject(db, school_id, **data.model_dump(exclude={"code"}), code=code)


async def get_subject_in_school(db: AsyncSession, school_id: str, subject_id: str) -> Subject:
    subject = await repository.get_subject(db, subject_id)
    if subject is None or subject.school_id != school_id:
        raise NotFoundError("Subject", subject_id)
    return subject


async def get_class_or_404(db: AsyncSession, class_id: str) -> SchoolClass:
    school_class = await repository.get_class(db, class_id)
    if school_class is None:
        raise NotFoundError("Class", class_id)
    return school_class


async def _check_class_links(
    db: AsyncSession,
    school_id: str,
    class_teacher_id: str | None,
    academic_term_id: str | None,
) -> None:
    if class_teacher_id:
        membership = await MembershipRepository.get_active(db, school_id, class_teacher_id)
        if membership is None or membership.role not in CLASS_TEACHER_ROLES:
            raise InvalidRequestError(
                "Class teacher must be a teacher of this school.",
                "INVALID_CLASS_TEACHER",
            )
    if academic_term_id:
        await get_term_in_school(db, school_id, academic_term_id)


async def create_class(db: AsyncSession, school_id: str, data: ClassCreate) -> SchoolClass:
    """
    Create a class.

    Raises:
        InvalidRequestError: Class teacher is not a teacher of this school
        NotFoundError: Term does not belong to this school
    """
    await _check_class_links(db, school_id, data.class_teacher_id, data.academic_term_id)

    return await repository.create_class(db, school_id, **data.model_dump())


async def update_class(db: AsyncSession, school_class: SchoolClass, data: ClassUpdate) -> SchoolClass:
    changes = data.model_dump(exclude_unset=True)
    await _check_class_links(
        db,
        school_class.school_id,
        changes.get("class_teacher_id"),
        changes.get("academic_term_id"),
    )
    for field, value in changes.items():
        setattr(school_class, field, value)
    await db.flush()
    await db.refresh(school_class)
    return school_class


async def list_classes(db: AsyncSession, school_id: str) -> list[ClassListItem]:
    rows = await repository.list_classes_with_counts(db, school_id)
    return [
        ClassListItem(**ClassResponse.model_validate(c).model_dump(), student_count=count or 0)
        for c, count in rows
    ]


async def get_class_detail(db: AsyncSession, school_class: SchoolClass) -> ClassDetailResponse:
    students = await repository.list_class_students(db, school_class.id)
    return ClassDetailResponse(
        **ClassResponse.model_validate(school_class).model_dump(),
        students=[
            ClassStudent(
                id=s.id,
                student_number=s.student_number,
                first_name=s.user.first_name if s.user else "",
                last_name=s.user.last_name if s.user else "",
                status=s.status.value,
            )
            for s in students
        ],
    )
