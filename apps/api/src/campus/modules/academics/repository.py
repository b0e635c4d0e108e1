"""
Academic Structure Repository
"""

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from campus.modules.students.models import Student, StudentStatus

from .models import AcademicTerm, SchoolClass, Subject


async def create_term(db: AsyncSession, school_id: str, **fields) -> AcademicTerm:
    term = AcademicTerm(school_id=school_id, **fields)
    db.add(term)
    await db.flush()
    await db.refresh(term)
    return term


async def get_term(db: AsyncSession, term_id: str) -> AcademicTerm | None:
    return await db.get(AcademicTerm, str(term_id))


async def list_terms(db: AsyncSession, school_id: str) -> list[AcademicTerm]:
    result = await db.execute(
        select(AcademicTerm)
        .where(AcademicTerm.school_id == school_id)
        .order_by(AcademicTerm.start_date.desc())
    )
    return list(result.scalars().all())


async def clear_current_term(db: AsyncSession, school_id: str) -> None:
    await db.execute(
        update(AcademicTerm)
        .where(AcademicTerm.school_id == school_id, AcademicTerm.is_current.is_(True))
        .values(is_current=False)
    )


async def create_subject(db: AsyncSession, school_id: str, **fields) -> Subject:
    subject = Subject(school_id=school_id, **fields)
    db.add(subject)
    await db.flush()
    await db.refresh(subject)
    return subject


async def get_subject(db: AsyncSession, subject_id: str) -> Subject | None:
    return await db.get(Subject, str(subject_id))


async def get_subject_by_code(db: AsyncSession, school_id: str, code: str) -> Subject | None:
    result = await db.execute(
        select(Subject).where(Subject.school_id == school_id, Subject.code == code)
    )
    return result.scalar_one_or_none()


async def list_subjects(db: AsyncSession, school_id: str) -> list[Subject]:
    result = await db.execute(
        select(Subject).where(Subject.school_id == school_id).order_by(Subject.name)
    )
    return list(result.scalars().all())


async def create_class(db: AsyncSession, school_id: str, **fields) -> SchoolClass:
    school_class = SchoolClass(school_id=school_id, **fields)
    db.add(school_class)
    await db.flush()
    await db.refresh(school_class)
    return school_class


async def get_class(db: AsyncSession, class_id: str) -> SchoolClass | None:
    return await db.get(SchoolClass, str(class_id))


async def list_classes_with_counts(db: AsyncSession, school_id: str) -> list[tuple[SchoolClass, int]]:
    student_count = (
        select(func.count(Student.id))
        .where(Student.class_id == SchoolClass.id, Student.status == StudentStatus.ACTIVE)
        .correlate(SchoolClass)
        .scalar_subquery()
    )
    result = await db.execute(
        select(SchoolClass, student_count)
        .where(SchoolClass.school_id == school_id)
        .order_by(SchoolClass.level, SchoolClass.name)
    )
    return [(row[0], row[1]) for row in result.all()]


async def list_class_students(db: AsyncSession, class_id: str) -> list[Student]:
    result = await db.execute(
        select(Student)
        .where(Student.class_id == class_id, Student.status == StudentStatus.ACTIVE)
        .order_by(Student.student_number)
    )
    return list(result.scalars().all())
