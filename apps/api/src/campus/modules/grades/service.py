"""
Grades & Reports Service

Scores are stored raw together with their maximum. Letter grades work on
the percentage, so a 40/50 test and an 80/100 exam both earn an A.
"""

import logging
from collections import defaultdict
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from campus.modules.academics.models import AcademicTerm, SchoolClass, Subject
from campus.modules.academics.service import get_subject_in_school, get_term_in_school
from campus.modules.attendance.service import student_summary
from campus.modules.grades.models import Grade
from campus.modules.grades.schemas import (
    ClassPerformanceResponse,
    GradeBand,
    GradeCreate,
    GradeUpdate,
    ReportCardResponse,
    SchoolAnalyticsResponse,
    StudentPerformance,
    SubjectResult,
)
from campus.modules.schools.service import get_school_stats
from campus.modules.shared.errors import InvalidRequestError, NotFoundError
from campus.modules.students.models import Student, StudentStatus

logger = logging.getLogger(__name__)

# Lower bound (percent) for each letter, highest first
GRADE_BOUNDARIES = (
    (80, "A"),
    (70, "B"),
    (60, "C"),
    (50, "D"),
    (40, "E"),
)
FAILING_GRADE = "F"


def percentage(score: Decimal | float, max_score: Decimal | float) -> float:
    if not max_score:
        return 0.0
    return float(score) / float(max_score) * 100


def letter_for_percentage(value: float) -> str:
    for lower_bound, letter in GRADE_BOUNDARIES:
        if value >= lower_bound:
            return letter
    return FAILING_GRADE


def letter_grade(score: Decimal | float, max_score: Decimal | float) -> str:
    return letter_for_percentage(percentage(score, max_score))


def validate_score(score: Decimal, max_score: Decimal) -> None:
    if score < 0 or score > max_score:
        raise InvalidRequestError(
            f"Score must be between 0 and {max_score}.",
            "INVALID_SCORE",
        )


async def get_grade_or_404(db: AsyncSession, grade_id: str) -> Grade:
    grade = await db.get(Grade, grade_id)
    if grade is None:
        raise NotFoundError("Grade", grade_id)
    return grade


async def record_grade(
    db: AsyncSession,
    student: Student,
    data: GradeCreate,
    *,
    recorded_by: str,
) -> Grade:
    """
    Record an assessment result.

    Raises:
        InvalidRequestError: Score outside [0, max_score]
        NotFoundError: Subject or term not in the student's school
    """
    validate_score(data.score, data.max_score)
    await get_subject_in_school(db, student.school_id, data.subject_id)
    await get_term_in_school(db, student.school_id, data.academic_term_id)

    grade = Grade(
        **data.model_dump(exclude={"grade"}),
        grade=data.grade or letter_grade(data.score, data.max_score),
        recorded_by=recorded_by,
    )
    db.add(grade)
    await db.flush()
    await db.refresh(grade)
    logger.info(f"Recorded {grade.assessment_type.value} grade for student {student.id}")
    return grade


async def update_grade(db: AsyncSession, grade: Grade, data: GradeUpdate) -> Grade:
    changes = data.model_dump(exclude_unset=True)
    score = changes.get("score", grade.score)
    max_score = changes.get("max_score", grade.max_score)
    validate_score(score, max_score)

    for field, value in changes.items():
        setattr(grade, field, value)
    if ("score" in changes or "max_score" in changes) and not changes.get("grade"):
        grade.grade = letter_grade(score, max_score)

    await db.flush()
    await db.refresh(grade)
    return grade


async def list_student_grades(
    db: AsyncSession,
    student_id: str,
    *,
    term_id: str | None = None,
    subject_id: str | None = None,
) -> list[Grade]:
    query = select(Grade).where(Grade.student_id == student_id)
    if term_id:
        query = query.where(Grade.academic_term_id == term_id)
    if subject_id:
        query = query.where(Grade.subject_id == subject_id)
    result = await db.execute(query.order_by(Grade.created_at.desc()))
    return list(result.scalars().all())


async def list_class_grades(
    db: AsyncSession,
    class_id: str,
    *,
    term_id: str | None = None,
    subject_id: str | None = None,
) -> list[Grade]:
    query = select(Grade).join(Student, Student.id == Grade.student_id).where(Student.class_id == class_id)
    if term_id:
        query = query.where(Grade.academic_term_id == term_id)
    if subject_id:
        query = query.where(Grade.subject_id == subject_id)
    result = await db.execute(query.order_by(Student.student_number, Grade.created_at))
    return list(result.scalars().all())


async def list_class_subject_grades(
    db: AsyncSession,
    class_id: str,
    subject_id: str,
    term_id: str | None = None,
) -> list[Grade]:
    return await list_class_grades(db, class_id, term_id=term_id, subject_id=subject_id)


async def _subjects_by_id(db: AsyncSession, subject_ids: set[str]) -> dict[str, Subject]:
    if not subject_ids:
        return {}
    result = await db.execute(select(Subject).where(Subject.id.in_(subject_ids)))
    return {s.id: s for s in result.scalars().all()}


def subject_results(grades: list[Grade], subjects: dict[str, Subject]) -> list[SubjectResult]:
    """Average percentage and letter per subject, ordered by subject name."""
    by_subject: dict[str, list[float]] = defaultdict(list)
    for grade in grades:
        by_subject[grade.subject_id].append(percentage(grade.score, grade.max_score))

    results = []
    for subject_id, values in by_subject.items():
        average = round(sum(values) / len(values), 2)
        subject = subjects.get(subject_id)
        results.append(
            SubjectResult(
                subject_id=subject_id,
                subject_name=subject.name if subject else "",
                subject_code=subject.code if subject else "",
                assessments=len(values),
                average=average,
                grade=letter_for_percentage(average),
            )
        )
    return sorted(results, key=lambda r: r.subject_name)


async def build_report_card(
    db: AsyncSession,
    student: Student,
    term: AcademicTerm,
) -> ReportCardResponse:
    grades = await list_student_grades(db, student.id, term_id=term.id)
    subjects = await _subjects_by_id(db, {g.subject_id for g in grades})

    results = subject_results(grades, subjects)
    overall = round(sum(r.average for r in results) / len(results), 2) if results else 0.0
    attendance = await student_summary(db, student.id, term.start_date, term.end_date)

    user = student.user
    return ReportCardResponse(
        student_id=student.id,
        student_number=student.student_number,
        student_name=f"{user.first_name} {user.last_name}" if user else "",
        term_id=term.id,
        term_name=term.name,
        term_start=term.start_date,
        term_end=term.end_date,
        subjects=results,
        overall_average=overall,
        overall_grade=letter_for_percentage(overall) if results else FAILING_GRADE,
        attendance=attendance,
    )


def _average(values: list[float]) -> float | None:
    return round(sum(values) / len(values), 2) if values else None


async def class_performance(
    db: AsyncSession,
    school_class: SchoolClass,
    *,
    term_id: str | None = None,
    subject_id: str | None = None,
) -> ClassPerformanceResponse:
    """Per-student subject averages for every active student in a class."""
    result = await db.execute(
        select(Student)
        .where(Student.class_id == school_class.id, Student.status == StudentStatus.ACTIVE)
        .order_by(Student.student_number)
    )
    students = list(result.scalars().all())

    grades = await list_class_grades(db, school_class.id, term_id=term_id, subject_id=subject_id)
    subjects = await _subjects_by_id(db, {g.subject_id for g in grades})
    by_student: dict[str, list[Grade]] = defaultdict(list)
    for grade in grades:
        by_student[grade.student_id].append(grade)

    rows = []
    for student in students:
        results = subject_results(by_student[student.id], subjects)
        overall = _average([r.average for r in results])
        user = student.user
        rows.append(
            StudentPerformance(
                student_id=student.id,
                student_number=student.student_number,
                student_name=f"{user.first_name} {user.last_name}" if user else "",
                subjects=results,
                overall_average=overall,
                overall_grade=letter_for_percentage(overall) if overall is not None else None,
            )
        )

    return ClassPerformanceResponse(
        class_id=school_class.id,
        class_name=school_class.name,
        term_id=term_id,
        subject_id=subject_id,
        class_average=_average([r.overall_average for r in rows if r.overall_average is not None]),
        students=rows,
    )


def grade_distribution(percentages: list[float]) -> list[GradeBand]:
    """Count of assessments per letter, best letter first, zeros included."""
    counts = {letter: 0 for _, letter in GRADE_BOUNDARIES}
    counts[FAILING_GRADE] = 0
    for value in percentages:
        counts[letter_for_percentage(value)] += 1
    return [GradeBand(grade=letter, count=count) for letter, count in counts.items()]


async def school_analytics(db: AsyncSession, school_id: str) -> SchoolAnalyticsResponse:
    stats = await get_school_stats(db, school_id)
    result = await db.execute(
        select(Grade.score, Grade.max_score)
        .join(Student, Student.id == Grade.student_id)
        .where(Student.school_id == school_id)
    )
    percentages = [percentage(score, max_score) for score, max_score in result.all()]
    return SchoolAnalyticsResponse(
        stats=stats,
        graded_assessments=len(percentages),
        average_grade=_average(percentages) or 0.0,
        grade_distribution=grade_distribution(percentages),
    )
