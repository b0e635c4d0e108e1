"""
Grades & Reports Routers

Endpoints:
- POST /grades - Record a grade
- GET /grades/student/{student_id} - A student's grades (term/subject filters)
- GET /grades/class/{class_id}/subject/{subject_id} - Grades for a class and subject
- PUT /grades/{grade_id} - Correct a grade
- GET /reports/student/{student_id}/report-card - Term report card
- GET /reports/class/{class_id}/performance - Subject averages per student in a class
- GET /reports/school/{school_id}/analytics - School statistics and grade distribution
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser, get_current_user
from campus.core.database import get_db
from campus.core.tenancy import (
    SchoolContext,
    ensure_manager,
    ensure_permission,
    ensure_staff,
    require_school_access,
)
from campus.modules.academics.service import get_class_or_404, get_term_in_school
from campus.modules.grades import service
from campus.modules.grades.schemas import (
    ClassPerformanceResponse,
    GradeCreate,
    GradeResponse,
    GradeUpdate,
    ReportCardResponse,
    SchoolAnalyticsResponse,
)
from campus.modules.shared.errors import InvalidRequestError
from campus.modules.students.service import get_student_or_404, get_visible_student

router = APIRouter()
reports_router = APIRouter()


@router.post("", response_model=GradeResponse, status_code=status.HTTP_201_CREATED)
async def record_grade(
    data: GradeCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> GradeResponse:
    student = await get_student_or_404(db, data.student_id)
    ensure_permission(user, student.school_id, "grades:create")
    grade = await service.record_grade(db, student, data, recorded_by=user.id)
    return GradeResponse.model_validate(grade)


@router.get("/student/{student_id}", response_model=list[GradeResponse])
async def student_grades(
    student_id: UUID,
    term_id: UUID | None = None,
    subject_id: UUID | None = None,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[GradeResponse]:
    student = await get_visible_student(db, user, str(student_id))
    grades = await service.list_student_grades(
        db,
        student.id,
        term_id=str(term_id) if term_id else None,
        subject_id=str(subject_id) if subject_id else None,
    )
    return [GradeResponse.model_validate(g) for g in grades]


@router.get("/class/{class_id}/subject/{subject_id}", response_model=list[GradeResponse])
async def class_subject_grades(
    class_id: UUID,
    subject_id: UUID,
    term_id: UUID | None = None,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[GradeResponse]:
    school_class = await get_class_or_404(db, str(class_id))
    context = ensure_permission(user, school_class.school_id, "grades:view")
    ensure_staff(context)
    grades = await service.list_class_subject_grades(
        db, school_class.id, str(subject_id), str(term_id) if term_id else None
    )
    return [GradeResponse.model_validate(g) for g in grades]


@router.put("/{grade_id}", response_model=GradeResponse)
async def update_grade(
    grade_id: UUID,
    data: GradeUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> GradeResponse:
    grade = await service.get_grade_or_404(db, str(grade_id))
    student = await get_student_or_404(db, grade.student_id)
    ensure_permission(user, student.school_id, "grades:edit")
    grade = await service.update_grade(db, grade, data)
    return GradeResponse.model_validate(grade)


@reports_router.get("/student/{student_id}/report-card", response_model=ReportCardResponse)
async def report_card(
    student_id: UUID,
    term_id: UUID | None = Query(None),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ReportCardResponse:
    """
    Per-subject averages, overall grade and attendance for one term.

    Raises:
        HTTPException 400: term_id missing
    """
    if term_id is None:
        raise InvalidRequestError("term_id is required.", "TERM_ID_REQUIRED")
    student = await get_visible_student(db, user, str(student_id))
    term = await get_term_in_school(db, student.school_id, str(term_id))
    return await service.build_report_card(db, student, term)


@reports_router.get("/class/{class_id}/performance", response_model=ClassPerformanceResponse)
async def class_performance(
    class_id: UUID,
    term_id: UUID | None = None,
    subject_id: UUID | None = None,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ClassPerformanceResponse:
    school_class = await get_class_or_404(db, str(class_id))
    context = ensure_permission(user, school_class.school_id, "grades:view")
    ensure_staff(context)
    return await service.class_performance(
        db,
        school_class,
        term_id=str(term_id) if term_id else None,
        subject_id=str(subject_id) if subject_id else None,
    )


@reports_router.get("/school/{school_id}/analytics", response_model=SchoolAnalyticsResponse)
async def school_analytics(
    context: SchoolContext = Depends(require_school_access),
    db: AsyncSession = Depends(get_db),
) -> SchoolAnalyticsResponse:
    ensure_manager(context)
    return await service.school_analytics(db, context.school_id)
