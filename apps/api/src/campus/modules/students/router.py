"""
Students Router

Endpoints:
- GET /students/school/{school_id} - List students (staff; filters, search, pagination)
- POST /students/school/{school_id} - Enrol a student
- GET /students/{student_id} - Student profile (staff, self, or linked parent)
- PUT /students/{student_id} - Update a student (staff, or the student for profile fields)
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser, get_current_user
from campus.core.database import get_db
from campus.core.tenancy import SchoolContext, ensure_permission, ensure_staff, require_permission
from campus.modules.students import service
from campus.modules.students.models import StudentStatus
from campus.modules.students.schemas import (
    StudentCreate,
    StudentListResponse,
    StudentResponse,
    StudentUpdate,
)

router = APIRouter()


@router.get("/school/{school_id}", response_model=StudentListResponse)
async def list_students(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    class_id: UUID | None = None,
    student_status: StudentStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=100),
    context: SchoolContext = Depends(require_permission("students:view")),
    db: AsyncSession = Depends(get_db),
) -> StudentListResponse:
    ensure_staff(context)
    return await service.list_students(
        db,
        context.school_id,
        page=page,
        limit=limit,
        class_id=str(class_id) if class_id else None,
        status=student_status,
        search=search,
    )


@router.post(
    "/school/{school_id}",
    response_model=StudentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_student(
    data: StudentCreate,
    context: SchoolContext = Depends(require_permission("students:create")),
    db: AsyncSession = Depends(get_db),
) -> StudentResponse:
    """
    Enrol a student.

    Raises:
        HTTPException 404: User not found
        HTTPException 409: Student number already in use
    """
    student = await service.create_student(db, context, data)
    return service.to_response(student)


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(
    student_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> StudentResponse:
    student = await service.get_visible_student(db, user, str(student_id))
    return service.to_response(student)


@router.put("/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: UUID,
    data: StudentUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> StudentResponse:
    student = await service.get_student_or_404(db, str(student_id))
    ensure_permission(user, student.school_id, "students:edit")
    service.ensure_can_edit_student(user, student, data)
    student = await service.update_student(db, student, data)
    return service.to_response(student)
