"""
Teachers Router

Endpoints:
- GET /teachers/school/{school_id} - List teachers
- POST /teachers/school/{school_id} - Register a teacher
- GET /teachers/{teacher_id} - Teacher profile
- PUT /teachers/{teacher_id} - Update a teacher

Salaries are only returned to school managers.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser, get_current_user
from campus.core.database import get_db
from campus.core.tenancy import SchoolContext, ensure_permission, require_permission
from campus.modules.teachers import service
from campus.modules.teachers.models import TeacherStatus
from campus.modules.teachers.schemas import (
    TeacherCreate,
    TeacherListResponse,
    TeacherResponse,
    TeacherUpdate,
)

router = APIRouter()


@router.get("/school/{school_id}", response_model=TeacherListResponse)
async def list_teachers(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    teacher_status: TeacherStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=100),
    context: SchoolContext = Depends(require_permission("teachers:view")),
    db: AsyncSession = Depends(get_db),
) -> TeacherListResponse:
    return await service.list_teachers(
        db,
        context.school_id,
        page=page,
        limit=limit,
        status=teacher_status,
        search=search,
        include_salary=context.is_manager,
    )


@router.post(
    "/school/{school_id}",
    response_model=TeacherResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_teacher(
    data: TeacherCreate,
    context: SchoolContext = Depends(require_permission("teachers:create")),
    db: AsyncSession = Depends(get_db),
) -> TeacherResponse:
    teacher = await service.create_teacher(db, context, data)
    return service.to_response(teacher, include_salary=True)


@router.get("/{teacher_id}", response_model=TeacherResponse)
async def get_teacher(
    teacher_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TeacherResponse:
    teacher = await service.get_teacher_or_404(db, str(teacher_id))
    context = ensure_permission(user, teacher.school_id, "teachers:view")
    return service.to_response(
        teacher,
        include_salary=context.is_manager or teacher.user_id == user.id,
    )


@router.put("/{teacher_id}", response_model=TeacherResponse)
async def update_teacher(
    teacher_id: UUID,
    data: TeacherUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TeacherResponse:
    teacher = await service.get_teacher_or_404(db, str(teacher_id))
    ensure_permission(user, teacher.school_id, "teachers:edit")
    teacher = await service.update_teacher(db, teacher, data)
    return service.to_response(teacher, include_salary=True)
