"""
Academic Structure Routers

Endpoints:
- GET/POST /terms/school/{school_id} - List/create academic terms
- PATCH /terms/school/{school_id}/{term_id}/current - Make a term current
- GET/POST /subjects/school/{school_id} - List/create subjects
- GET/POST /classes/school/{school_id} - List/create classes
- GET /classes/{class_id} - Class with its active students
- PUT /classes/{class_id} - Update a class
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser, get_current_user
from campus.core.database import get_db
from campus.core.tenancy import (
    SchoolContext,
    ensure_manager,
    ensure_permission,
    require_permission,
)
from campus.modules.academics import repository, service
from campus.modules.academics.schemas import (
    ClassCreate,
    ClassDetailResponse,
    ClassListItem,
    ClassResponse,
    ClassUpdate,
    SubjectCreate,
    SubjectResponse,
    TermCreate,
    TermResponse,
)

terms_router = APIRouter()
subjects_router = APIRouter()
classes_router = APIRouter()


@terms_router.get("/school/{school_id}", response_model=list[TermResponse])
async def list_terms(
    context: SchoolContext = Depends(require_permission("classes:view")),
    db: AsyncSession = Depends(get_db),
) -> list[TermResponse]:
    terms = await repository.list_terms(db, context.school_id)
    return [TermResponse.model_validate(t) for t in terms]


@terms_router.post(
    "/school/{school_id}",
    response_model=TermResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_term(
    data: TermCreate,
    context: SchoolContext = Depends(require_permission("classes:create")),
    db: AsyncSession = Depends(get_db),
) -> TermResponse:
    ensure_manager(context)
    term = await service.create_term(db, context.school_id, data)
    return TermResponse.model_validate(term)


@terms_router.patch("/school/{school_id}/{term_id}/current", response_model=TermResponse)
async def set_current_term(
    term_id: UUID,
    context: SchoolContext = Depends(require_permission("classes:edit")),
    db: AsyncSession = Depends(get_db),
) -> TermResponse:
    ensure_manager(context)
    term = await service.set_current_term(db, context.school_id, str(term_id))
    return TermResponse.model_validate(term)


@subjects_router.get("/school/{school_id}", response_model=list[SubjectResponse])
async def list_subjects(
    context: SchoolContext = Depends(require_permission("subjects:view")),
    db: AsyncSession = Depends(get_db),
) -> list[SubjectResponse]:
    subjects = await repository.list_subjects(db, context.school_id)
    return [SubjectResponse.model_validate(s) for s in subjects]


@subjects_router.post(
    "/school/{school_id}",
    response_model=SubjectResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_subject(
    data: SubjectCreate,
    context: SchoolContext = Depends(require_permission("subjects:create")),
    db: AsyncSession = Depends(get_db),
) -> SubjectResponse:
    ensure_manager(context)
    subject = await service.create_subject(db, context.school_id, data)
    return SubjectResponse.model_validate(subject)


@classes_router.get("/school/{school_id}", response_model=list[ClassListItem])
async def list_classes(
    context: SchoolContext = Depends(require_permission("classes:view")),
    db: AsyncSession = Depends(get_db),
) -> list[ClassListItem]:
    return await service.list_classes(db, context.school_id)


@classes_router.post(
    "/school/{school_id}",
    response_model=ClassResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_class(
    data: ClassCreate,
    context: SchoolContext = Depends(require_permission("classes:create")),
    db: AsyncSession = Depends(get_db),
) -> ClassResponse:
    ensure_manager(context)
    school_class = await service.create_class(db, context.school_id, data)
    return ClassResponse.model_validate(school_class)


@classes_router.get("/{class_id}", response_model=ClassDetailResponse)
async def get_class(
    class_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ClassDetailResponse:
    school_class = await service.get_class_or_404(db, str(class_id))
    ensure_permission(user, school_class.school_id, "classes:view")
    return await service.get_class_detail(db, school_class)


@classes_router.put("/{class_id}", response_model=ClassResponse)
async def update_class(
    class_id: UUID,
    data: ClassUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ClassResponse:
    school_class = await service.get_class_or_404(db, str(class_id))
    context = ensure_permission(user, school_class.school_id, "classes:edit")
    ensure_manager(context)
    school_class = await service.update_class(db, school_class, data)
    return ClassResponse.model_validate(school_class)
