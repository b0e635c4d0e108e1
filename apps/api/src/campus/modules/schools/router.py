"""
Schools Router

Endpoints:
- POST /schools - Register a school (public), optionally with its admin
- GET /schools - Admin portal list with member/student counts
- GET /schools/search - Public search over active schools
- GET /schools/{school_id} - School detail with counts
- PUT /schools/{school_id} - Update school profile
- GET /schools/{school_id}/stats - School statistics
- PATCH /schools/{school_id}/status - Activate/suspend a school (admin portal)
"""

import logging

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser, require_admin_access
from campus.core.database import get_db
from campus.core.rate_limit import client_ip, enforce_rate_limit
from campus.core.tenancy import (
    SchoolContext,
    parse_school_id,
    require_permission,
    require_school_access,
)
from campus.modules.schools import service
from campus.modules.schools.models import SchoolStatus, SchoolType
from campus.modules.schools.schemas import (
    SchoolCreate,
    SchoolCreateResponse,
    SchoolDetailResponse,
    SchoolListResponse,
    SchoolPublicResponse,
    SchoolResponse,
    SchoolStatsResponse,
    SchoolStatusUpdate,
    SchoolUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()

REGISTER_LIMIT = (5, 60 * 60)


@router.post(
    "",
    response_model=SchoolCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a school",
)
async def register_school(
    data: SchoolCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> SchoolCreateResponse:
    """
    Register a new school. When ``admin`` is supplied the account is created
    as the school's administrator.

    Raises:
        HTTPException 409: School email or admin email already registered
    """
    await enforce_rate_limit(f"school-register:{client_ip(request)}", *REGISTER_LIMIT)
    return await service.create_school(db, data, request)


@router.get("", response_model=SchoolListResponse)
async def list_schools(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, max_length=100),
    school_type: SchoolType | None = Query(None, alias="type"),
    school_status: SchoolStatus | None = Query(None, alias="status"),
    _admin: CurrentUser = Depends(require_admin_access()),
    db: AsyncSession = Depends(get_db),
) -> SchoolListResponse:
    return await service.list_schools(
        db,
        page=page,
        limit=limit,
        search=search,
        school_type=school_type,
        status=school_status,
    )


@router.get("/search", response_model=list[SchoolPublicResponse])
async def search_schools(
    q: str = Query(..., min_length=2, max_length=100),
    db: AsyncSession = Depends(get_db),
) -> list[SchoolPublicResponse]:
    """Public lookup used by registration and login forms."""
    schools = await service.search_schools(db, q)
    return [SchoolPublicResponse.model_validate(s) for s in schools]


@router.get("/{school_id}", response_model=SchoolDetailResponse)
async def get_school(
    context: SchoolContext = Depends(require_school_access),
    db: AsyncSession = Depends(get_db),
) -> SchoolDetailResponse:
    return await service.get_school_detail(db, context.school_id)


@router.put("/{school_id}", response_model=SchoolResponse)
async def update_school(
    data: SchoolUpdate,
    request: Request,
    context: SchoolContext = Depends(require_permission("schools:edit")),
    db: AsyncSession = Depends(get_db),
) -> SchoolResponse:
    school = await service.update_school(
        db, context.school_id, data, actor_id=context.user.id, request=request
    )
    return SchoolResponse.model_validate(school)


@router.get("/{school_id}/stats", response_model=SchoolStatsResponse)
async def school_stats(
    context: SchoolContext = Depends(require_school_access),
    db: AsyncSession = Depends(get_db),
) -> SchoolStatsResponse:
    return await service.get_school_stats(db, context.school_id)


@router.patch("/{school_id}/status", response_model=SchoolResponse)
async def update_school_status(
    school_id: str,
    data: SchoolStatusUpdate,
    request: Request,
    admin: CurrentUser = Depends(require_admin_access()),
    db: AsyncSession = Depends(get_db),
) -> SchoolResponse:
    """Activate, suspend or deactivate a school."""
    school = await service.set_school_status(
        db,
        parse_school_id(school_id),
        data.status,
        actor_id=admin.id,
        reason=data.reason,
        request=request,
    )
    return SchoolResponse.model_validate(school)
