"""
Dashboard Router

Endpoints:
- GET /dashboard/student - Student home screen
- GET /dashboard/parent - Parent home screen with one card per linked child
- GET /dashboard/guest - Public school feed (token optional)
- GET /dashboard/school - Teacher and school manager home screen
- GET /dashboard/admin - Admin portal overview
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser, get_optional_user, require_admin_access, require_roles
from campus.core.database import get_db
from campus.modules.admin.schemas import AdminOverview
from campus.modules.admin.service import get_overview
from campus.modules.dashboard import service
from campus.modules.dashboard.schemas import (
    GuestDashboard,
    ParentDashboard,
    SchoolDashboard,
    StudentDashboard,
)
from campus.modules.users.models import UserRole

router = APIRouter()


@router.get("/student", response_model=StudentDashboard)
async def student_dashboard(
    user: CurrentUser = Depends(require_roles(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db),
) -> StudentDashboard:
    return await service.student_dashboard(db, user)


@router.get("/parent", response_model=ParentDashboard)
async def parent_dashboard(
    user: CurrentUser = Depends(require_roles(UserRole.PARENT)),
    db: AsyncSession = Depends(get_db),
) -> ParentDashboard:
    return await service.parent_dashboard(db, user)


@router.get("/guest", response_model=GuestDashboard)
async def guest_dashboard(
    school_code: str | None = Query(None, max_length=20),
    user: CurrentUser | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
) -> GuestDashboard:
    return await service.guest_dashboard(db, user, school_code)


@router.get("/school", response_model=SchoolDashboard)
async def school_dashboard(
    school_id: str | None = None,
    user: CurrentUser = Depends(
        require_roles(UserRole.TEACHER, UserRole.STAFF, UserRole.SCHOOL_ADMIN, UserRole.PRINCIPAL)
    ),
    db: AsyncSession = Depends(get_db),
) -> SchoolDashboard:
    """
    Statistics for one school.

    Raises:
        HTTPException 400: No ``school_id`` and the user staffs several schools
        HTTPException 403: Not staff of the school
    """
    return await service.school_dashboard(db, user, school_id)


@router.get("/admin", response_model=AdminOverview)
async def admin_dashboard(
    _admin: CurrentUser = Depends(require_admin_access()),
    db: AsyncSession = Depends(get_db),
) -> AdminOverview:
    return await get_overview(db)
