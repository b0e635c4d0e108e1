"""
Admin Portal Router

All endpoints require an admin-portal role; some are narrowed to specific
admin sub-roles. Super admins pass every check.

Endpoints:
- GET /admin/overview - Platform statistics
- GET /admin/users - Paginated user list
- POST /admin/users/{user_id}/suspend - Suspend an account
- POST /admin/users/{user_id}/reactivate - Reactivate an account
- GET /admin/schools - School list with counts
- PUT /admin/schools/{school_id}/subscription - Change a school's plan
- PUT /admin/features/{school_id} - Merge feature flags into school settings
- GET /admin/logs - System log
- POST /admin/broadcast - Notify a group of users
- GET /admin/jobs - Background jobs
- POST /admin/jobs/{job_id}/trigger|pause|resume - Job control
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser, require_admin_access
from campus.core.database import get_db
from campus.core.rate_limit import enforce_rate_limit
from campus.core.scheduler import list_registered_jobs, pause_job, resume_job, trigger_job_manually
from campus.modules.admin import service
from campus.modules.admin.schemas import (
    AdminOverview,
    AdminUserListResponse,
    BroadcastRequest,
    BroadcastResponse,
    FeatureUpdate,
    JobInfo,
    JobListResponse,
    JobToggleResponse,
    SubscriptionUpdate,
    SuspendRequest,
    SystemLogItem,
    SystemLogListResponse,
)
from campus.modules.audit import repository as audit_repository
from campus.modules.auth.schemas import UserResponse
from campus.modules.auth.service import serialize_user
from campus.modules.schools import service as school_service
from campus.modules.schools.models import SchoolStatus, SchoolType
from campus.modules.schools.schemas import SchoolListResponse, SchoolResponse
from campus.modules.shared import PaginationMeta
from campus.modules.users.models import UserRole
from campus.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter()

# Limits for admin actions (requests, window seconds)
RATE_LIMIT_USER_STATUS = (30, 60)
RATE_LIMIT_BROADCAST = (5, 60)

any_admin = require_admin_access()
user_admins = require_admin_access(UserRole.SUPPORT_ADMIN)
billing_admins = require_admin_access(UserRole.SALES_ADMIN, UserRole.FINANCE_ADMIN)
content_admins = require_admin_access(UserRole.CONTENT_ADMIN)
broadcast_admins = require_admin_access(UserRole.CONTENT_ADMIN, UserRole.SUPPORT_ADMIN)
super_admin_only = require_admin_access(UserRole.SUPER_ADMIN)


@router.get("/overview", response_model=AdminOverview)
async def overview(
    _admin: CurrentUser = Depends(any_admin),
    db: AsyncSession = Depends(get_db),
) -> AdminOverview:
    return await service.get_overview(db)


@router.get("/users", response_model=AdminUserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    role: UserRole | None = None,
    search: str | None = Query(None, max_length=100),
    _admin: CurrentUser = Depends(user_admins),
    db: AsyncSession = Depends(get_db),
) -> AdminUserListResponse:
    users, total = await UserRepository.list_paginated(
        db, role=role, search=search, offset=(page - 1) * limit, limit=limit
    )
    return AdminUserListResponse(
        users=[serialize_user(u) for u in users],
        pagination=PaginationMeta.build(page, limit, total),
    )


@router.post("/users/{user_id}/suspend", response_model=UserResponse)
async def suspend_user(
    user_id: UUID,
    request: Request,
    data: SuspendRequest | None = None,
    admin: CurrentUser = Depends(user_admins),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """
    Suspend an account.

    Raises:
        HTTPException 400: Suspending yourself
        HTTPException 403: Suspending a super admin without being one
    """
    await enforce_rate_limit(f"admin:user-status:{admin.id}", *RATE_LIMIT_USER_STATUS)
    user = await service.suspend_user(
        db, admin, str(user_id), reason=data.reason if data else None, request=request
    )
    return serialize_user(user)


@router.post("/users/{user_id}/reactivate", response_model=UserResponse)
async def reactivate_user(
    user_id: UUID,
    request: Request,
    admin: CurrentUser = Depends(user_admins),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    await enforce_rate_limit(f"admin:user-status:{admin.id}", *RATE_LIMIT_USER_STATUS)
    user = await service.reactivate_user(db, admin, str(user_id), request=request)
    return serialize_user(user)


@router.get("/schools", response_model=SchoolListResponse)
async def list_schools(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, max_length=100),
    school_type: SchoolType | None = Query(None, alias="type"),
    school_status: SchoolStatus | None = Query(None, alias="status"),
    _admin: CurrentUser = Depends(any_admin),
    db: AsyncSession = Depends(get_db),
) -> SchoolListResponse:
    return await school_service.list_schools(
        db, page=page, limit=limit, search=search, school_type=school_type, status=school_status
    )


@router.put("/schools/{school_id}/subscription", response_model=SchoolResponse)
async def update_subscription(
    school_id: UUID,
    data: SubscriptionUpdate,
    request: Request,
    admin: CurrentUser = Depends(billing_admins),
    db: AsyncSession = Depends(get_db),
) -> SchoolResponse:
    school = await service.update_subscription(db, admin, str(school_id), data, request)
    return SchoolResponse.model_validate(school)


@router.put("/features/{school_id}", response_model=SchoolResponse)
async def update_features(
    school_id: UUID,
    data: FeatureUpdate,
    request: Request,
    admin: CurrentUser = Depends(content_admins),
    db: AsyncSession = Depends(get_db),
) -> SchoolResponse:
    school = await service.update_features(db, admin, str(school_id), data.features, request)
    return SchoolResponse.model_validate(school)


@router.get("/logs", response_model=SystemLogListResponse)
async def list_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    action: str | None = Query(None, max_length=100),
    entity_type: str | None = Query(None, max_length=50),
    user_id: UUID | None = None,
    _admin: CurrentUser = Depends(user_admins),
    db: AsyncSession = Depends(get_db),
) -> SystemLogListResponse:
    logs, total = await audit_repository.list_logs(
        db,
        action=action,
        entity_type=entity_type,
        user_id=str(user_id) if user_id else None,
        offset=(page - 1) * limit,
        limit=limit,
    )
    return SystemLogListResponse(
        logs=[SystemLogItem.model_validate(entry) for entry in logs],
        pagination=PaginationMeta.build(page, limit, total),
    )


@router.post("/broadcast", response_model=BroadcastResponse)
async def broadcast(
    data: BroadcastRequest,
    request: Request,
    admin: CurrentUser = Depends(broadcast_admins),
    db: AsyncSession = Depends(get_db),
) -> BroadcastResponse:
    await enforce_rate_limit(f"admin:broadcast:{admin.id}", *RATE_LIMIT_BROADCAST)
    recipients = await service.broadcast(db, admin, data, request)
    return BroadcastResponse(recipients=recipients)


# ============================================
# Background jobs
# ============================================
# Jobs run on their schedule; these endpoints let a super admin inspect
# them and run one immediately.


@router.get("/jobs", response_model=JobListResponse)
async def list_jobs(_admin: CurrentUser = Depends(super_admin_only)) -> JobListResponse:
    return JobListResponse(jobs=[JobInfo(**job) for job in list_registered_jobs()])


@router.post("/jobs/{job_id}/trigger")
async def trigger_job(job_id: str, admin: CurrentUser = Depends(super_admin_only)) -> dict:
    """
    Run a job now, bypassing its schedule.

    Raises:
        HTTPException 404: Unknown job
    """
    try:
        result = await trigger_job_manually(job_id)
    except KeyError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "JOB_NOT_FOUND", "message": f"Job {job_id} is not registered."},
        ) from e
    logger.info(f"{admin} triggered job {job_id}: {result['status']}")
    return result


@router.post("/jobs/{job_id}/pause", response_model=JobToggleResponse)
async def pause_job_endpoint(
    job_id: str,
    _admin: CurrentUser = Depends(super_admin_only),
) -> JobToggleResponse:
    if not pause_job(job_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "JOB_NOT_FOUND", "message": f"Job {job_id} is not scheduled."},
        )
    return JobToggleResponse(job_id=job_id, paused=True)


@router.post("/jobs/{job_id}/resume", response_model=JobToggleResponse)
async def resume_job_endpoint(
    job_id: str,
    _admin: CurrentUser = Depends(super_admin_only),
) -> JobToggleResponse:
    if not resume_job(job_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "JOB_NOT_FOUND", "message": f"Job {job_id} is not scheduled."},
        )
    return JobToggleResponse(job_id=job_id, paused=False)
