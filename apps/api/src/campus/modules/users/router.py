"""
Users Router

Endpoints:
- GET /users/school/{school_id} - List school members
- POST /users/school/{school_id}/add - Add an existing user to a school
- PUT /users/school/{school_id}/role/{user_id} - Change a member's role
- DELETE /users/school/{school_id}/remove/{user_id} - Remove a member
- GET /users/{user_id} - User profile
- PUT /users/{user_id} - Update user profile
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser, get_current_user
from campus.core.database import get_db
from campus.core.tenancy import SchoolContext, ensure_manager, require_permission
from campus.modules.auth.schemas import UserResponse
from campus.modules.auth.service import serialize_user
from campus.modules.shared import MessageResponse
from campus.modules.users import service
from campus.modules.users.models import UserRole
from campus.modules.users.schemas import (
    MemberAddRequest,
    MemberResponse,
    MemberRoleUpdate,
    UserUpdate,
)

router = APIRouter()


@router.get("/school/{school_id}", response_model=list[MemberResponse])
async def list_members(
    role: UserRole | None = None,
    search: str | None = Query(None, max_length=100),
    context: SchoolContext = Depends(require_permission("users:view")),
    db: AsyncSession = Depends(get_db),
) -> list[MemberResponse]:
    return await service.list_members(db, context.school_id, role=role, search=search)


@router.post(
    "/school/{school_id}/add",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_member(
    data: MemberAddRequest,
    request: Request,
    context: SchoolContext = Depends(require_permission("users:create")),
    db: AsyncSession = Depends(get_db),
) -> MemberResponse:
    """
    Add an existing user to the school.

    Raises:
        HTTPException 403: Role may not be assigned by the caller
        HTTPException 404: No account with that email
        HTTPException 409: Already a member
    """
    ensure_manager(context)
    return await service.add_member(db, context, data, request)


@router.put("/school/{school_id}/role/{user_id}", response_model=MemberResponse)
async def update_member_role(
    user_id: UUID,
    data: MemberRoleUpdate,
    request: Request,
    context: SchoolContext = Depends(require_permission("users:edit")),
    db: AsyncSession = Depends(get_db),
) -> MemberResponse:
    ensure_manager(context)
    return await service.update_member_role(db, context, str(user_id), data, request)


@router.delete("/school/{school_id}/remove/{user_id}", response_model=MessageResponse)
async def remove_member(
    user_id: UUID,
    request: Request,
    context: SchoolContext = Depends(require_permission("users:edit")),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    ensure_manager(context)
    await service.remove_member(db, context, str(user_id), request)
    return MessageResponse(message="Member removed from school.")


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    return serialize_user(await service.get_user(db, user, str(user_id)))


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    updated = await service.update_user(db, user, str(user_id), data, request)
    return serialize_user(updated)
