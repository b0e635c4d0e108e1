"""
Parent Links Router

Endpoints:
- POST /parent-links/request - Staff issue a link code for a student
- POST /parent-links/claim - Parent claims a code
- POST /parent-links/{link_id}/approve - School manager approves a claim
- POST /parent-links/{link_id}/reject - School manager rejects a claim
- GET /parent-links/school/{school_id}/pending - Claims awaiting review
- GET /parent-links/my - Children linked to the caller
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser, get_current_user
from campus.core.database import get_db
from campus.core.tenancy import (
    SchoolContext,
    check_school_access,
    ensure_manager,
    ensure_staff,
    require_school_access,
)
from campus.modules.parent_links import service
from campus.modules.parent_links.schemas import (
    LinkClaimRequest,
    LinkCodeRequest,
    LinkedChild,
    ParentLinkResponse,
)
from campus.modules.students.service import get_student_or_404

router = APIRouter()


@router.post("/request", response_model=ParentLinkResponse, status_code=status.HTTP_201_CREATED)
async def request_link_code(
    data: LinkCodeRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ParentLinkResponse:
    """Issue a code the parent will use to link to this student."""
    student = await get_student_or_404(db, data.student_id)
    ensure_staff(check_school_access(user, student.school_id))
    link = await service.create_link_code(db, student, created_by=user.id)
    return ParentLinkResponse.model_validate(link)


@router.post("/claim", response_model=ParentLinkResponse)
async def claim_link(
    data: LinkClaimRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ParentLinkResponse:
    """
    Claim a link code.

    Raises:
        HTTPException 400: Code expired
        HTTPException 404: Unknown code
        HTTPException 409: Code already used
    """
    link = await service.claim_link(db, user, data.code)
    return ParentLinkResponse.model_validate(link)


@router.post("/{link_id}/approve", response_model=ParentLinkResponse)
async def approve_link(
    link_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ParentLinkResponse:
    link = await service.get_link_or_404(db, str(link_id))
    ensure_manager(check_school_access(user, link.school_id))
    link = await service.approve_link(db, link, reviewer_id=user.id)
    return ParentLinkResponse.model_validate(link)


@router.post("/{link_id}/reject", response_model=ParentLinkResponse)
async def reject_link(
    link_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ParentLinkResponse:
    link = await service.get_link_or_404(db, str(link_id))
    ensure_manager(check_school_access(user, link.school_id))
    link = await service.reject_link(db, link, reviewer_id=user.id)
    return ParentLinkResponse.model_validate(link)


@router.get("/school/{school_id}/pending", response_model=list[ParentLinkResponse])
async def pending_links(
    context: SchoolContext = Depends(require_school_access),
    db: AsyncSession = Depends(get_db),
) -> list[ParentLinkResponse]:
    ensure_manager(context)
    links = await service.list_pending(db, context.school_id)
    return [ParentLinkResponse.model_validate(link) for link in links]


@router.get("/my", response_model=list[LinkedChild])
async def my_children(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[LinkedChild]:
    return await service.list_children(db, user.id)
