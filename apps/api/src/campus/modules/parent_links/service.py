"""
Parent Link Service

Linking a parent to a student is a three-step handshake:

1. School staff generate a short code for the student (valid 7 days).
2. The parent claims the code; the link waits for approval.
3. A school manager approves (creating the parent/student relation and a
   parent membership) or rejects it.
"""

import logging
import secrets
import string
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser
from campus.modules.messaging.service import create_notification
from campus.modules.parent_links.models import ParentLink, ParentLinkStatus, ParentStudent
from campus.modules.parent_links.schemas import LinkedChild
from campus.modules.schools.repository import MembershipRepository
from campus.modules.shared import utcnow
from campus.modules.shared.errors import (
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
    ServiceError,
)
from campus.modules.students.models import Student
from campus.modules.users.models import UserRole

logger = logging.getLogger(__name__)

CODE_LENGTH = 8
CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_TTL = timedelta(days=7)
CODE_ATTEMPTS = 5


def generate_link_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


async def get_link_or_404(db: AsyncSession, link_id: str) -> ParentLink:
    link = await db.get(ParentLink, link_id)
    if link is None:
        raise NotFoundError("Parent link", link_id)
    return link


async def create_link_code(db: AsyncSession, student: Student, *, created_by: str) -> ParentLink:
    for _ in range(CODE_ATTEMPTS):
        code = generate_link_code()
        existing = await db.execute(select(ParentLink.id).where(ParentLink.code == code))
        if existing.first() is None:
            break
    else:
        raise ServiceError("Could not generate a link code. Please try again.", "LINK_CODE_UNAVAILABLE", 503)

    link = ParentLink(
        school_id=student.school_id,
        student_id=student.id,
        code=code,
        status=ParentLinkStatus.PENDING,
        expires_at=utcnow() + CODE_TTL,
        created_by=created_by,
    )
    db.add(link)
    await db.flush()
    await db.refresh(link)
    logger.info(f"Parent link code issued for student {student.id}")
    return link


async def claim_link(db: AsyncSession, parent: CurrentUser, code: str) -> ParentLink:
    """
    Attach the calling parent to a pending link.

    Raises:
        ForbiddenError: Caller is not a parent
        NotFoundError: Unknown code
        ConflictError: Code already claimed or reviewed
        InvalidRequestError: Code expired
    """
    if UserRole.PARENT.value not in parent.all_roles():
        raise ForbiddenError("Only parent accounts can claim link codes.", "PARENT_ROLE_REQUIRED")

    result = await db.execute(select(ParentLink).where(ParentLink.code == code.strip().upper()))
    link = result.scalar_one_or_none()
    if link is None:
        raise NotFoundError("Parent link")
    if link.status != ParentLinkStatus.PENDING:
        raise ConflictError("This link code has already been used.", "LINK_ALREADY_USED")
    if link.expires_at < utcnow():
        raise InvalidRequestError("This link code has expired.", "LINK_EXPIRED")

    link.parent_id = parent.id
    link.status = ParentLinkStatus.PENDING_APPROVAL
    await db.flush()
    await db.refresh(link)
    logger.info(f"Parent {parent.id} claimed link {link.id}")
    return link


async def approve_link(db: AsyncSession, link: ParentLink, *, reviewer_id: str) -> ParentLink:
    """Approve a claimed link. Approving twice is a no-op."""
    if link.status == ParentLinkStatus.APPROVED:
        return link
    if link.status != ParentLinkStatus.PENDING_APPROVAL or link.parent_id is None:
        raise ConflictError("Only claimed links can be approved.", "LINK_NOT_CLAIMED")

    existing = await db.execute(
        select(ParentStudent).where(
            ParentStudent.parent_id == link.parent_id,
            ParentStudent.student_id == link.student_id,
        )
    )
    if existing.scalar_one_or_none() is None:
        db.add(ParentStudent(parent_id=link.parent_id, student_id=link.student_id))

    membership = await MembershipRepository.get(db, link.school_id, link.parent_id)
    if membership is None:
        await MembershipRepository.create(
            db,
            school_id=link.school_id,
            user_id=link.parent_id,
            role=UserRole.PARENT,
        )
    elif not membership.is_active:
        # A revoked membership comes back as a parent, never with its old role.
        membership.role = UserRole.PARENT
        membership.permissions = {}
        membership.is_active = True

    link.status = ParentLinkStatus.APPROVED
    link.reviewed_by = reviewer_id
    link.reviewed_at = utcnow()
    await db.flush()
    await db.refresh(link)

    await create_notification(
        db,
        user_id=link.parent_id,
        school_id=link.school_id,
        title="Parent link approved",
        message="You can now follow your child's progress.",
        type="parent_link",
    )
    logger.info(f"Parent link {link.id} approved by {reviewer_id}")
    return link


async def reject_link(db: AsyncSession, link: ParentLink, *, reviewer_id: str) -> ParentLink:
    if link.status != ParentLinkStatus.PENDING_APPROVAL:
        raise ConflictError("Only claimed links can be rejected.", "LINK_NOT_CLAIMED")

    link.status = ParentLinkStatus.REJECTED
    link.reviewed_by = reviewer_id
    link.reviewed_at = utcnow()
    await db.flush()
    await db.refresh(link)
    logger.info(f"Parent link {link.id} rejected by {reviewer_id}")
    return link


async def list_pending(db: AsyncSession, school_id: str) -> list[ParentLink]:
    result = await db.execute(
        select(ParentLink)
        .where(
            ParentLink.school_id == school_id,
            ParentLink.status == ParentLinkStatus.PENDING_APPROVAL,
        )
        .order_by(ParentLink.updated_at)
    )
    return list(result.scalars().all())


async def list_children(db: AsyncSession, parent_id: str) -> list[LinkedChild]:
    result = await db.execute(
        select(Student, ParentStudent.relationship_type)
        .join(ParentStudent, ParentStudent.student_id == Student.id)
        .where(ParentStudent.parent_id == parent_id)
        .order_by(Student.created_at)
    )
    children = []
    for student, relationship in result.all():
        user = student.user
        children.append(
            LinkedChild(
                student_id=student.id,
                school_id=student.school_id,
                student_number=student.student_number,
                first_name=user.first_name if user else "",
                last_name=user.last_name if user else "",
                class_id=student.class_id,
                relationship=relationship,
            )
        )
    return children

