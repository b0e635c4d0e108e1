"""
User & Membership Service

Manages who belongs to a school and with which role. Role changes obey the
ranking in ``campus.core.permissions``: an actor may only grant roles at or
below their own rank, may not touch members who outrank them, and may not
modify their own membership.
"""

import logging

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser
from campus.core.permissions import ADMIN_PORTAL_ROLES, SCHOOL_MANAGER_ROLES, can_assign_role, role_rank
from campus.core.sms import normalize_phone
from campus.core.tenancy import SchoolContext
from campus.modules.audit.repository import log_action
from campus.modules.schools.models import SchoolUser
from campus.modules.schools.repository import MembershipRepository
from campus.modules.shared.errors import ConflictError, ForbiddenError, NotFoundError
from campus.modules.users.models import User, UserRole
from campus.modules.users.repository import UserRepository
from campus.modules.users.schemas import (
    MemberAddRequest,
    MemberResponse,
    MemberRoleUpdate,
    UserUpdate,
)

logger = logging.getLogger(__name__)


def _member_response(membership: SchoolUser, user: User) -> MemberResponse:
    return MemberResponse(
        user_id=user.id,
        membership_id=membership.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        avatar_url=user.avatar_url,
        role=membership.role,
        permissions=dict(membership.permissions or {}),
        is_active=membership.is_active,
        joined_at=membership.joined_at,
    )


def _ensure_can_assign(context: SchoolContext, role: UserRole) -> None:
    if not can_assign_role(context.role, role.value):
        logger.warning(f"{context.user} may not assign {role.value} in school {context.school_id}")
        raise ForbiddenError(
            f"You cannot assign the role '{role.value}'.",
            "ROLE_ASSIGNMENT_DENIED",
        )


async def _modifiable_membership(
    db: AsyncSession,
    context: SchoolContext,
    user_id: str,
) -> SchoolUser:
    """Load a membership the actor is allowed to change."""
    if user_id == context.user.id:
        raise ForbiddenError("You cannot modify your own membership.", "CANNOT_MODIFY_SELF")

    membership = await MembershipRepository.get_active(db, context.school_id, user_id)
    if membership is None:
        raise NotFoundError("Member", user_id)

    if not context.is_super_admin and role_rank(membership.role.value) > role_rank(context.role):
        raise ForbiddenError("You cannot modify a member who outranks you.", "INSUFFICIENT_RANK")

    return membership


async def list_members(
    db: AsyncSession,
    school_id: str,
    *,
    role: UserRole | None = None,
    search: str | None = None,
) -> list[MemberResponse]:
    rows = await MembershipRepository.list_members(db, school_id, role=role, search=search)
    return [_member_response(membership, user) for membership, user in rows]


async def add_member(
    db: AsyncSession,
    context: SchoolContext,
    data: MemberAddRequest,
    request: Request | None = None,
) -> MemberResponse:
    """
    Add an existing user to the school.

    A previously removed member is reactivated with the new role.

    Raises:
        NotFoundError: No account with that email
        ConflictError: Already an active member
        ForbiddenError: Actor may not grant the role
    """
    _ensure_can_assign(context, data.role)

    user = await UserRepository.get_by_email(db, data.email)
    if user is None:
        raise NotFoundError("User")

    membership = await MembershipRepository.get(db, context.school_id, user.id)
    if membership is not None and membership.is_active:
        raise ConflictError("User is already a member of this school.", "ALREADY_MEMBER")

    if membership is None:
        membership = await MembershipRepository.create(
            db,
            school_id=context.school_id,
            user_id=user.id,
            role=data.role,
            permissions=data.permissions,
        )
    else:
        membership.role = data.role
        membership.permissions = data.permissions or {}
        membership.is_active = True
        await db.flush()
        logger.info(f"Reactivated user {user.id} in school {context.school_id} as {data.role.value}")

    await log_action(
        db,
        action="member_added",
        user_id=context.user.id,
        entity_type="school_user",
        entity_id=membership.id,
        new_values={"user_id": user.id, "role": data.role.value, "school_id": context.school_id},
        request=request,
    )
    return _member_response(membership, user)


async def update_member_role(
    db: AsyncSession,
    context: SchoolContext,
    user_id: str,
    data: MemberRoleUpdate,
    request: Request | None = None,
) -> MemberResponse:
    membership = await _modifiable_membership(db, context, user_id)
    _ensure_can_assign(context, data.role)

    old_values = {"role": membership.role.value, "permissions": dict(membership.permissions or {})}
    membership.role = data.role
    if data.permissions is not None:
        membership.permissions = data.permissions
    await db.flush()

    await log_action(
        db,
        action="member_role_changed",
        user_id=context.user.id,
        entity_type="school_user",
        entity_id=membership.id,
        old_values=old_values,
        new_values={"role": data.role.value, "permissions": dict(membership.permissions or {})},
        request=request,
    )

    user = await UserRepository.get_by_id(db, user_id)
    return _member_response(membership, user)


async def remove_member(
    db: AsyncSession,
    context: SchoolContext,
    user_id: str,
    request: Request | None = None,
) -> None:
    """Deactivate a membership. The row is kept for history."""
    membership = await _modifiable_membership(db, context, user_id)
    membership.is_active = False
    await db.flush()

    await log_action(
        db,
        action="member_removed",
        user_id=context.user.id,
        entity_type="school_user",
        entity_id=membership.id,
        old_values={"role": membership.role.value},
        request=request,
    )
    logger.info(f"Removed user {user_id} from school {context.school_id}")


async def ensure_user_access(db: AsyncSession, actor: CurrentUser, user_id: str) -> None:
    """
    Allow the user themself, super admins, and managers of a school the
    target belongs to, provided the target holds no admin-portal role and
    does not outrank the manager in any school.

    Raises:
        ForbiddenError: Otherwise
    """
    if actor.id == user_id or actor.is_super_admin:
        return

    managed = {sid: m.role for sid, m in actor.memberships.items() if m.role in SCHOOL_MANAGER_ROLES}
    if managed:
        target = await UserRepository.get_by_id(db, user_id)
        if target is not None and target.role.value not in ADMIN_PORTAL_ROLES:
            target_memberships = await MembershipRepository.list_active_for_user(db, user_id)
            target_rank = max(
                [role_rank(target.role.value)] + [role_rank(m.role.value) for m in target_memberships]
            )
            for membership in target_memberships:
                actor_role = managed.get(str(membership.school_id))
                if actor_role is not None and target_rank <= role_rank(actor_role):
                    return

    raise ForbiddenError("You do not have access to this user.", "USER_ACCESS_DENIED")


async def get_user(db: AsyncSession, actor: CurrentUser, user_id: str) -> User:
    await ensure_user_access(db, actor, user_id)
    user = await UserRepository.get_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


async def update_user(
    db: AsyncSession,
    actor: CurrentUser,
    user_id: str,
    data: UserUpdate,
    request: Request | None = None,
) -> User:
    """
    Update profile fields.

    Raises:
        ForbiddenError: A manager tried to change someone else's phone
        ConflictError: Phone number already used by another account
    """
    user = await get_user(db, actor, user_id)
    changes = data.model_dump(exclude_unset=True)

    if "phone" in changes and actor.id != user.id and not actor.is_super_admin:
        raise ForbiddenError("Only the account owner can change contact details.", "CONTACT_CHANGE_DENIED")

    if changes.get("phone"):
        phone = normalize_phone(changes["phone"])
        existing = await UserRepository.get_by_phone(db, phone)
        if existing is not None and existing.id != user.id:
            raise ConflictError("An account with this phone number already exists.", "PHONE_EXISTS")
        changes["phone"] = phone

    if not changes:
        return user

    old_values = {field: getattr(user, field) for field in changes}
    user = await UserRepository.update_profile(db, user, changes)
    await log_action(
        db,
        action="user_updated",
        user_id=actor.id,
        entity_type="user",
        entity_id=user.id,
        old_values=old_values,
        new_values=changes,
        request=request,
    )
    return user
