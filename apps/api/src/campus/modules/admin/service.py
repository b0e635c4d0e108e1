"""
Admin Portal Service

Platform-wide views and actions for admin-portal users. Every mutating
action is written to the system log.
"""

import logging
from datetime import timedelta

from fastapi import Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser
from campus.core.permissions import ADMIN_PORTAL_ROLES
from campus.modules.admin.schemas import (
    ActivityItem,
    AdminOverview,
    BroadcastRequest,
    SubscriptionUpdate,
)
from campus.modules.audit import repository as audit_repository
from campus.modules.audit.repository import log_action
from campus.modules.fees.models import FeePayment, PaymentStatus
from campus.modules.messaging.service import notify_many
from campus.modules.schools.models import School, SubscriptionPlan
from campus.modules.schools.repository import MembershipRepository, SchoolRepository
from campus.modules.schools.service import get_school_or_404
from campus.modules.shared import utcnow
from campus.modules.shared.errors import ForbiddenError, InvalidRequestError, NotFoundError
from campus.modules.students.models import Student
from campus.modules.teachers.models import Teacher
from campus.modules.users.models import User, UserRole
from campus.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

SCHOOL_BROADCAST_ROLES = [UserRole.SCHOOL_ADMIN, UserRole.PRINCIPAL]


async def _scalar(db: AsyncSession, query) -> int:
    return (await db.execute(query)).scalar_one() or 0


async def get_overview(db: AsyncSession) -> AdminOverview:
    month_ago = utcnow() - timedelta(days=30)

    plan_rows = await db.execute(
        select(School.subscription_plan, func.count(School.id)).group_by(School.subscription_plan)
    )
    distribution = {plan.value: 0 for plan in SubscriptionPlan}
    for plan, count in plan_rows.all():
        distribution[plan.value] = count

    revenue = (
        await db.execute(
            select(func.coalesce(func.sum(FeePayment.amount_paid), 0)).where(
                FeePayment.status == PaymentStatus.COMPLETED,
                FeePayment.payment_date >= month_ago,
            )
        )
    ).scalar_one()

    recent = await audit_repository.recent(db, limit=10)

    return AdminOverview(
        active_schools=await _scalar(
            db, select(func.count(School.id)).where(School.is_active.is_(True))
        ),
        total_schools=await _scalar(db, select(func.count(School.id))),
        total_users=await _scalar(db, select(func.count(User.id))),
        total_students=await _scalar(db, select(func.count(Student.id))),
        total_teachers=await _scalar(db, select(func.count(Teacher.id))),
        revenue_30d=float(revenue or 0),
        paid_schools=sum(count for plan, count in distribution.items() if plan != SubscriptionPlan.FREE.value),
        plan_distribution=distribution,
        recent_activity=[ActivityItem.model_validate(entry) for entry in recent],
    )


async def _set_user_active(
    db: AsyncSession,
    actor: CurrentUser,
    user_id: str,
    *,
    active: bool,
    reason: str | None,
    request: Request | None,
) -> User:
    user = await UserRepository.get_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User", user_id)

    if not active:
        if user.id == actor.id:
            raise InvalidRequestError("You cannot suspend your own account.", "CANNOT_SUSPEND_SELF")
        if user.role == UserRole.SUPER_ADMIN and not actor.is_super_admin:
            raise ForbiddenError("Only super admins can suspend a super admin.", "CANNOT_SUSPEND_SUPER_ADMIN")

    user = await UserRepository.set_active(db, user, active)
    await log_action(
        db,
        action="user_reactivated" if active else "user_suspended",
        user_id=actor.id,
        entity_type="user",
        entity_id=user.id,
        old_values={"is_active": not active},
        new_values={"is_active": active},
        details=reason,
        request=request,
    )
    logger.info(f"{actor} set user {user.id} active={active}")
    return user


async def suspend_user(
    db: AsyncSession,
    actor: CurrentUser,
    user_id: str,
    reason: str | None = None,
    request: Request | None = None,
) -> User:
    return await _set_user_active(db, actor, user_id, active=False, reason=reason, request=request)


async def reactivate_user(
    db: AsyncSession,
    actor: CurrentUser,
    user_id: str,
    request: Request | None = None,
) -> User:
    return await _set_user_active(db, actor, user_id, active=True, reason=None, request=request)


async def update_subscription(
    db: AsyncSession,
    actor: CurrentUser,
    school_id: str,
    data: SubscriptionUpdate,
    request: Request | None = None,
) -> School:
    school = await get_school_or_404(db, school_id)
    if data.plan != SubscriptionPlan.FREE and data.expires_at is not None and data.expires_at <= utcnow():
        raise InvalidRequestError("Expiry date must be in the future.", "INVALID_EXPIRY")

    old_values = {
        "plan": school.subscription_plan.value,
        "expires_at": school.subscription_expires_at.isoformat() if school.subscription_expires_at else None,
    }
    school = await SchoolRepository.update_subscription(db, school, data.plan, data.expires_at)
    await log_action(
        db,
        action="subscription_updated",
        user_id=actor.id,
        entity_type="school",
        entity_id=school.id,
        old_values=old_values,
        new_values={
            "plan": data.plan.value,
            "expires_at": data.expires_at.isoformat() if data.expires_at else None,
        },
        request=request,
    )
    return school


async def update_features(
    db: AsyncSession,
    actor: CurrentUser,
    school_id: str,
    features: dict,
    request: Request | None = None,
) -> School:
    """Merge feature flags into ``settings["features"]``."""
    school = await get_school_or_404(db, school_id)
    settings = dict(school.settings or {})
    previous = dict(settings.get("features") or {})
    settings["features"] = {**previous, **features}

    school = await SchoolRepository.update_fields(db, school, {"settings": settings})
    await log_action(
        db,
        action="features_updated",
        user_id=actor.id,
        entity_type="school",
        entity_id=school.id,
        old_values={"features": previous},
        new_values={"features": settings["features"]},
        request=request,
    )
    return school


async def _broadcast_recipients(db: AsyncSession, audience: str) -> list[str]:
    if audience == "admins":
        users = await UserRepository.list_by_roles(db, [UserRole(role) for role in ADMIN_PORTAL_ROLES])
        return [u.id for u in users]
    if audience == "schools":
        return await MembershipRepository.list_user_ids_by_roles(db, SCHOOL_BROADCAST_ROLES)
    return await UserRepository.list_active_ids(db)


async def broadcast(
    db: AsyncSession,
    actor: CurrentUser,
    data: BroadcastRequest,
    request: Request | None = None,
) -> int:
    recipients = await _broadcast_recipients(db, data.audience)
    count = await notify_many(db, recipients, title=data.title, message=data.message, type=data.type)
    await log_action(
        db,
        action="broadcast_sent",
        user_id=actor.id,
        entity_type="notification",
        new_values={"audience": data.audience, "title": data.title, "recipients": count},
        request=request,
    )
    logger.info(f"{actor} broadcast '{data.title}' to {count} users ({data.audience})")
    return count
