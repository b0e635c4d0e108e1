"""
School Repository

Database operations for schools and school memberships.
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus.modules.schools.models import School, SchoolStatus, SchoolUser, SubscriptionPlan
from campus.modules.users.models import User, UserRole

logger = logging.getLogger(__name__)


class SchoolRepository:
    """Repository for school database operations."""

    @staticmethod
    async def create(db: AsyncSession, *, code: str, **fields) -> School:
        """
        Create a new school record.

        Args:
            db: Database session
            code: Unique school code
            **fields: Remaining School columns (name, email, address, ...)

        Returns:
            Created School instance
        """
        school = School(
            code=code,
            status=SchoolStatus.ACTIVE,
            is_active=True,
            settings={},
            **fields,
        )

        db.add(school)
        await db.flush()
        await db.refresh(school)

        logger.info(f"Created school: {school.id} - {school.name} ({school.code})")
        return school

    @staticmethod
    async def get_by_id(db: AsyncSession, school_id: str | UUID) -> School | None:
        result = await db.execute(select(School).where(School.id == str(school_id)))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_code(db: AsyncSession, code: str) -> School | None:
        result = await db.execute(select(School).where(School.code == code.upper()))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> School | None:
        result = await db.execute(select(School).where(func.lower(School.email) == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def code_exists(db: AsyncSession, code: str) -> bool:
        return await SchoolRepository.get_by_code(db, code) is not None

    @staticmethod
    async def find_by_identifier(db: AsyncSession, identifier: str) -> School | None:
        """
        Resolve a school from a code, email or name fragment.

        Exact code and email matches win over a partial name match.
        """
        identifier = identifier.strip()
        result = await db.execute(
            select(School)
            .where(
                or_(
                    School.code == identifier.upper(),
                    func.lower(School.email) == identifier.lower(),
                    School.name.ilike(f"%{identifier}%"),
                )
            )
            .order_by((School.code == identifier.upper()).desc(), School.name)
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def search_public(db: AsyncSession, query: str, limit: int = 20) -> list[School]:
        pattern = f"%{query}%"
        result = await db.execute(
            select(School)
            .where(
                School.is_active.is_(True),
                or_(School.name.ilike(pattern), School.code.ilike(pattern), School.city.ilike(pattern)),
            )
            .order_by(School.name)
            .limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_paginated(
        db: AsyncSession,
        *,
        search: str | None = None,
        school_type: str | None = None,
        status: SchoolStatus | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[School], int]:
        query = select(School)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(School.name.ilike(pattern), School.email.ilike(pattern), School.code.ilike(pattern))
            )
        if school_type:
            query = query.where(School.school_type == school_type)
        if status is not None:
            query = query.where(School.status == status)

        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
        result = await db.execute(query.order_by(School.created_at.desc()).offset(offset).limit(limit))
        return list(result.scalars().all()), total

    @staticmethod
    async def update_fields(db: AsyncSession, school: School, changes: dict) -> School:
        for field, value in changes.items():
            setattr(school, field, value)
        await db.flush()
        await db.refresh(school)
        logger.info(f"Updated school {school.id}: {sorted(changes)}")
        return school

    @staticmethod
    async def update_status(
        db: AsyncSession,
        school_id: str | UUID,
        status: SchoolStatus,
    ) -> School | None:
        """
        Update a school's status.

        Returns:
            Updated School instance or None if not found
        """
        school = await SchoolRepository.get_by_id(db, school_id)
        if not school:
            return None

        school.status = status
        school.is_active = status == SchoolStatus.ACTIVE

        await db.flush()
        await db.refresh(school)

        logger.info(f"Updated school {school_id} status to {status.value}")
        return school

    @staticmethod
    async def update_subscription(
        db: AsyncSession,
        school: School,
        plan: SubscriptionPlan,
        expires_at: datetime | None,
    ) -> School:
        school.subscription_plan = plan
        school.subscription_expires_at = expires_at
        await db.flush()
        await db.refresh(school)
        logger.info(f"School {school.id} subscription set to {plan.value}")
        return school

    @staticmethod
    async def list_expired_subscriptions(db: AsyncSession, now: datetime) -> list[School]:
        result = await db.execute(
            select(School).where(
                School.subscription_plan != SubscriptionPlan.FREE,
                School.subscription_expires_at.is_not(None),
                School.subscription_expires_at < now,
            )
        )
        return list(result.scalars().all())


class MembershipRepository:
    """Repository for ``SchoolUser`` memberships."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        school_id: str,
        user_id: str,
        role: UserRole,
        permissions: dict | None = None,
    ) -> SchoolUser:
        membership = SchoolUser(
            school_id=school_id,
            user_id=user_id,
            role=role,
            permissions=permissions or {},
            is_active=True,
        )
        db.add(membership)
        await db.flush()
        await db.refresh(membership)

        logger.info(f"Added user {user_id} to school {school_id} as {role.value}")
        return membership

    @staticmethod
    async def get(db: AsyncSession, school_id: str, user_id: str) -> SchoolUser | None:
        result = await db.execute(
            select(SchoolUser).where(
                SchoolUser.school_id == str(school_id),
                SchoolUser.user_id == str(user_id),
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_active(db: AsyncSession, school_id: str, user_id: str) -> SchoolUser | None:
        membership = await MembershipRepository.get(db, school_id, user_id)
        if membership is None or not membership.is_active:
            return None
        return membership

    @staticmethod
    async def list_members(
        db: AsyncSession,
        school_id: str,
        *,
        role: UserRole | None = None,
        search: str | None = None,
    ) -> list[tuple[SchoolUser, User]]:
        query = (
            select(SchoolUser, User)
            .join(User, User.id == SchoolUser.user_id)
            .where(SchoolUser.school_id == str(school_id), SchoolUser.is_active.is_(True))
        )
        if role is not None:
            query = query.where(SchoolUser.role == role)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    User.first_name.ilike(pattern),
                    User.last_name.ilike(pattern),
                    User.email.ilike(pattern),
                )
            )
        result = await db.execute(query.order_by(User.last_name, User.first_name))
        return [(row[0], row[1]) for row in result.all()]

    @staticmethod
    async def list_user_ids_by_roles(
        db: AsyncSession,
        roles: list[UserRole],
        school_id: str | None = None,
    ) -> list[str]:
        query = select(SchoolUser.user_id).where(
            SchoolUser.role.in_(roles), SchoolUser.is_active.is_(True)
        )
        if school_id:
            query = query.where(SchoolUser.school_id == str(school_id))
        result = await db.execute(query.distinct())
        return list(result.scalars().all())

    @staticmethod
    async def count_members(db: AsyncSession, school_id: str, role: UserRole | None = None) -> int:
        query = select(func.count(SchoolUser.id)).where(
            SchoolUser.school_id == str(school_id), SchoolUser.is_active.is_(True)
        )
        if role is not None:
            query = query.where(SchoolUser.role == role)
        return (await db.execute(query)).scalar_one()

    @staticmethod
    async def list_active_for_user(db: AsyncSession, user_id: str) -> list[SchoolUser]:
        result = await db.execute(
            select(SchoolUser).where(
                SchoolUser.user_id == str(user_id),
                SchoolUser.is_active.is_(True),
            )
        )
        return list(result.scalars().all())
