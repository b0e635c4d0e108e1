"""
User Repository

Database operations for user accounts.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus.modules.users.models import User, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: UserRole,
        phone: str | None = None,
        is_active: bool = True,
        is_verified: bool = False,
    ) -> User:
        """
        Create a new user record.

        Args:
            db: Database session
            email: User's email address (unique, stored lowercased)
            password_hash: Hashed password
            first_name: User's first name
            last_name: User's last name
            role: User's global role
            phone: Normalised phone number (optional, unique)
            is_active: Whether user is active
            is_verified: Whether email/phone is verified

        Returns:
            Created User instance
        """
        user = User(
            email=email.lower(),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
            phone=phone,
            is_active=is_active,
            is_verified=is_verified,
        )

        db.add(user)
        await db.flush()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} - {user.email} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: str | UUID) -> User | None:
        """Get a user by ID (memberships are loaded eagerly)."""
        result = await db.execute(select(User).where(User.id == str(user_id)))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Get a user by email address, case-insensitively."""
        result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_phone(db: AsyncSession, phone: str) -> User | None:
        """Get a user by normalised phone number."""
        result = await db.execute(select(User).where(User.phone == phone))
        return result.scalar_one_or_none()

    @staticmethod
    async def email_exists(db: AsyncSession, email: str) -> bool:
        user = await UserRepository.get_by_email(db, email)
        return user is not None

    @staticmethod
    async def phone_exists(db: AsyncSession, phone: str) -> bool:
        user = await UserRepository.get_by_phone(db, phone)
        return user is not None

    @staticmethod
    async def touch_last_login(db: AsyncSession, user: User) -> None:
        user.last_login_at = datetime.now(UTC)
        await db.flush()

    @staticmethod
    async def set_password(db: AsyncSession, user: User, password_hash: str) -> None:
        user.password_hash = password_hash
        await db.flush()
        logger.info(f"Password updated for user {user.id}")

    @staticmethod
    async def set_active(db: AsyncSession, user: User, is_active: bool) -> User:
        user.is_active = is_active
        await db.flush()
        await db.refresh(user)
        logger.info(f"User {user.id} is_active set to {is_active}")
        return user

    @staticmethod
    async def update_profile(db: AsyncSession, user: User, changes: dict) -> User:
        """Apply already-validated profile changes."""
        for field, value in changes.items():
            setattr(user, field, value)
        await db.flush()
        await db.refresh(user)
        return user

    @staticmethod
    async def list_paginated(
        db: AsyncSession,
        *,
        role: UserRole | None = None,
        search: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[User], int]:
        """List users for the admin portal, newest first."""
        query = select(User)
        if role is not None:
            query = query.where(User.role == role)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    User.email.ilike(pattern),
                    User.first_name.ilike(pattern),
                    User.last_name.ilike(pattern),
                )
            )

        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
        result = await db.execute(query.order_by(User.created_at.desc()).offset(offset).limit(limit))
        return list(result.scalars().all()), total

    @staticmethod
    async def list_by_roles(db: AsyncSession, roles: list[UserRole]) -> list[User]:
        result = await db.execute(select(User).where(User.role.in_(roles), User.is_active.is_(True)))
        return list(result.scalars().all())

    @staticmethod
    async def list_active_ids(db: AsyncSession) -> list[str]:
        result = await db.execute(select(User.id).where(User.is_active.is_(True)))
        return list(result.scalars().all())
