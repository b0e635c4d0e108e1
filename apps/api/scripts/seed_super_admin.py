"""
Seed Super Admin User

Creates the initial super admin account for the platform.
Run this script once after the first migration.

Usage:
    cd apps/api
    SEED_ADMIN_EMAIL=ops@example.com SEED_ADMIN_PASSWORD=... python scripts/seed_super_admin.py

Optional: SEED_ADMIN_FIRST_NAME, SEED_ADMIN_LAST_NAME
"""

import asyncio
import os
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import campus.models  # noqa: E402,F401  relationship resolution
from campus.core.database import async_session_maker, engine  # noqa: E402
from campus.core.security import hash_password  # noqa: E402
from campus.modules.users.models import UserRole  # noqa: E402
from campus.modules.users.repository import UserRepository  # noqa: E402


async def seed_super_admin() -> None:
    """Create the super admin user if it doesn't exist."""
    email = os.environ.get("SEED_ADMIN_EMAIL")
    password = os.environ.get("SEED_ADMIN_PASSWORD")
    if not email or not password:
        print("SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD must be set.")
        sys.exit(1)

    first_name = os.environ.get("SEED_ADMIN_FIRST_NAME", "Platform")
    last_name = os.environ.get("SEED_ADMIN_LAST_NAME", "Admin")

    async with async_session_maker() as db:
        existing_user = await UserRepository.get_by_email(db, email)
        if existing_user:
            print(f"Super admin already exists: {email}")
            print(f"  ID: {existing_user.id}")
            print(f"  Role: {existing_user.role.value}")
            return

        admin_user = await UserRepository.create(
            db,
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=UserRole.SUPER_ADMIN,
            is_verified=True,
        )
        await db.commit()

        print("Super admin created successfully!")
        print(f"  Email: {email}")
        print(f"  ID: {admin_user.id}")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_super_admin())
