"""
Shared test fixtures.

Service tests run against an ``AsyncMock`` session with repositories
patched out; no database or Redis is needed.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

import campus.models  # noqa: F401  registers every mapper
from campus.core import rate_limit
from campus.core.auth import CurrentUser, Membership


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture(autouse=True)
def clear_rate_limits():
    rate_limit.reset_memory_store()
    yield
    rate_limit.reset_memory_store()


@pytest.fixture
def school_id() -> str:
    return str(uuid4())


def make_user(
    role: str = "student",
    memberships: dict[str, str] | None = None,
    permissions: dict | None = None,
    **kwargs,
) -> CurrentUser:
    """Build a ``CurrentUser`` with ``{school_id: role}`` memberships."""
    return CurrentUser(
        id=kwargs.pop("id", str(uuid4())),
        email=kwargs.pop("email", "user@test.com"),
        role=role,
        first_name=kwargs.pop("first_name", "Test"),
        last_name=kwargs.pop("last_name", "User"),
        memberships={
            sid: Membership(school_id=sid, role=school_role, permissions=permissions or {})
            for sid, school_role in (memberships or {}).items()
        },
    )


@pytest.fixture
def user_factory():
    return make_user


@pytest.fixture
def now() -> datetime:
    return datetime.now(UTC)
