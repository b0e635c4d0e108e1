"""
Tests for bearer token authentication.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import jwt
import pytest
from fastapi import HTTPException

from campus.core.auth import CurrentUser, authenticate_token
from campus.core.config import settings
from campus.core.security import create_access_token, create_refresh_token, decode_token
from campus.modules.users.models import UserRole


def make_db_user(user_id: str, *, is_active: bool = True, role: UserRole = UserRole.TEACHER):
    school = MagicMock()
    school.name = "Hill School"
    school.code = "HILLSC123"

    membership = MagicMock()
    membership.school_id = "school-1"
    membership.role = UserRole.TEACHER
    membership.permissions = {"fees:create": True}
    membership.is_active = True
    membership.school = school

    inactive = MagicMock()
    inactive.school_id = "school-2"
    inactive.is_active = False

    user = MagicMock()
    user.id = user_id
    user.email = "teacher@test.com"
    user.role = role
    user.first_name = "Ada"
    user.last_name = "Lovelace"
    user.is_active = is_active
    user.memberships = [membership, inactive]
    return user


@pytest.fixture
def not_revoked():
    with patch("campus.core.auth.is_token_id_revoked", new=AsyncMock(return_value=False)) as mock:
        yield mock


class TestAuthenticateToken:
    @pytest.mark.asyncio
    async def test_valid_token_loads_memberships(self, mock_db, not_revoked):
        user_id = str(uuid4())
        token = create_access_token(user_id)
        with patch("campus.core.auth.UserRepository") as repo:
            repo.get_by_id = AsyncMock(return_value=make_db_user(user_id))
            current = await authenticate_token(mock_db, token)

        assert isinstance(current, CurrentUser)
        assert current.id == user_id
        assert current.role == "teacher"
        assert list(current.memberships) == ["school-1"]
        membership = current.memberships["school-1"]
        assert membership.school_code == "HILLSC123"
        assert membership.permissions == {"fees:create": True}
        assert current.jti is not None

    @pytest.mark.asyncio
    async def test_expired_token(self, mock_db):
        token = create_access_token(str(uuid4()), expires_delta=timedelta(seconds=-5))
        with pytest.raises(HTTPException) as exc_info:
            await authenticate_token(mock_db, token)
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail["error"] == "TOKEN_EXPIRED"

    @pytest.mark.asyncio
    async def test_refresh_token_rejected(self, mock_db):
        with pytest.raises(HTTPException) as exc_info:
            await authenticate_token(mock_db, create_refresh_token(str(uuid4())))
        assert exc_info.value.detail["error"] == "INVALID_TOKEN_TYPE"

    @pytest.mark.asyncio
    async def test_token_without_type_rejected(self, mock_db):
        claims = decode_token(create_access_token(str(uuid4())))
        del claims["type"]
        token = jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        with pytest.raises(HTTPException) as exc_info:
            await authenticate_token(mock_db, token)
        assert exc_info.value.detail["error"] == "INVALID_TOKEN_TYPE"

    @pytest.mark.asyncio
    async def test_non_uuid_subject(self, mock_db):
        with pytest.raises(HTTPException) as exc_info:
            await authenticate_token(mock_db, create_access_token("not-a-uuid"))
        assert exc_info.value.detail["error"] == "INVALID_TOKEN_CLAIMS"

    @pytest.mark.asyncio
    async def test_revoked_token(self, mock_db):
        token = create_access_token(str(uuid4()))
        with patch("campus.core.auth.is_token_id_revoked", new=AsyncMock(return_value=True)):
            with pytest.raises(HTTPException) as exc_info:
                await authenticate_token(mock_db, token)
        assert exc_info.value.detail["error"] == "TOKEN_REVOKED"

    @pytest.mark.asyncio
    async def test_inactive_user(self, mock_db, not_revoked):
        user_id = str(uuid4())
        with patch("campus.core.auth.UserRepository") as repo:
            repo.get_by_id = AsyncMock(return_value=make_db_user(user_id, is_active=False))
            with pytest.raises(HTTPException) as exc_info:
                await authenticate_token(mock_db, create_access_token(user_id))
        assert exc_info.value.detail["error"] == "USER_NOT_FOUND"


class TestCurrentUser:
    def test_roles_and_names(self, user_factory, school_id):
        user = user_factory("parent", {school_id: "teacher"}, first_name="Ada", last_name="L")
        assert user.full_name == "Ada L"
        assert user.school_role(school_id) == "teacher"
        assert user.school_role(None) is None
        assert user.all_roles() == {"parent", "teacher"}
        assert not user.is_super_admin
