"""
Unit tests for admin portal actions.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from campus.modules.admin import service
from campus.modules.admin.schemas import BroadcastRequest, SubscriptionUpdate
from campus.modules.schools.models import SubscriptionPlan
from campus.modules.shared import utcnow
from campus.modules.shared.errors import ForbiddenError, InvalidRequestError, NotFoundError
from campus.modules.users.models import UserRole
from factories import make_orm_user, make_school

SERVICE = "campus.modules.admin.service"


@pytest.fixture
def users():
    with patch(f"{SERVICE}.UserRepository") as repo:
        repo.get_by_id = AsyncMock(return_value=None)
        repo.set_active = AsyncMock(side_effect=lambda db, user, active: _apply(user, {"is_active": active}))
        repo.list_active_ids = AsyncMock(return_value=["u-1", "u-2", "u-3"])
        yield repo


@pytest.fixture
def schools():
    with (
        patch(f"{SERVICE}.get_school_or_404", new=AsyncMock()) as get_school,
        patch(f"{SERVICE}.SchoolRepository") as repo,
    ):
        repo.update_fields = AsyncMock(side_effect=lambda db, school, fields: _apply(school, fields))
        repo.update_subscription = AsyncMock()
        yield get_school, repo


@pytest.fixture(autouse=True)
def log_action():
    with patch(f"{SERVICE}.log_action", new=AsyncMock()) as mock:
        yield mock


def _apply(obj, fields):
    for name, value in fields.items():
        setattr(obj, name, value)
    return obj


class TestSuspendUser:
    """Tests for suspend_user and reactivate_user."""

    @pytest.mark.asyncio
    async def test_unknown_user(self, mock_db, user_factory, users):
        with pytest.raises(NotFoundError):
            await service.suspend_user(mock_db, user_factory("support_admin"), "missing")

    @pytest.mark.asyncio
    async def test_cannot_suspend_self(self, mock_db, user_factory, users):
        actor = user_factory("support_admin")
        users.get_by_id.return_value = make_orm_user(UserRole.SUPPORT_ADMIN, id=actor.id)

        with pytest.raises(InvalidRequestError) as exc_info:
            await service.suspend_user(mock_db, actor, actor.id)

        assert exc_info.value.error_code == "CANNOT_SUSPEND_SELF"

    @pytest.mark.asyncio
    async def test_support_admin_cannot_suspend_super_admin(self, mock_db, user_factory, users):
        target = make_orm_user(UserRole.SUPER_ADMIN)
        users.get_by_id.return_value = target

        with pytest.raises(ForbiddenError) as exc_info:
            await service.suspend_user(mock_db, user_factory("support_admin"), target.id)

        assert exc_info.value.error_code == "CANNOT_SUSPEND_SUPER_ADMIN"
        assert target.is_active is True

    @pytest.mark.asyncio
    async def test_suspend_and_reactivate(self, mock_db, user_factory, users, log_action):
        actor = user_factory("super_admin")
        target = make_orm_user(UserRole.TEACHER)
        users.get_by_id.return_value = target

        await service.suspend_user(mock_db, actor, target.id, reason="Abuse report")
        assert target.is_active is False
        assert log_action.await_args.kwargs["action"] == "user_suspended"
        assert log_action.await_args.kwargs["details"] == "Abuse report"

        await service.reactivate_user(mock_db, actor, target.id)
        assert target.is_active is True
        assert log_action.await_args.kwargs["action"] == "user_reactivated"


class TestSchoolSettings:
    """Tests for update_features and update_subscription."""

    @pytest.mark.asyncio
    async def test_features_are_merged(self, mock_db, user_factory, schools):
        get_school, _ = schools
        school = make_school(settings={"features": {"sms": True, "fees": False}, "theme": "blue"})
        get_school.return_value = school

        updated = await service.update_features(mock_db, user_factory("super_admin"), school.id, {"fees": True})

        assert updated.settings == {"features": {"sms": True, "fees": True}, "theme": "blue"}

    @pytest.mark.asyncio
    async def test_expiry_in_past_rejected(self, mock_db, user_factory, schools):
        get_school, repo = schools
        get_school.return_value = make_school()
        data = SubscriptionUpdate(plan=SubscriptionPlan.PREMIUM, expires_at=utcnow() - timedelta(days=1))

        with pytest.raises(InvalidRequestError) as exc_info:
            await service.update_subscription(mock_db, user_factory("sales_admin"), "school-1", data)

        assert exc_info.value.error_code == "INVALID_EXPIRY"
        repo.update_subscription.assert_not_called()


class TestBroadcast:
    """Tests for broadcast."""

    @pytest.mark.asyncio
    async def test_all_users(self, mock_db, user_factory, users, log_action):
        with patch(f"{SERVICE}.notify_many", new=AsyncMock(return_value=3)) as notify:
            count = await service.broadcast(
                mock_db, user_factory("content_admin"), BroadcastRequest(title="Maintenance", message="Tonight")
            )

        assert count == 3
        assert notify.await_args.args[1] == ["u-1", "u-2", "u-3"]
        assert log_action.await_args.kwargs["new_values"]["recipients"] == 3
