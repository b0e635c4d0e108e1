"""
Unit tests for membership management rules.
"""

from unittest.mock import AsyncMock, patch

import pytest

from campus.core.tenancy import check_school_access
from campus.modules.shared.errors import ConflictError, ForbiddenError, NotFoundError
from campus.modules.users import service
from campus.modules.users.models import UserRole
from campus.modules.users.schemas import MemberAddRequest, MemberRoleUpdate, UserUpdate
from factories import add_membership, make_orm_user, make_school

SERVICE = "campus.modules.users.service"


@pytest.fixture
def memberships():
    with patch(f"{SERVICE}.MembershipRepository") as repo:
        repo.get = AsyncMock(return_value=None)
        repo.get_active = AsyncMock(return_value=None)
        repo.create = AsyncMock()
        repo.list_active_for_user = AsyncMock(return_value=[])
        yield repo


@pytest.fixture
def users():
    with patch(f"{SERVICE}.UserRepository") as repo:
        repo.get_by_email = AsyncMock(return_value=None)
        repo.get_by_id = AsyncMock(return_value=None)
        repo.get_by_phone = AsyncMock(return_value=None)
        repo.update_profile = AsyncMock(side_effect=lambda db, user, changes: user)
        yield repo


@pytest.fixture(autouse=True)
def log_action():
    with patch(f"{SERVICE}.log_action", new=AsyncMock()) as mock:
        yield mock


def _context(user_factory, school_id, role):
    return check_school_access(user_factory(role, memberships={school_id: role}), school_id)


class TestAddMember:
    """Tests for add_member."""

    @pytest.mark.asyncio
    async def test_cannot_grant_higher_role(self, mock_db, user_factory, school, memberships, users):
        context = _context(user_factory, school.id, "teacher")

        with pytest.raises(ForbiddenError) as exc_info:
            await service.add_member(
                mock_db, context, MemberAddRequest(email="x@test.com", role=UserRole.SCHOOL_ADMIN)
            )

        assert exc_info.value.error_code == "ROLE_ASSIGNMENT_DENIED"
        users.get_by_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_cannot_grant_admin_portal_role(self, mock_db, user_factory, school, memberships, users):
        context = _context(user_factory, school.id, "school_admin")

        with pytest.raises(ForbiddenError):
            await service.add_member(
                mock_db, context, MemberAddRequest(email="x@test.com", role=UserRole.SUPPORT_ADMIN)
            )

    @pytest.mark.asyncio
    async def test_unknown_email(self, mock_db, user_factory, school, memberships, users):
        context = _context(user_factory, school.id, "school_admin")

        with pytest.raises(NotFoundError):
            await service.add_member(mock_db, context, MemberAddRequest(email="x@test.com", role=UserRole.TEACHER))

    @pytest.mark.asyncio
    async def test_already_member(self, mock_db, user_factory, school, memberships, users):
        context = _context(user_factory, school.id, "school_admin")
        user = make_orm_user(UserRole.TEACHER)
        users.get_by_email.return_value = user
        memberships.get.return_value = add_membership(user, school, UserRole.TEACHER)

        with pytest.raises(ConflictError) as exc_info:
            await service.add_member(mock_db, context, MemberAddRequest(email=user.email, role=UserRole.TEACHER))

        assert exc_info.value.error_code == "ALREADY_MEMBER"

    @pytest.mark.asyncio
    async def test_reactivates_removed_member(self, mock_db, user_factory, school, memberships, users, log_action):
        context = _context(user_factory, school.id, "school_admin")
        user = make_orm_user(UserRole.STUDENT)
        users.get_by_email.return_value = user
        membership = add_membership(user, school, UserRole.STUDENT, is_active=False)
        memberships.get.return_value = membership

        response = await service.add_member(
            mock_db, context, MemberAddRequest(email=user.email, role=UserRole.TEACHER)
        )

        assert membership.is_active is True
        assert response.role == UserRole.TEACHER
        memberships.create.assert_not_called()
        assert log_action.await_args.kwargs["action"] == "member_added"


class TestModifyMember:
    """Tests for update_member_role and remove_member."""

    @pytest.mark.asyncio
    async def test_cannot_modify_self(self, mock_db, user_factory, school, memberships, users):
        context = _context(user_factory, school.id, "school_admin")

        with pytest.raises(ForbiddenError) as exc_info:
            await service.remove_member(mock_db, context, context.user.id)

        assert exc_info.value.error_code == "CANNOT_MODIFY_SELF"

    @pytest.mark.asyncio
    async def test_cannot_modify_higher_rank(self, mock_db, user_factory, school, memberships, users):
        context = _context(user_factory, school.id, "principal")
        target = make_orm_user(UserRole.SCHOOL_ADMIN)
        memberships.get_active.return_value = add_membership(target, school, UserRole.SCHOOL_ADMIN)

        with pytest.raises(ForbiddenError) as exc_info:
            await service.update_member_role(
                mock_db, context, target.id, MemberRoleUpdate(role=UserRole.TEACHER)
            )

        assert exc_info.value.error_code == "INSUFFICIENT_RANK"

    @pytest.mark.asyncio
    async def test_remove_deactivates(self, mock_db, user_factory, school, memberships, users):
        context = _context(user_factory, school.id, "school_admin")
        target = make_orm_user(UserRole.TEACHER)
        membership = add_membership(target, school, UserRole.TEACHER)
        memberships.get_active.return_value = membership

        await service.remove_member(mock_db, context, target.id)

        assert membership.is_active is False

    @pytest.mark.asyncio
    async def test_missing_member(self, mock_db, user_factory, school, memberships, users):
        context = _context(user_factory, school.id, "school_admin")

        with pytest.raises(NotFoundError):
            await service.remove_member(mock_db, context, "someone-else")


class TestUserAccess:
    """Tests for ensure_user_access and update_user."""

    @pytest.mark.asyncio
    async def test_manager_edits_lower_ranked_member(self, mock_db, user_factory, school, memberships, users):
        actor = user_factory("school_admin", memberships={school.id: "school_admin"})
        target = make_orm_user(UserRole.TEACHER)
        users.get_by_id.return_value = target
        memberships.list_active_for_user.return_value = [add_membership(target, school, UserRole.TEACHER)]

        updated = await service.update_user(mock_db, actor, target.id, UserUpdate(first_name="Ada"))

        assert updated is target
        users.update_profile.assert_awaited_once_with(mock_db, target, {"first_name": "Ada"})

    @pytest.mark.asyncio
    async def test_manager_cannot_reach_admin_portal_user(self, mock_db, user_factory, school, memberships, users):
        actor = user_factory("school_admin", memberships={school.id: "school_admin"})
        target = make_orm_user(UserRole.SUPER_ADMIN)
        users.get_by_id.return_value = target
        memberships.list_active_for_user.return_value = [add_membership(target, school, UserRole.STUDENT)]

        with pytest.raises(ForbiddenError) as exc_info:
            await service.update_user(mock_db, actor, target.id, UserUpdate(phone="+254799999999"))

        assert exc_info.value.error_code == "USER_ACCESS_DENIED"
        users.update_profile.assert_not_called()

    @pytest.mark.asyncio
    async def test_manager_cannot_reach_higher_rank_elsewhere(
        self, mock_db, user_factory, school, memberships, users
    ):
        other_school = make_school(code="OTHER1234", email="office@other.com")
        actor = user_factory("principal", memberships={school.id: "principal"})
        target = make_orm_user(UserRole.STUDENT)
        users.get_by_id.return_value = target
        memberships.list_active_for_user.return_value = [
            add_membership(target, school, UserRole.STUDENT),
            add_membership(target, other_school, UserRole.SCHOOL_ADMIN),
        ]

        with pytest.raises(ForbiddenError):
            await service.get_user(mock_db, actor, target.id)

    @pytest.mark.asyncio
    async def test_no_shared_school(self, mock_db, user_factory, school, memberships, users):
        actor = user_factory("school_admin", memberships={school.id: "school_admin"})
        users.get_by_id.return_value = make_orm_user(UserRole.TEACHER)

        with pytest.raises(ForbiddenError):
            await service.get_user(mock_db, actor, users.get_by_id.return_value.id)

    @pytest.mark.asyncio
    async def test_manager_cannot_change_phone(self, mock_db, user_factory, school, memberships, users):
        actor = user_factory("school_admin", memberships={school.id: "school_admin"})
        target = make_orm_user(UserRole.TEACHER)
        users.get_by_id.return_value = target
        memberships.list_active_for_user.return_value = [add_membership(target, school, UserRole.TEACHER)]

        with pytest.raises(ForbiddenError) as exc_info:
            await service.update_user(mock_db, actor, target.id, UserUpdate(phone="0712345678"))

        assert exc_info.value.error_code == "CONTACT_CHANGE_DENIED"
        users.update_profile.assert_not_called()

    @pytest.mark.asyncio
    async def test_owner_changes_phone_normalised(self, mock_db, user_factory, memberships, users):
        target = make_orm_user(UserRole.TEACHER)
        actor = user_factory("teacher", id=target.id)
        users.get_by_id.return_value = target

        await service.update_user(mock_db, actor, target.id, UserUpdate(phone="0712345678"))

        assert users.update_profile.await_args.args[2] == {"phone": "+254712345678"}
