"""
Unit tests for the parent link handshake.
"""

import re
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from campus.modules.parent_links import service
from campus.modules.parent_links.models import ParentLink, ParentLinkStatus
from campus.modules.schools.models import SchoolUser
from campus.modules.shared import utcnow
from campus.modules.shared.errors import ConflictError, ForbiddenError, InvalidRequestError, NotFoundError
from campus.modules.users.models import UserRole
from factories import make_student


@pytest.fixture
def link(school):
    student = make_student(school)
    return ParentLink(
        id="link-1",
        school_id=school.id,
        student_id=student.id,
        code="AB12CD34",
        status=ParentLinkStatus.PENDING,
        expires_at=utcnow() + timedelta(days=3),
        created_by="admin-1",
    )


def _found(mock_db, link):
    result = MagicMock()
    result.scalar_one_or_none.return_value = link
    mock_db.execute.return_value = result


class TestGenerateLinkCode:
    """Tests for generate_link_code."""

    def test_format(self):
        for _ in range(20):
            assert re.fullmatch(r"[A-Z0-9]{8}", service.generate_link_code())


class TestClaimLink:
    """Tests for claim_link."""

    @pytest.mark.asyncio
    async def test_requires_parent_role(self, mock_db, user_factory):
        with pytest.raises(ForbiddenError) as exc_info:
            await service.claim_link(mock_db, user_factory("teacher"), "AB12CD34")
        assert exc_info.value.error_code == "PARENT_ROLE_REQUIRED"
        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_code(self, mock_db, user_factory):
        _found(mock_db, None)
        with pytest.raises(NotFoundError):
            await service.claim_link(mock_db, user_factory("parent"), "nope")

    @pytest.mark.asyncio
    async def test_already_used(self, mock_db, user_factory, link):
        link.status = ParentLinkStatus.PENDING_APPROVAL
        _found(mock_db, link)
        with pytest.raises(ConflictError) as exc_info:
            await service.claim_link(mock_db, user_factory("parent"), link.code)
        assert exc_info.value.error_code == "LINK_ALREADY_USED"

    @pytest.mark.asyncio
    async def test_expired(self, mock_db, user_factory, link):
        link.expires_at = utcnow() - timedelta(minutes=1)
        _found(mock_db, link)
        with pytest.raises(InvalidRequestError) as exc_info:
            await service.claim_link(mock_db, user_factory("parent"), link.code)
        assert exc_info.value.error_code == "LINK_EXPIRED"

    @pytest.mark.asyncio
    async def test_claim_awaits_approval(self, mock_db, user_factory, link):
        """A parent membership in any school is enough to claim."""
        _found(mock_db, link)
        parent = user_factory("student", memberships={"other-school": "parent"})

        claimed = await service.claim_link(mock_db, parent, " ab12cd34 ")

        assert claimed.parent_id == parent.id
        assert claimed.status == ParentLinkStatus.PENDING_APPROVAL


class TestReviewLink:
    """Tests for approve_link and reject_link."""

    @pytest.mark.asyncio
    async def test_approve_unclaimed(self, mock_db, link):
        with pytest.raises(ConflictError) as exc_info:
            await service.approve_link(mock_db, link, reviewer_id="admin-1")
        assert exc_info.value.error_code == "LINK_NOT_CLAIMED"

    @pytest.mark.asyncio
    async def test_approve_twice_is_noop(self, mock_db, link):
        link.status = ParentLinkStatus.APPROVED
        assert await service.approve_link(mock_db, link, reviewer_id="admin-1") is link
        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_approve_creates_relation_and_membership(self, mock_db, link):
        link.status = ParentLinkStatus.PENDING_APPROVAL
        link.parent_id = "parent-1"
        _found(mock_db, None)

        with (
            patch(f"{service.__name__}.MembershipRepository") as memberships,
            patch(f"{service.__name__}.create_notification", new=AsyncMock()) as notify,
        ):
            memberships.get = AsyncMock(return_value=None)
            memberships.create = AsyncMock()
            await service.approve_link(mock_db, link, reviewer_id="admin-1")

        assert link.status == ParentLinkStatus.APPROVED
        assert link.reviewed_by == "admin-1"
        relation = mock_db.add.call_args.args[0]
        assert (relation.parent_id, relation.student_id) == ("parent-1", link.student_id)
        assert memberships.create.await_args.kwargs["user_id"] == "parent-1"
        assert notify.await_args.kwargs["user_id"] == "parent-1"

    @pytest.mark.asyncio
    async def test_approve_reactivates_revoked_membership_as_parent(self, mock_db, link):
        link.status = ParentLinkStatus.PENDING_APPROVAL
        link.parent_id = "parent-1"
        _found(mock_db, None)
        revoked = SchoolUser(
            school_id=link.school_id,
            user_id="parent-1",
            role=UserRole.SCHOOL_ADMIN,
            permissions={"fees:delete": True},
            is_active=False,
        )

        with (
            patch(f"{service.__name__}.MembershipRepository") as memberships,
            patch(f"{service.__name__}.create_notification", new=AsyncMock()),
        ):
            memberships.get = AsyncMock(return_value=revoked)
            memberships.create = AsyncMock()
            await service.approve_link(mock_db, link, reviewer_id="admin-1")

        assert revoked.is_active is True
        assert revoked.role == UserRole.PARENT
        assert revoked.permissions == {}
        memberships.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_reject_requires_claim(self, mock_db, link):
        with pytest.raises(ConflictError):
            await service.reject_link(mock_db, link, reviewer_id="admin-1")
