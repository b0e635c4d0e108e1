"""
Unit tests for direct messages and notifications.
"""

from unittest.mock import AsyncMock, patch

import pytest

from campus.modules.messaging import service
from campus.modules.messaging.models import Message
from campus.modules.messaging.schemas import MessageCreate
from campus.modules.shared.errors import ForbiddenError, NotFoundError
from campus.modules.users.models import UserRole
from factories import make_orm_user

SERVICE = "campus.modules.messaging.service"


class TestMailboxOwner:
    """Tests for ensure_mailbox_owner."""

    def test_owner_allowed(self, user_factory):
        user = user_factory("teacher")
        service.ensure_mailbox_owner(user, user.id)

    def test_super_admin_allowed(self, user_factory):
        service.ensure_mailbox_owner(user_factory("super_admin"), "someone")

    def test_other_user_denied(self, user_factory):
        with pytest.raises(ForbiddenError) as exc_info:
            service.ensure_mailbox_owner(user_factory("school_admin"), "someone")
        assert exc_info.value.error_code == "MAILBOX_ACCESS_DENIED"


class TestSendMessage:
    """Tests for send_message."""

    @pytest.mark.asyncio
    async def test_inactive_recipient(self, mock_db, user_factory):
        recipient = make_orm_user(UserRole.PARENT, is_active=False)
        with patch(f"{SERVICE}.UserRepository") as users:
            users.get_by_id = AsyncMock(return_value=recipient)
            with pytest.raises(NotFoundError):
                await service.send_message(
                    mock_db, user_factory("teacher"), MessageCreate(recipient_id=recipient.id, content="Hi")
                )
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_notifies_recipient(self, mock_db, user_factory):
        sender = user_factory("teacher", first_name="Grace", last_name="Otieno")
        recipient = make_orm_user(UserRole.PARENT)
        with (
            patch(f"{SERVICE}.UserRepository") as users,
            patch(f"{SERVICE}.create_notification", new=AsyncMock()) as notify,
        ):
            users.get_by_id = AsyncMock(return_value=recipient)
            message = await service.send_message(
                mock_db, sender, MessageCreate(recipient_id=recipient.id, subject="Homework", content="Please check")
            )

        assert message.sender_id == sender.id
        assert message.recipient_id == recipient.id
        kwargs = notify.await_args.kwargs
        assert kwargs["user_id"] == recipient.id
        assert kwargs["message"] == "Grace Otieno: Homework"


class TestMarkMessageRead:
    """Tests for mark_message_read."""

    @pytest.mark.asyncio
    async def test_only_recipient(self, mock_db, user_factory):
        mock_db.get = AsyncMock(return_value=Message(sender_id="a", recipient_id="b", content="x"))
        with pytest.raises(ForbiddenError) as exc_info:
            await service.mark_message_read(mock_db, user_factory("teacher", id="a"), "m-1")
        assert exc_info.value.error_code == "NOT_RECIPIENT"

    @pytest.mark.asyncio
    async def test_marks_read(self, mock_db, user_factory):
        message = Message(sender_id="a", recipient_id="b", content="x", is_read=False)
        mock_db.get = AsyncMock(return_value=message)
        await service.mark_message_read(mock_db, user_factory("parent", id="b"), "m-1")
        assert message.is_read is True
