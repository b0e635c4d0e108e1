"""
Messaging Service

Direct messages between users and per-user notifications. Mailboxes are
private: only the owner (or a super admin) can list them.
"""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser
from campus.modules.messaging.models import Message, MessageType, Notification
from campus.modules.messaging.schemas import MessageBox, MessageCreate
from campus.modules.shared.errors import ForbiddenError, NotFoundError
from campus.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


def ensure_mailbox_owner(user: CurrentUser, owner_id: str) -> None:
    if user.id != owner_id and not user.is_super_admin:
        raise ForbiddenError("You can only access your own messages.", "MAILBOX_ACCESS_DENIED")


async def create_notification(
    db: AsyncSession,
    *,
    user_id: str,
    title: str,
    message: str,
    type: str = "info",
    school_id: str | None = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        school_id=school_id,
        title=title,
        message=message,
        type=type,
    )
    db.add(notification)
    await db.flush()
    return notification


async def notify_many(
    db: AsyncSession,
    user_ids: list[str],
    *,
    title: str,
    message: str,
    type: str = "info",
    school_id: str | None = None,
) -> int:
    """Create one notification per user; returns how many were created."""
    db.add_all(
        Notification(user_id=uid, school_id=school_id, title=title, message=message, type=type)
        for uid in user_ids
    )
    await db.flush()
    return len(user_ids)


async def send_message(db: AsyncSession, sender: CurrentUser, data: MessageCreate) -> Message:
    """
    Send a direct message and notify the recipient.

    Raises:
        NotFoundError: Unknown or inactive recipient
    """
    recipient = await UserRepository.get_by_id(db, data.recipient_id)
    if recipient is None or not recipient.is_active:
        raise NotFoundError("Recipient", data.recipient_id)

    message = Message(
        school_id=data.school_id,
        sender_id=sender.id,
        recipient_id=recipient.id,
        subject=data.subject,
        content=data.content,
        message_type=MessageType.DIRECT,
    )
    db.add(message)
    await db.flush()
    await db.refresh(message)

    await create_notification(
        db,
        user_id=recipient.id,
        school_id=data.school_id,
        title="New message",
        message=f"{sender.full_name or sender.email}: {data.subject or data.content[:80]}",
        type="message",
    )
    logger.info(f"Message {message.id} sent from {sender.id} to {recipient.id}")
    return message


async def list_messages(
    db: AsyncSession,
    user_id: str,
    box: MessageBox,
    *,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Message], int]:
    column = Message.recipient_id if box == MessageBox.RECEIVED else Message.sender_id
    query = select(Message).where(column == user_id)
    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(query.order_by(Message.created_at.desc()).offset(offset).limit(limit))
    return list(result.scalars().all()), total


async def mark_message_read(db: AsyncSession, user: CurrentUser, message_id: str) -> Message:
    message = await db.get(Message, message_id)
    if message is None:
        raise NotFoundError("Message", message_id)
    if message.recipient_id != user.id:
        raise ForbiddenError("Only the recipient can mark a message as read.", "NOT_RECIPIENT")
    message.is_read = True
    await db.flush()
    await db.refresh(message)
    return message


async def list_notifications(
    db: AsyncSession,
    user_id: str,
    *,
    unread_only: bool = False,
    limit: int = 50,
) -> list[Notification]:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    result = await db.execute(query.order_by(Notification.created_at.desc()).limit(limit))
    return list(result.scalars().all())


async def mark_notification_read(db: AsyncSession, user: CurrentUser, notification_id: str) -> Notification:
    notification = await db.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("Notification", notification_id)
    ensure_mailbox_owner(user, notification.user_id)
    notification.is_read = True
    await db.flush()
    await db.refresh(notification)
    return notification


async def mark_all_read(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    return result.rowcount or 0


async def unread_count(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        )
    )
    return result.scalar_one()
