"""
Messaging Routers

Endpoints:
- POST /messages - Send a direct message
- GET /messages/user/{user_id} - Inbox (box=received) or sent items (box=sent)
- PATCH /messages/{message_id}/read - Mark a message read (recipient only)
- GET /notifications/user/{user_id} - Notifications (unread_only filter)
- GET /notifications/user/{user_id}/unread-count - Unread notification count
- PATCH /notifications/user/{user_id}/read-all - Mark every notification read
- PATCH /notifications/{notification_id}/read - Mark one notification read
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser, get_current_user
from campus.core.database import get_db
from campus.core.tenancy import ensure_permission, parse_school_id
from campus.modules.messaging import service
from campus.modules.messaging.schemas import (
    MarkAllReadResponse,
    MessageBox,
    MessageCreate,
    MessageListResponse,
    MessageResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from campus.modules.shared import PaginationMeta

messages_router = APIRouter()
notifications_router = APIRouter()


@messages_router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    data: MessageCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Send a message. When ``school_id`` is given the sender must be a member
    of that school with permission to send messages.
    """
    if data.school_id:
        data.school_id = parse_school_id(data.school_id)
        ensure_permission(user, data.school_id, "messages:create")
    message = await service.send_message(db, user, data)
    return MessageResponse.model_validate(message)


@messages_router.get("/user/{user_id}", response_model=MessageListResponse)
async def list_messages(
    user_id: UUID,
    box: MessageBox = MessageBox.RECEIVED,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageListResponse:
    service.ensure_mailbox_owner(user, str(user_id))
    messages, total = await service.list_messages(
        db, str(user_id), box, offset=(page - 1) * limit, limit=limit
    )
    return MessageListResponse(
        messages=[MessageResponse.model_validate(m) for m in messages],
        pagination=PaginationMeta.build(page, limit, total),
    )


@messages_router.patch("/{message_id}/read", response_model=MessageResponse)
async def mark_message_read(
    message_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    message = await service.mark_message_read(db, user, str(message_id))
    return MessageResponse.model_validate(message)


@notifications_router.get("/user/{user_id}", response_model=list[NotificationResponse])
async def list_notifications(
    user_id: UUID,
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[NotificationResponse]:
    service.ensure_mailbox_owner(user, str(user_id))
    notifications = await service.list_notifications(
        db, str(user_id), unread_only=unread_only, limit=limit
    )
    return [NotificationResponse.model_validate(n) for n in notifications]


@notifications_router.get("/user/{user_id}/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UnreadCountResponse:
    service.ensure_mailbox_owner(user, str(user_id))
    return UnreadCountResponse(unread=await service.unread_count(db, str(user_id)))


@notifications_router.patch("/user/{user_id}/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    user_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MarkAllReadResponse:
    service.ensure_mailbox_owner(user, str(user_id))
    return MarkAllReadResponse(updated=await service.mark_all_read(db, str(user_id)))


@notifications_router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> NotificationResponse:
    notification = await service.mark_notification_read(db, user, str(notification_id))
    return NotificationResponse.model_validate(notification)
