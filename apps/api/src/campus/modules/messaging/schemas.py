"""
Messaging Schemas
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from campus.modules.messaging.models import MessageType
from campus.modules.shared import PaginationMeta, UUIDStr


class MessageBox(str, Enum):
    RECEIVED = "received"
    SENT = "sent"


class MessageCreate(BaseModel):
    recipient_id: UUIDStr
    school_id: UUIDStr | None = None
    subject: str | None = Field(None, max_length=200)
    content: str = Field(..., min_length=1, max_length=10000)


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str | None = None
    sender_id: str
    recipient_id: str
    subject: str | None = None
    content: str
    message_type: MessageType
    is_read: bool
    created_at: datetime


class MessageListResponse(BaseModel):
    messages: list[MessageResponse]
    pagination: PaginationMeta


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    school_id: str | None = None
    title: str
    message: str
    type: str
    is_read: bool
    created_at: datetime


class UnreadCountResponse(BaseModel):
    unread: int


class MarkAllReadResponse(BaseModel):
    updated: int
