"""
Messaging module - Direct messages and notifications.
"""

from campus.modules.messaging.models import Message, MessageType, Notification

__all__ = ["Message", "MessageType", "Notification"]
