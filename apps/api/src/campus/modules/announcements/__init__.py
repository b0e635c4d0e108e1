"""
Announcements module - School announcements and calendar events.
"""

from campus.modules.announcements.models import Announcement, Event, TargetAudience

__all__ = ["Announcement", "Event", "TargetAudience"]
