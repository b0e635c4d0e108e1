"""
Timetables module - Weekly lesson slots per class.
"""

from campus.modules.timetables.models import TimetableEntry

__all__ = ["TimetableEntry"]
