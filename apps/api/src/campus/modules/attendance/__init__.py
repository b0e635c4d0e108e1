"""
Attendance module - Daily class attendance.
"""

from campus.modules.attendance.models import Attendance, AttendanceStatus

__all__ = ["Attendance", "AttendanceStatus"]
