"""
Dashboard Schemas

Each dashboard is a set of widgets assembled from the feature modules.
"""

from pydantic import BaseModel

from campus.modules.announcements.schemas import AnnouncementResponse, EventResponse
from campus.modules.attendance.schemas import AttendanceSummary
from campus.modules.fees.schemas import StudentFeeStatus
from campus.modules.grades.schemas import GradeResponse
from campus.modules.parent_links.schemas import LinkedChild
from campus.modules.schools.schemas import SchoolPublicResponse, SchoolStatsResponse
from campus.modules.students.schemas import StudentResponse


class StudentDashboard(BaseModel):
    student: StudentResponse | None = None
    attendance: AttendanceSummary
    recent_grades: list[GradeResponse] = []
    fees: StudentFeeStatus | None = None
    announcements: list[AnnouncementResponse] = []
    upcoming_events: list[EventResponse] = []
    unread_notifications: int = 0


class ChildOverview(BaseModel):
    child: LinkedChild
    attendance: AttendanceSummary
    recent_grades: list[GradeResponse] = []
    fees: StudentFeeStatus


class ParentDashboard(BaseModel):
    children: list[ChildOverview] = []
    announcements: list[AnnouncementResponse] = []
    unread_notifications: int = 0


class GuestDashboard(BaseModel):
    school: SchoolPublicResponse | None = None
    announcements: list[AnnouncementResponse] = []
    upcoming_events: list[EventResponse] = []


class SchoolDashboard(BaseModel):
    role: str
    stats: SchoolStatsResponse
    announcements: list[AnnouncementResponse] = []
    upcoming_events: list[EventResponse] = []
    unread_notifications: int = 0
