"""
Model registry.

Importing this module registers every ORM model on ``Base.metadata`` so
that relationships resolve and Alembic sees the full schema.
"""

from campus.core.database import Base
from campus.modules.academics.models import AcademicTerm, SchoolClass, Subject
from campus.modules.announcements.models import Announcement, Event
from campus.modules.attendance.models import Attendance
from campus.modules.audit.models import SystemLog
from campus.modules.auth.models import AuthToken, OtpCode
from campus.modules.fees.models import FeePayment, FeeStructure
from campus.modules.grades.models import Grade
from campus.modules.messaging.models import Message, Notification
from campus.modules.parent_links.models import ParentLink, ParentStudent
from campus.modules.schools.models import School, SchoolUser
from campus.modules.students.models import Student
from campus.modules.teachers.models import Teacher
from campus.modules.timetables.models import TimetableEntry
from campus.modules.users.models import User

__all__ = [
    "Base",
    "AcademicTerm",
    "Announcement",
    "Attendance",
    "AuthToken",
    "Event",
    "FeePayment",
    "FeeStructure",
    "Grade",
    "Message",
    "Notification",
    "OtpCode",
    "ParentLink",
    "ParentStudent",
    "School",
    "SchoolClass",
    "SchoolUser",
    "Student",
    "Subject",
    "SystemLog",
    "Teacher",
    "TimetableEntry",
    "User",
]
