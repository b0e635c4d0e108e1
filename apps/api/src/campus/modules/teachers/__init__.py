"""
Teachers module - Staff employment records.
"""

from campus.modules.teachers.models import Teacher, TeacherStatus

__all__ = ["Teacher", "TeacherStatus"]
