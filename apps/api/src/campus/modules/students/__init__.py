"""
Students module - Enrolment records.
"""

from campus.modules.students.models import Gender, Student, StudentStatus

__all__ = ["Gender", "Student", "StudentStatus"]
