"""
Academics module - Terms, subjects and classes.
"""

from campus.modules.academics.models import AcademicTerm, SchoolClass, Subject

__all__ = ["AcademicTerm", "SchoolClass", "Subject"]
