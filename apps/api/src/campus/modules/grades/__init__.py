"""
Grades module - Assessment results and report cards.
"""

from campus.modules.grades.models import AssessmentType, Grade

__all__ = ["AssessmentType", "Grade"]
