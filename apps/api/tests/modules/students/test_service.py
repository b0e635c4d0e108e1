"""
Unit tests for student profile edit rules.
"""

import pytest

from campus.modules.shared.errors import ForbiddenError
from campus.modules.students import service
from campus.modules.students.schemas import StudentUpdate
from factories import make_student


class TestEnsureCanEditStudent:
    def test_staff_edits_any_field(self, user_factory, school):
        teacher = user_factory("teacher", memberships={school.id: "teacher"})
        service.ensure_can_edit_student(teacher, make_student(school), StudentUpdate(class_id=None, status=None))

    def test_student_edits_own_profile(self, user_factory, school):
        student = make_student(school)
        actor = user_factory("student", memberships={school.id: "student"}, id=student.user_id)
        service.ensure_can_edit_student(actor, student, StudentUpdate(address="12 Hill Road"))

    def test_student_cannot_edit_classmate(self, user_factory, school):
        actor = user_factory("student", memberships={school.id: "student"})

        with pytest.raises(ForbiddenError) as exc_info:
            service.ensure_can_edit_student(actor, make_student(school), StudentUpdate(address="12 Hill Road"))

        assert exc_info.value.error_code == "STUDENT_ACCESS_DENIED"

    def test_student_cannot_move_class(self, user_factory, school):
        student = make_student(school)
        actor = user_factory("student", memberships={school.id: "student"}, id=student.user_id)

        with pytest.raises(ForbiddenError) as exc_info:
            service.ensure_can_edit_student(actor, student, StudentUpdate(class_id=None))

        assert exc_info.value.error_code == "FIELD_NOT_EDITABLE"
