"""
Unit tests for announcement audience rules.
"""

import pytest

from campus.core.tenancy import check_school_access
from campus.modules.announcements.models import TargetAudience
from campus.modules.announcements.service import audience_for


class TestAudienceFor:
    """Tests for audience_for."""

    @pytest.mark.parametrize(
        ("role", "expected"),
        [
            ("student", TargetAudience.STUDENTS),
            ("parent", TargetAudience.PARENTS),
            ("teacher", TargetAudience.TEACHERS),
            ("staff", TargetAudience.STAFF),
            ("guest", TargetAudience.ALL),
        ],
    )
    def test_members_limited_to_own_audience(self, user_factory, school_id, role, expected):
        context = check_school_access(user_factory(role, memberships={school_id: role}), school_id)
        assert audience_for(context, None) == expected

    @pytest.mark.parametrize("role", ["school_admin", "principal"])
    def test_managers_choose(self, user_factory, school_id, role):
        context = check_school_access(user_factory(role, memberships={school_id: role}), school_id)
        assert audience_for(context, None) is None
        assert audience_for(context, TargetAudience.PARENTS) == TargetAudience.PARENTS

    def test_super_admin_sees_everything(self, user_factory, school_id):
        context = check_school_access(user_factory("super_admin"), school_id)
        assert audience_for(context, None) is None

    def test_member_request_ignored(self, user_factory, school_id):
        context = check_school_access(user_factory("student", memberships={school_id: "student"}), school_id)
        assert audience_for(context, TargetAudience.TEACHERS) == TargetAudience.STUDENTS
