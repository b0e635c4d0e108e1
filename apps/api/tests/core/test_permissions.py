"""
Unit tests for the role permission matrix.
"""

import pytest

from campus.core.permissions import (
    can_assign_role,
    has_permission,
    permission_granted,
    resolve_permissions,
    role_rank,
)


class TestResolvePermissions:
    @pytest.mark.parametrize("role", ["school_admin", "principal"])
    def test_managers_have_full_access_except_limited_resources(self, role):
        granted = resolve_permissions(role)
        assert "fees:delete" in granted
        assert "students:manage" in granted
        assert "users:create" in granted
        assert "users:delete" not in granted
        assert "schools:edit" in granted
        assert "schools:create" not in granted
        assert "settings:delete" not in granted

    def test_teacher(self):
        granted = resolve_permissions("teacher")
        assert {"students:view", "students:edit"} <= granted
        assert "students:create" not in granted
        assert {"attendance:create", "grades:edit"} <= granted
        assert "grades:delete" not in granted
        assert "fees:view" in granted
        assert "fees:create" not in granted

    def test_staff_handles_fees(self):
        granted = resolve_permissions("staff")
        assert "fees:create" in granted
        assert "grades:view" not in granted

    @pytest.mark.parametrize("role", ["student", "parent"])
    def test_learners_are_read_only(self, role):
        granted = resolve_permissions(role)
        assert "announcements:view" in granted
        assert "announcements:create" not in granted
        assert "students:create" not in granted

    def test_student_views_and_edits_own_record(self):
        granted = resolve_permissions("student")
        assert {"students:view", "students:edit"} <= granted

    def test_parent_views_children(self):
        granted = resolve_permissions("parent")
        assert "students:view" in granted
        assert "students:edit" not in granted

    def test_guest_sees_only_public_resources(self):
        assert resolve_permissions("guest") == {
            "announcements:view",
            "events:view",
            "schools:view",
        }

    def test_unknown_role_has_nothing(self):
        assert resolve_permissions("janitor") == set()

    def test_overrides_grant_and_revoke(self):
        granted = resolve_permissions("teacher", {"fees:create": True, "grades:edit": False})
        assert "fees:create" in granted
        assert "grades:edit" not in granted

    def test_legacy_manage_flag_expands(self):
        granted = resolve_permissions("staff", {"manage_grades": True})
        assert {"grades:view", "grades:create", "grades:delete"} <= granted

    def test_unrecognised_override_ignored(self):
        assert resolve_permissions("guest", {"launch:rockets": True}) == resolve_permissions("guest")


class TestPermissionGranted:
    def test_exact_match(self):
        assert permission_granted({"fees:view"}, "fees:view")

    def test_manage_implies_everything(self):
        assert permission_granted({"fees:manage"}, "fees:delete")

    def test_missing(self):
        assert not permission_granted({"fees:view"}, "fees:edit")


class TestHasPermission:
    def test_role_default(self):
        assert has_permission("teacher", None, "fees:view")
        assert not has_permission("teacher", None, "fees:edit")

    def test_overrides(self):
        assert has_permission("teacher", {"fees:edit": True}, "fees:edit")
        assert not has_permission("teacher", {"fees": False}, "fees:view")

    def test_super_admin(self):
        assert has_permission("super_admin", {"fees": False}, "fees:delete")


class TestRoleAssignment:
    def test_rank_ordering(self):
        assert role_rank("super_admin") > role_rank("school_admin") > role_rank("teacher")
        assert role_rank(None) == 0

    def test_manager_assigns_lower_roles(self):
        assert can_assign_role("principal", "teacher")
        assert can_assign_role("school_admin", "principal")

    def test_principal_cannot_create_school_admin(self):
        assert not can_assign_role("principal", "school_admin")

    def test_only_super_admin_grants_admin_roles(self):
        assert not can_assign_role("school_admin", "support_admin")
        assert can_assign_role("super_admin", "support_admin")

    def test_teacher_cannot_assign(self):
        assert not can_assign_role("teacher", "student")
