"""
Roles and Permissions

Role groups, role ranking and the default resource/action permission matrix
applied to school memberships. A membership may carry a JSON object of
overrides that grant or revoke individual permissions on top of the defaults.

Permission strings have the form ``"<resource>:<action>"``, e.g. ``"fees:create"``.
A granted ``"<resource>:manage"`` implies every action on that resource.
"""

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from campus.modules.users.models import UserRole


class Resource(str, Enum):
    STUDENTS = "students"
    TEACHERS = "teachers"
    CLASSES = "classes"
    SUBJECTS = "subjects"
    ATTENDANCE = "attendance"
    GRADES = "grades"
    FEES = "fees"
    ANNOUNCEMENTS = "announcements"
    EVENTS = "events"
    MESSAGES = "messages"
    REPORTS = "reports"
    SETTINGS = "settings"
    SCHOOLS = "schools"
    USERS = "users"


class Action(str, Enum):
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    MANAGE = "manage"


RESOURCES = frozenset(r.value for r in Resource)
ACTIONS = frozenset(a.value for a in Action)

FULL = frozenset(ACTIONS)
READ_ONLY = frozenset({Action.VIEW.value})
LIMITED = frozenset({Action.VIEW.value, Action.CREATE.value, Action.EDIT.value})
VIEW_EDIT = frozenset({Action.VIEW.value, Action.EDIT.value})
NONE: frozenset[str] = frozenset()

ADMIN_PORTAL_ROLES = frozenset(
    {
        UserRole.SUPER_ADMIN.value,
        UserRole.SUPPORT_ADMIN.value,
        UserRole.SALES_ADMIN.value,
        UserRole.CONTENT_ADMIN.value,
        UserRole.FINANCE_ADMIN.value,
    }
)

SCHOOL_MANAGER_ROLES = frozenset({UserRole.SCHOOL_ADMIN.value, UserRole.PRINCIPAL.value})

STAFF_ROLES = SCHOOL_MANAGER_ROLES | {UserRole.TEACHER.value, UserRole.STAFF.value}

SCHOOL_ROLES = STAFF_ROLES | {
    UserRole.PARENT.value,
    UserRole.STUDENT.value,
    UserRole.GUEST.value,
}

ROLE_RANK: dict[str, int] = {
    UserRole.SUPER_ADMIN.value: 100,
    UserRole.SUPPORT_ADMIN.value: 80,
    UserRole.SALES_ADMIN.value: 80,
    UserRole.CONTENT_ADMIN.value: 80,
    UserRole.FINANCE_ADMIN.value: 80,
    UserRole.SCHOOL_ADMIN.value: 60,
    UserRole.PRINCIPAL.value: 55,
    UserRole.TEACHER.value: 40,
    UserRole.STAFF.value: 35,
    UserRole.PARENT.value: 20,
    UserRole.STUDENT.value: 20,
    UserRole.GUEST.value: 0,
}


def _matrix(default: frozenset[str], **overrides: frozenset[str]) -> dict[str, frozenset[str]]:
    matrix = {resource: default for resource in RESOURCES}
    matrix.update(overrides)
    return matrix


_MANAGER_MATRIX = _matrix(FULL, settings=LIMITED, schools=VIEW_EDIT, users=LIMITED)

# Learners hold students:view/edit for their own record (students) or their
# children's (parents); the students service narrows these to owned rows.
_STUDENT_MATRIX = _matrix(
    READ_ONLY,
    students=VIEW_EDIT,
    messages=LIMITED,
    settings=VIEW_EDIT,
    schools=NONE,
    users=NONE,
)

_PARENT_MATRIX = _matrix(
    READ_ONLY,
    messages=LIMITED,
    settings=VIEW_EDIT,
    schools=NONE,
    users=NONE,
)

ROLE_PERMISSIONS: dict[str, dict[str, frozenset[str]]] = {
    UserRole.SUPER_ADMIN.value: _matrix(FULL),
    UserRole.SCHOOL_ADMIN.value: _MANAGER_MATRIX,
    UserRole.PRINCIPAL.value: _MANAGER_MATRIX,
    UserRole.TEACHER.value: _matrix(
        READ_ONLY,
        students=VIEW_EDIT,
        attendance=LIMITED,
        grades=LIMITED,
        messages=LIMITED,
        settings=VIEW_EDIT,
        schools=NONE,
        users=NONE,
    ),
    UserRole.STAFF.value: _matrix(
        READ_ONLY,
        grades=NONE,
        attendance=NONE,
        fees=LIMITED,
        messages=LIMITED,
        settings=VIEW_EDIT,
        schools=NONE,
        users=NONE,
    ),
    UserRole.STUDENT.value: _STUDENT_MATRIX,
    UserRole.PARENT.value: _PARENT_MATRIX,
    UserRole.GUEST.value: _matrix(
        NONE,
        announcements=READ_ONLY,
        events=READ_ONLY,
        schools=READ_ONLY,
    ),
}


def role_rank(role: str | None) -> int:
    """Authority rank of a role; unknown roles rank lowest."""
    if role is None:
        return 0
    return ROLE_RANK.get(str(role), 0)


def can_assign_role(actor_role: str, target_role: str) -> bool:
    """
    Whether a member holding ``actor_role`` may grant ``target_role``.

    Only super admins hand out admin-portal roles. Everyone else may assign a
    school role ranked at or below their own.
    """
    if actor_role == UserRole.SUPER_ADMIN.value:
        return True
    if target_role not in SCHOOL_ROLES:
        return False
    if actor_role not in SCHOOL_MANAGER_ROLES:
        return False
    return role_rank(target_role) <= role_rank(actor_role)


def _expand_override(key: str) -> tuple[str, frozenset[str]] | None:
    """Map an override key to ``(resource, actions)``, or None if unrecognised."""
    if ":" in key:
        resource, _, action = key.partition(":")
        if resource in RESOURCES and action in ACTIONS:
            actions = FULL if action == Action.MANAGE.value else frozenset({action})
            return resource, actions
        return None

    if key in RESOURCES:
        return key, FULL

    # Legacy flags such as "manage_fees" or "view_reports"
    action, _, resource = key.partition("_")
    if action in ACTIONS and resource in RESOURCES:
        actions = FULL if action == Action.MANAGE.value else frozenset({action})
        return resource, actions

    return None


def resolve_permissions(role: str, overrides: Mapping[str, Any] | None = None) -> set[str]:
    """
    Compute the granted permission strings for a school role.

    Args:
        role: Membership role
        overrides: Optional mapping of permission keys to booleans

    Returns:
        Set of ``"resource:action"`` strings
    """
    matrix = ROLE_PERMISSIONS.get(role, {})
    granted = {
        f"{resource}:{action}" for resource, actions in matrix.items() for action in actions
    }

    for key, value in (overrides or {}).items():
        expanded = _expand_override(str(key))
        if expanded is None:
            continue
        resource, actions = expanded
        names = {f"{resource}:{action}" for action in actions}
        if value:
            granted |= names
        else:
            granted -= names

    return granted


def permission_granted(granted: Iterable[str], permission: str) -> bool:
    """Check a permission string against a granted set, honouring ``manage``."""
    granted = set(granted)
    if permission in granted:
        return True
    resource, _, _ = permission.partition(":")
    return f"{resource}:{Action.MANAGE.value}" in granted


def has_permission(role: str, overrides: Mapping[str, Any] | None, permission: str) -> bool:
    """Whether a membership with ``role`` and ``overrides`` holds ``permission``."""
    if role == UserRole.SUPER_ADMIN.value:
        return True
    return permission_granted(resolve_permissions(role, overrides), permission)


__all__ = [
    "Resource",
    "Action",
    "ADMIN_PORTAL_ROLES",
    "SCHOOL_MANAGER_ROLES",
    "STAFF_ROLES",
    "SCHOOL_ROLES",
    "ROLE_RANK",
    "ROLE_PERMISSIONS",
    "role_rank",
    "can_assign_role",
    "resolve_permissions",
    "permission_granted",
    "has_permission",
]
