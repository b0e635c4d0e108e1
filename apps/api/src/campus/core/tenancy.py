"""
Multi-Tenant Access Control

Every school-scoped read or write must pass through one of these checks:

- ``require_school_access``: dependency for routes carrying ``school_id`` in
  the path (or, failing that, the query string).
- ``require_permission("resource:action")``: the same, plus a permission
  check against the caller's membership in that school.
- ``check_school_access`` / ``ensure_permission``: imperative variants for
  routes that address a resource by id and only learn its school after
  loading it.

Super admins pass every tenant check.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status

from campus.core.auth import CurrentUser, get_current_user
from campus.core.permissions import (
    SCHOOL_MANAGER_ROLES,
    STAFF_ROLES,
    permission_granted,
    resolve_permissions,
)
from campus.modules.users.models import UserRole

logger = logging.getLogger(__name__)


@dataclass
class SchoolContext:
    """Result of a successful tenant check."""

    school_id: str
    user: CurrentUser
    role: str | None
    permissions: set[str] = field(default_factory=set)

    @property
    def is_super_admin(self) -> bool:
        return self.user.is_super_admin

    @property
    def is_manager(self) -> bool:
        return self.is_super_admin or self.role in SCHOOL_MANAGER_ROLES

    @property
    def is_staff(self) -> bool:
        return self.is_super_admin or self.role in STAFF_ROLES

    def has(self, permission: str) -> bool:
        if self.is_super_admin:
            return True
        return permission_granted(self.permissions, permission)


def _forbidden(error: str, message: str, **extra) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"error": error, "message": message, **extra},
    )


def parse_school_id(raw: str | None) -> str:
    """
    Validate a school id taken from the request.

    Raises:
        HTTPException 400: If missing or not a UUID
    """
    if not raw:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "SCHOOL_ID_REQUIRED", "message": "School ID required."},
        )
    try:
        return str(UUID(str(raw)))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "INVALID_SCHOOL_ID", "message": "School ID is not valid."},
        ) from e


def check_school_access(user: CurrentUser, school_id: str) -> SchoolContext:
    """
    Confirm the user may act within ``school_id``.

    Raises:
        HTTPException 403: If the user has no active membership in the school
    """
    school_id = str(school_id)

    if user.is_super_admin:
        return SchoolContext(
            school_id=school_id,
            user=user,
            role=UserRole.SUPER_ADMIN.value,
            permissions=resolve_permissions(UserRole.SUPER_ADMIN.value),
        )

    membership = user.memberships.get(school_id)
    if membership is None:
        logger.warning(f"Tenant check failed: {user} has no access to school {school_id}")
        raise _forbidden("NO_SCHOOL_ACCESS", "No access to this school.")

    return SchoolContext(
        school_id=school_id,
        user=user,
        role=membership.role,
        permissions=resolve_permissions(membership.role, membership.permissions),
    )


def ensure_permission(user: CurrentUser, school_id: str, permission: str) -> SchoolContext:
    """
    Tenant check plus permission check for an already-known school.

    Raises:
        HTTPException 403: No access to the school or permission missing
    """
    context = check_school_access(user, school_id)
    if not context.has(permission):
        logger.warning(f"{user} lacks {permission} in school {school_id}")
        raise _forbidden(
            "PERMISSION_DENIED",
            f"Permission '{permission}' is required.",
            required=permission,
        )
    return context


def ensure_staff(context: SchoolContext) -> None:
    """Reject non-staff members (students, parents, guests)."""
    if not context.is_staff:
        raise _forbidden("STAFF_ONLY", "Only school staff can perform this action.")


def ensure_manager(context: SchoolContext) -> None:
    """Reject members who are not school administrators or principals."""
    if not context.is_manager:
        raise _forbidden("SCHOOL_ADMIN_REQUIRED", "School administrator access is required.")


async def require_school_access(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
) -> SchoolContext:
    """
    Dependency enforcing tenant isolation.

    Reads ``school_id`` from the path parameters, then the query string.

    Raises:
        HTTPException 400: If no valid school id is present
        HTTPException 403: If the user has no access to the school
    """
    raw = request.path_params.get("school_id") or request.query_params.get("school_id")
    return check_school_access(user, parse_school_id(raw))


def require_permission(permission: str):
    """
    Dependency factory combining the tenant check with a permission check.

    Usage:
        @router.post("/school/{school_id}")
        async def create(ctx: SchoolContext = Depends(require_permission("students:create"))):
            ...
    """

    async def checker(context: SchoolContext = Depends(require_school_access)) -> SchoolContext:
        if not context.has(permission):
            logger.warning(f"{context.user} lacks {permission} in school {context.school_id}")
            raise _forbidden(
                "PERMISSION_DENIED",
                f"Permission '{permission}' is required.",
                required=permission,
            )
        return context

    return checker


__all__ = [
    "SchoolContext",
    "parse_school_id",
    "check_school_access",
    "ensure_permission",
    "ensure_staff",
    "ensure_manager",
    "require_school_access",
    "require_permission",
]
