"""
Authentication and Authorization Module

FastAPI dependencies that turn a Bearer token into a ``CurrentUser`` and
gate endpoints by role. Tenant (per-school) checks live in
``campus.core.tenancy``; the permission matrix lives in
``campus.core.permissions``.

Every request re-loads the user from the database so that deactivated
accounts and revoked memberships take effect immediately, regardless of the
claims baked into the token.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.database import get_db
from campus.core.permissions import ADMIN_PORTAL_ROLES
from campus.core.redis import is_token_id_revoked
from campus.core.security import ACCESS_TOKEN_TYPE, decode_token, is_token_expired
from campus.modules.users.models import User, UserRole
from campus.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

# auto_error is off so that a missing header yields our own 401 payload
bearer_scheme = HTTPBearer(
    auto_error=False,
    description="JWT Bearer token for authentication",
)


@dataclass
class Membership:
    """An active school membership of the authenticated user."""

    school_id: str
    role: str
    permissions: dict = field(default_factory=dict)
    school_name: str | None = None
    school_code: str | None = None


@dataclass
class CurrentUser:
    """
    Represents the authenticated caller.

    Attributes:
        id: User's unique identifier
        email: User's email address
        role: Global role
        memberships: Active school memberships keyed by school id
        jti: Token id (used by logout)
        token_exp: Token expiry as a UNIX timestamp
        admin_access: True when the token was issued through admin login
    """

    id: str
    email: str
    role: str
    first_name: str = ""
    last_name: str = ""
    memberships: dict[str, Membership] = field(default_factory=dict)
    jti: str | None = None
    token_exp: int | None = None
    admin_access: bool = False

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, email={self.email}, role={self.role})"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN.value

    @property
    def is_admin_portal_user(self) -> bool:
        return self.role in ADMIN_PORTAL_ROLES

    @property
    def school_ids(self) -> list[str]:
        return list(self.memberships)

    def school_role(self, school_id: str | None) -> str | None:
        if school_id is None:
            return None
        membership = self.memberships.get(str(school_id))
        return membership.role if membership else None

    def all_roles(self) -> set[str]:
        return {self.role, *(m.role for m in self.memberships.values())}

    @classmethod
    def from_user(cls, user: User, claims: dict | None = None) -> "CurrentUser":
        claims = claims or {}
        memberships = {
            str(m.school_id): Membership(
                school_id=str(m.school_id),
                role=m.role.value,
                permissions=dict(m.permissions or {}),
                school_name=m.school.name if m.school else None,
                school_code=m.school.code if m.school else None,
            )
            for m in user.memberships
            if m.is_active
        }
        return cls(
            id=str(user.id),
            email=user.email,
            role=user.role.value,
            first_name=user.first_name,
            last_name=user.last_name,
            memberships=memberships,
            jti=claims.get("jti"),
            token_exp=claims.get("exp"),
            admin_access=bool(claims.get("admin_access", False)),
        )


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _decode_access_claims(token: str) -> tuple[dict, str]:
    """
    Decode an access token and return ``(claims, user_id)``.

    Raises:
        HTTPException 401: If the token is invalid, expired, or not an access token
    """
    payload = decode_token(token)

    if payload is None:
        if is_token_expired(token):
            raise _unauthorized("TOKEN_EXPIRED", "Authentication token has expired.")
        logger.warning("Invalid JWT token presented")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    token_type = payload.get("type")
    if token_type != ACCESS_TOKEN_TYPE:
        logger.warning(f"Invalid token type: {token_type}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        user_id = str(UUID(str(payload.get("sub"))))
    except ValueError as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized("INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims.") from e

    return payload, user_id


async def authenticate_token(db: AsyncSession, token: str) -> CurrentUser:
    """
    Validate a token and load the user it belongs to.

    Raises:
        HTTPException 401: Invalid/expired/revoked token or unknown/inactive user
    """
    claims, user_id = _decode_access_claims(token)

    if await is_token_id_revoked(claims.get("jti")):
        raise _unauthorized("TOKEN_REVOKED", "This token has been revoked. Please log in again.")

    user = await UserRepository.get_by_id(db, user_id)
    if user is None or not user.is_active:
        logger.warning(f"Token for missing or inactive user {user_id}")
        raise _unauthorized("USER_NOT_FOUND", "User not found or inactive.")

    return CurrentUser.from_user(user, claims)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """
    FastAPI dependency returning the authenticated user.

    Usage:
        @router.get("/me")
        async def me(user: CurrentUser = Depends(get_current_user)):
            ...

    Raises:
        HTTPException 401: If the token is missing, invalid, expired or revoked
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("TOKEN_REQUIRED", "Access token required.")

    user = await authenticate_token(db, credentials.credentials)
    logger.debug(f"Authenticated {user}")
    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser | None:
    """
    Optional authentication dependency.

    Returns the user if a valid token is provided, or None otherwise.
    """
    if credentials is None or not credentials.credentials:
        return None

    try:
        return await authenticate_token(db, credentials.credentials)
    except HTTPException:
        return None


def roles_allowed(user: CurrentUser, roles: set[str], school_id: str | None = None) -> bool:
    """
    Role check used by ``require_roles``.

    The global role always counts. For school-scoped requests only the
    membership in that school counts; otherwise any active membership does.
    """
    if user.is_super_admin or user.role in roles:
        return True
    if school_id is not None:
        return user.school_role(school_id) in roles
    return any(m.role in roles for m in user.memberships.values())


def require_roles(*roles: UserRole | str):
    """
    Dependency factory restricting an endpoint to the given roles.

    Usage:
        @router.post("", dependencies=[Depends(require_roles(UserRole.SCHOOL_ADMIN))])

    Raises:
        HTTPException 403: If none of the caller's roles match
    """
    allowed = {r.value if isinstance(r, UserRole) else r for r in roles}

    async def checker(
        request: Request,
        user: CurrentUser = Depends(get_current_user),
    ) -> CurrentUser:
        school_id = request.path_params.get("school_id")
        if not roles_allowed(user, allowed, school_id):
            logger.warning(f"Role check failed for {user}: needs one of {sorted(allowed)}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "INSUFFICIENT_ROLE",
                    "message": "Insufficient permissions.",
                    "required": sorted(allowed),
                    "current": sorted(user.all_roles()),
                },
            )
        return user

    return checker


def require_admin_access(*sub_roles: UserRole | str):
    """
    Dependency factory for admin-portal endpoints.

    With no arguments any admin-portal role passes; otherwise the caller must
    hold one of ``sub_roles``. Super admins always pass.

    Raises:
        HTTPException 403: If the caller is not an allowed admin
    """
    allowed = {r.value if isinstance(r, UserRole) else r for r in sub_roles} or set(ADMIN_PORTAL_ROLES)

    async def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.is_super_admin:
            return user
        if not user.is_admin_portal_user or user.role not in allowed:
            logger.warning(f"Admin access denied for {user}; allowed: {sorted(allowed)}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "ADMIN_ACCESS_REQUIRED",
                    "message": "Admin access required.",
                },
            )
        return user

    return checker


__all__ = [
    "CurrentUser",
    "Membership",
    "authenticate_token",
    "get_current_user",
    "get_optional_user",
    "roles_allowed",
    "require_roles",
    "require_admin_access",
]
