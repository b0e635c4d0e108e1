"""
Authentication Router

Endpoints:
- POST /auth/register - Self-service registration
- POST /auth/login - Email/phone + password login
- POST /auth/school-login - Staff login scoped to a school
- POST /auth/guest-login - Short-lived guest access
- POST /auth/admin-login - Admin portal login
- POST /auth/admin/magic-link - Email an admin sign-in link
- POST /auth/admin/magic-login - Exchange a sign-in link for tokens
- POST /auth/request-otp - Send a one-time code
- POST /auth/verify-otp - Check a one-time code
- POST /auth/forgot-password - Email a password reset link
- POST /auth/reset-password - Set a new password from a reset link
- POST /auth/refresh - Rotate tokens
- POST /auth/logout - Revoke the current access token
- GET /auth/profile - Current user with memberships

Security:
- Credential endpoints are rate limited per client IP or per identifier
- Error messages never reveal whether an account exists, except for
  request-otp which must tell the user where the code went
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser, get_current_user
from campus.core.database import get_db
from campus.core.rate_limit import client_ip, enforce_rate_limit
from campus.modules.auth import service
from campus.modules.auth.schemas import (
    AdminLoginRequest,
    AuthResponse,
    ForgotPasswordRequest,
    GuestLoginRequest,
    GuestLoginResponse,
    LoginRequest,
    MagicLinkRequest,
    OtpRequest,
    OtpRequestResponse,
    OtpVerifyRequest,
    OtpVerifyResponse,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SchoolLoginRequest,
    TokenRequest,
    UserResponse,
)
from campus.modules.auth.service import AuthServiceError
from campus.modules.shared import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter()

LOGIN_LIMIT = (10, 60)
OTP_REQUEST_LIMIT = (5, 15 * 60)
OTP_VERIFY_LIMIT = (10, 15 * 60)
MAGIC_LINK_LIMIT = (5, 15 * 60)
FORGOT_PASSWORD_LIMIT = (5, 60 * 60)

GENERIC_MAGIC_LINK_MESSAGE = "If that email belongs to an admin account, a sign-in link has been sent."
GENERIC_RESET_MESSAGE = "If an account exists, password reset instructions have been sent."


def _to_http(e: AuthServiceError) -> HTTPException:
    logger.info(f"Auth error {e.error_code}: {e.message}")
    return HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message},
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """Create an account. A valid ``school_code`` also joins that school."""
    await enforce_rate_limit(f"register:{client_ip(request)}", *LOGIN_LIMIT)
    try:
        return await service.register(db, data)
    except AuthServiceError as e:
        raise _to_http(e) from e


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """
    Authenticate with email or phone and password.

    Raises:
        HTTPException 401: Invalid credentials
        HTTPException 403: Account inactive, or not a member of ``school_code``
    """
    await enforce_rate_limit(f"login:{client_ip(request)}", *LOGIN_LIMIT)
    try:
        return await service.login(db, data, request)
    except AuthServiceError as e:
        raise _to_http(e) from e


@router.post("/school-login", response_model=AuthResponse)
async def school_login(
    data: SchoolLoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """Staff login for a school identified by code, email or name."""
    await enforce_rate_limit(f"school-login:{client_ip(request)}", *LOGIN_LIMIT)
    try:
        return await service.school_login(db, data, request)
    except AuthServiceError as e:
        raise _to_http(e) from e


@router.post("/guest-login", response_model=GuestLoginResponse)
async def guest_login(
    data: GuestLoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> GuestLoginResponse:
    """Issue a read-only guest token, optionally scoped to a school."""
    await enforce_rate_limit(f"guest-login:{client_ip(request)}", *LOGIN_LIMIT)
    try:
        return await service.guest_login(db, data)
    except AuthServiceError as e:
        raise _to_http(e) from e


@router.post("/admin-login", response_model=AuthResponse)
async def admin_login(
    data: AdminLoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """Admin portal login."""
    await enforce_rate_limit(f"admin-login:{client_ip(request)}", *LOGIN_LIMIT)
    try:
        return await service.admin_login(db, data, request)
    except AuthServiceError as e:
        raise _to_http(e) from e


@router.post("/admin/magic-link", response_model=MessageResponse)
async def request_magic_link(
    data: MagicLinkRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Email a single-use sign-in link. The response is the same for every email."""
    await enforce_rate_limit(f"magic-link:{data.email.lower()}", *MAGIC_LINK_LIMIT)
    await service.request_magic_link(db, data)
    return MessageResponse(message=GENERIC_MAGIC_LINK_MESSAGE)


@router.post("/admin/magic-login", response_model=AuthResponse)
async def magic_login(
    data: TokenRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """
    Exchange a magic-link token for admin tokens.

    Raises:
        HTTPException 400: Unknown or expired token
        HTTPException 409: Token already used
    """
    try:
        return await service.consume_magic_link(db, data.token, request)
    except AuthServiceError as e:
        raise _to_http(e) from e


@router.post("/request-otp", response_model=OtpRequestResponse)
async def request_otp(
    data: OtpRequest,
    db: AsyncSession = Depends(get_db),
) -> OtpRequestResponse:
    """Send a 6-digit code by email or SMS depending on the identifier."""
    await enforce_rate_limit(f"otp-request:{data.email_or_phone.strip().lower()}", *OTP_REQUEST_LIMIT)
    try:
        return await service.request_otp(db, data)
    except AuthServiceError as e:
        raise _to_http(e) from e


@router.post("/verify-otp", response_model=OtpVerifyResponse)
async def verify_otp(
    data: OtpVerifyRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> OtpVerifyResponse:
    """Verify a code. Login codes return tokens; reset codes return a reset token."""
    await enforce_rate_limit(f"otp-verify:{data.email_or_phone.strip().lower()}", *OTP_VERIFY_LIMIT)
    try:
        return await service.verify_otp(db, data, request)
    except AuthServiceError as e:
        raise _to_http(e) from e


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Request a password reset link. The response is the same for every identifier."""
    await enforce_rate_limit(f"forgot-password:{data.email_or_phone.strip().lower()}", *FORGOT_PASSWORD_LIMIT)
    await service.forgot_password(db, data)
    return MessageResponse(message=GENERIC_RESET_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    data: ResetPasswordRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Set a new password using a reset token."""
    try:
        await service.reset_password(db, data, request)
    except AuthServiceError as e:
        raise _to_http(e) from e
    return MessageResponse(message="Password has been reset. You can now log in.")


@router.post("/refresh", response_model=AuthResponse)
async def refresh(
    data: RefreshRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """Rotate a refresh token into a new token pair."""
    try:
        return await service.refresh_tokens(db, data.refresh_token)
    except AuthServiceError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": e.error_code, "message": e.message},
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Revoke the current access token."""
    await service.logout(db, user, request)
    return MessageResponse(message="Logged out successfully.")


@router.get("/profile", response_model=UserResponse)
async def profile(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """The authenticated user with active school memberships."""
    try:
        return await service.get_profile(db, user.id)
    except AuthServiceError as e:
        raise _to_http(e) from e
