"""
Authentication Service Layer

Credential flows for the platform:

1. Password login: email-or-phone login (optionally scoped to a school code),
   school staff login (school found by code, email or name), and
   admin-portal login (optionally guarded by an access key).
2. Guest login: a shared guest account per school with a short-lived token.
3. One-time codes: 6-digit OTPs delivered by email or SMS for login,
   account verification and password reset.
4. Single-use links: admin magic-link login and password reset.
5. Token lifecycle: refresh (with rotation) and logout (revocation).

Security considerations:
- Codes and link tokens are SHA-256 hashed before storage
- Issuing a new code/link invalidates earlier unused ones
- OTPs allow a limited number of wrong guesses before being burnt
- Unknown and wrong-password logins return the same error
- Password reset and magic-link requests never reveal whether an account exists
"""

import logging
import secrets
from datetime import UTC, datetime, timedelta

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from campus.core.auth import CurrentUser
from campus.core.config import settings
from campus.core.email import send_magic_link_email, send_otp_email, send_password_reset_email
from campus.core.permissions import ADMIN_PORTAL_ROLES
from campus.core.redis import is_token_id_revoked, revoke_token_id
from campus.core.security import (
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_otp_code,
    generate_secure_token,
    hash_password,
    hash_token,
    verify_password,
)
from campus.core.sms import SmsError, SmsNotConfiguredError, normalize_phone, send_otp_sms
from campus.modules.audit.repository import log_action
from campus.modules.auth import repository
from campus.modules.auth.models import AuthToken, AuthTokenType, OtpChannel, OtpPurpose
from campus.modules.auth.schemas import (
    AdminLoginRequest,
    AuthResponse,
    ForgotPasswordRequest,
    GuestLoginRequest,
    GuestLoginResponse,
    LoginRequest,
    MagicLinkRequest,
    MembershipResponse,
    OtpRequest,
    OtpRequestResponse,
    OtpVerifyRequest,
    OtpVerifyResponse,
    RegisterRequest,
    ResetPasswordRequest,
    SchoolLoginRequest,
    UserResponse,
)
from campus.modules.schools.models import School
from campus.modules.schools.repository import MembershipRepository, SchoolRepository
from campus.modules.shared.errors import ServiceError
from campus.modules.users.models import User, UserRole
from campus.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

GUEST_EMAIL_DOMAIN = "campus.local"

GUEST_LIMITATIONS = [
    "Read-only access to announcements and events",
    "Cannot view student records, grades or fees",
    "Cannot send messages",
    f"Session expires after {settings.guest_token_expire_hours} hours",
]

# Roles that join a school immediately when self-registering with a school code.
# Staff roles join inactive until a school administrator activates them.
SELF_JOIN_ACTIVE_ROLES = {UserRole.STUDENT, UserRole.PARENT}


class AuthServiceError(ServiceError):
    """Base exception for authentication service errors."""


class InvalidCredentialsError(AuthServiceError):
    def __init__(self, message: str = "Invalid credentials."):
        super().__init__(message=message, error_code="INVALID_CREDENTIALS", status_code=401)


class AccountInactiveError(AuthServiceError):
    def __init__(self):
        super().__init__(
            message="Your account has been deactivated.",
            error_code="ACCOUNT_INACTIVE",
            status_code=403,
        )


class AccountNotFoundError(AuthServiceError):
    def __init__(self):
        super().__init__(
            message="No active account matches this email or phone.",
            error_code="ACCOUNT_NOT_FOUND",
            status_code=404,
        )


class InvalidIdentifierError(AuthServiceError):
    def __init__(self):
        super().__init__(
            message="Enter a valid email address or phone number.",
            error_code="INVALID_IDENTIFIER",
            status_code=400,
        )


class EmailExistsError(AuthServiceError):
    def __init__(self):
        super().__init__(
            message="An account with this email already exists.",
            error_code="EMAIL_EXISTS",
            status_code=409,
        )


class PhoneExistsError(AuthServiceError):
    def __init__(self):
        super().__init__(
            message="An account with this phone number already exists.",
            error_code="PHONE_EXISTS",
            status_code=409,
        )


class SchoolNotFoundError(AuthServiceError):
    def __init__(self):
        super().__init__(
            message="School not found or inactive.",
            error_code="SCHOOL_NOT_FOUND",
            status_code=404,
        )


class NoSchoolAccessError(AuthServiceError):
    def __init__(self):
        super().__init__(
            message="You are not a member of this school.",
            error_code="NO_SCHOOL_ACCESS",
            status_code=403,
        )


class InvalidAdminKeyError(AuthServiceError):
    def __init__(self):
        super().__init__(
            message="Invalid admin access key.",
            error_code="INVALID_ADMIN_KEY",
            status_code=401,
        )


class InvalidAdminCredentialsError(AuthServiceError):
    def __init__(self):
        super().__init__(
            message="Invalid admin credentials.",
            error_code="INVALID_ADMIN_CREDENTIALS",
            status_code=401,
        )


class InvalidOtpError(AuthServiceError):
    def __init__(self, attempts_remaining: int | None = None):
        message = "Invalid or expired verification code."
        if attempts_remaining is not None:
            message = f"{message} {attempts_remaining} attempt(s) remaining."
        super().__init__(message=message, error_code="INVALID_OTP", status_code=400)


class OtpAttemptsExceededError(AuthServiceError):
    def __init__(self):
        super().__init__(
            message="Too many incorrect attempts. Request a new code.",
            error_code="OTP_ATTEMPTS_EXCEEDED",
            status_code=400,
        )


class OtpDeliveryError(AuthServiceError):
    def __init__(self, channel: str):
        super().__init__(
            message=f"Could not deliver the verification code by {channel}.",
            error_code="OTP_DELIVERY_FAILED",
            status_code=502,
        )


class InvalidTokenError(AuthServiceError):
    def __init__(self, message: str = "Invalid or unknown token."):
        super().__init__(message=message, error_code="INVALID_TOKEN", status_code=400)


class TokenExpiredError(AuthServiceError):
    def __init__(self):
        super().__init__(
            message="This link has expired. Please request a new one.",
            error_code="TOKEN_EXPIRED",
            status_code=400,
        )


class TokenAlreadyUsedError(AuthServiceError):
    def __init__(self):
        super().__init__(
            message="This link has already been used.",
            error_code="TOKEN_ALREADY_USED",
            status_code=409,
        )


class InvalidRefreshTokenError(AuthServiceError):
    def __init__(self):
        super().__init__(
            message="Invalid or expired refresh token.",
            error_code="INVALID_REFRESH_TOKEN",
            status_code=401,
        )


# ============================================
# Helpers
# ============================================


def parse_identifier(value: str) -> tuple[str, str]:
    """
    Classify a login identifier.

    Returns:
        ("email", lowercased address) or ("phone", normalised number)

    Raises:
        InvalidIdentifierError: If it is neither
    """
    value = value.strip()
    if "@" in value:
        return "email", value.lower()

    phone = normalize_phone(value)
    if len(phone) < 10:
        raise InvalidIdentifierError()
    return "phone", phone


async def find_user_by_identifier(db: AsyncSession, identifier: str) -> User | None:
    kind, value = parse_identifier(identifier)
    if kind == "email":
        return await UserRepository.get_by_email(db, value)
    return await UserRepository.get_by_phone(db, value)


def serialize_user(user: User) -> UserResponse:
    memberships = [
        MembershipResponse(
            school_id=str(m.school_id),
            school_name=m.school.name if m.school else None,
            school_code=m.school.code if m.school else None,
            role=m.role.value,
        )
        for m in user.memberships
        if m.is_active
    ]
    return UserResponse(
        id=str(user.id),
        email=user.email,
        phone=user.phone,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role.value,
        avatar_url=user.avatar_url,
        is_active=user.is_active,
        is_verified=user.is_verified,
        last_login_at=user.last_login_at,
        memberships=memberships,
    )


def issue_tokens(
    user: User,
    *,
    admin_access: bool = False,
    expires_delta: timedelta | None = None,
    include_refresh: bool = True,
) -> AuthResponse:
    """Create an access token (and refresh token) for ``user``."""
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "email": user.email,
        "role": user.role.value,
        "name": user.full_name,
    }
    if admin_access:
        claims["admin_access"] = True

    access_token = create_access_token(
        subject=str(user.id),
        additional_claims=claims,
        expires_delta=lifetime,
    )
    refresh_token = create_refresh_token(subject=str(user.id)) if include_refresh else None

    return AuthResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=int(lifetime.total_seconds()),
        user=serialize_user(user),
    )


def _active_membership(user: User, school_id: str, role: UserRole | None = None):
    for membership in user.memberships:
        if not membership.is_active or str(membership.school_id) != str(school_id):
            continue
        if role is None or membership.role == role:
            return membership
    return None


async def _record_failed_login(
    db: AsyncSession,
    action: str,
    identifier: str,
    user: User | None,
    request: Request | None,
    reason: str,
) -> None:
    """Persist a failed attempt even though the request is about to fail."""
    await log_action(
        db,
        action=action,
        user_id=str(user.id) if user else None,
        entity_type="user",
        entity_id=str(user.id) if user else None,
        success=False,
        details=f"{reason}: {identifier}",
        request=request,
    )
    await db.commit()
    logger.warning(f"Failed {action} for {identifier}: {reason}")


async def _check_password(
    db: AsyncSession,
    action: str,
    identifier: str,
    user: User | None,
    password: str,
    request: Request | None,
    error: AuthServiceError,
) -> User:
    if user is None:
        await _record_failed_login(db, action, identifier, None, request, "unknown account")
        raise error
    if not verify_password(password, user.password_hash):
        await _record_failed_login(db, action, identifier, user, request, "wrong password")
        raise error
    if not user.is_active:
        await _record_failed_login(db, action, identifier, user, request, "inactive account")
        raise AccountInactiveError()
    return user


async def _complete_login(
    db: AsyncSession,
    user: User,
    action: str,
    request: Request | None,
    entity_type: str = "user",
    entity_id: str | None = None,
) -> None:
    await UserRepository.touch_last_login(db, user)
    await log_action(
        db,
        action=action,
        user_id=str(user.id),
        entity_type=entity_type,
        entity_id=entity_id or str(user.id),
        request=request,
    )
    logger.info(f"{action}: {user.email} (role: {user.role.value})")


# ============================================
# Registration and password login
# ============================================


async def register(db: AsyncSession, data: RegisterRequest) -> AuthResponse:
    """
    Create an account and optionally join a school by its code.

    An unknown or inactive school code is ignored rather than rejected.

    Raises:
        EmailExistsError, PhoneExistsError
    """
    email = data.email.lower()
    if await UserRepository.email_exists(db, email):
        raise EmailExistsError()

    phone = normalize_phone(data.phone) if data.phone else None
    if phone and await UserRepository.phone_exists(db, phone):
        raise PhoneExistsError()

    role = UserRole(data.role)
    user = await UserRepository.create(
        db,
        email=email,
        password_hash=hash_password(data.password),
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        role=role,
        phone=phone,
    )

    if data.school_code:
        school = await SchoolRepository.get_by_code(db, data.school_code)
        if school is not None and school.is_active:
            membership = await MembershipRepository.create(
                db,
                school_id=school.id,
                user_id=user.id,
                role=role,
            )
            if role not in SELF_JOIN_ACTIVE_ROLES:
                membership.is_active = False
                await db.flush()
            await db.refresh(user, attribute_names=["memberships"])
        else:
            logger.info(f"Registration for {email} ignored unknown school code {data.school_code}")

    await log_action(db, action="register", user_id=str(user.id), entity_type="user", entity_id=str(user.id))
    return issue_tokens(user)


async def login(db: AsyncSession, data: LoginRequest, request: Request | None = None) -> AuthResponse:
    """
    Password login with email or phone.

    Raises:
        InvalidCredentialsError: Unknown account or wrong password
        AccountInactiveError: Deactivated account
        NoSchoolAccessError: ``school_code`` given but the user is not a member
    """
    user = await find_user_by_identifier(db, data.email_or_phone)
    user = await _check_password(
        db, "login", data.email_or_phone, user, data.password, request, InvalidCredentialsError()
    )

    if data.school_code:
        school = await SchoolRepository.get_by_code(db, data.school_code)
        if school is None or _active_membership(user, school.id) is None:
            raise NoSchoolAccessError()

    await _complete_login(db, user, "login", request)
    return issue_tokens(user)


async def school_login(
    db: AsyncSession,
    data: SchoolLoginRequest,
    request: Request | None = None,
) -> AuthResponse:
    """
    Staff login against a specific school and role.

    Raises:
        SchoolNotFoundError: No active school matches the identifier
        InvalidCredentialsError: Wrong credentials or no such membership
    """
    school: School | None = await SchoolRepository.find_by_identifier(db, data.school_identifier)
    if school is None or not school.is_active:
        raise SchoolNotFoundError()

    error = InvalidCredentialsError("Invalid credentials for this school and role.")
    user = await UserRepository.get_by_email(db, data.email)
    user = await _check_password(db, "school_login", data.email, user, data.password, request, error)

    if _active_membership(user, school.id, UserRole(data.role)) is None:
        await _record_failed_login(db, "school_login", data.email, user, request, "no matching membership")
        raise error

    await _complete_login(db, user, "school_login", request, entity_type="school", entity_id=str(school.id))
    return issue_tokens(user)


async def guest_login(db: AsyncSession, data: GuestLoginRequest) -> GuestLoginResponse:
    """
    Issue a short-lived guest token, optionally scoped to a school.

    The guest account is shared per school and created on first use.
    """
    school = None
    if data.school_code:
        school = await SchoolRepository.get_by_code(db, data.school_code)
        if school is not None and not school.is_active:
            school = None

    local_part = f"guest+{school.code.lower()}" if school else "guest"
    email = f"{local_part}@{GUEST_EMAIL_DOMAIN}"

    user = await UserRepository.get_by_email(db, email)
    if user is None:
        user = await UserRepository.create(
            db,
            email=email,
            password_hash=hash_password(generate_secure_token()),
            first_name="Guest",
            last_name=school.name if school else "Visitor",
            role=UserRole.GUEST,
            is_verified=True,
        )
    elif not user.is_active:
        raise AccountInactiveError()

    if school is not None and _active_membership(user, school.id) is None:
        await MembershipRepository.create(db, school_id=school.id, user_id=user.id, role=UserRole.GUEST)
        await db.refresh(user, attribute_names=["memberships"])

    tokens = issue_tokens(
        user,
        expires_delta=timedelta(hours=settings.guest_token_expire_hours),
        include_refresh=False,
    )
    logger.info(f"Guest login for {school.code if school else 'platform'}")
    return GuestLoginResponse(**tokens.model_dump(), limitations=GUEST_LIMITATIONS)


# ============================================
# Admin portal
# ============================================


def _check_admin_key(supplied: str | None) -> None:
    if supplied is None:
        return
    expected = settings.admin_access_key
    if not expected or not secrets.compare_digest(supplied, expected):
        raise InvalidAdminKeyError()


async def admin_login(
    db: AsyncSession,
    data: AdminLoginRequest,
    request: Request | None = None,
) -> AuthResponse:
    """
    Password login for admin-portal roles.

    Raises:
        InvalidAdminKeyError: ``admin_key`` supplied but wrong
        InvalidAdminCredentialsError: Wrong credentials or not an admin
    """
    try:
        _check_admin_key(data.admin_key)
    except InvalidAdminKeyError:
        await _record_failed_login(db, "admin_login", data.email, None, request, "bad admin key")
        raise

    user = await UserRepository.get_by_email(db, data.email)
    user = await _check_password(
        db, "admin_login", data.email, user, data.password, request, InvalidAdminCredentialsError()
    )

    if user.role.value not in ADMIN_PORTAL_ROLES:
        await _record_failed_login(db, "admin_login", data.email, user, request, "not an admin")
        raise InvalidAdminCredentialsError()

    await _complete_login(db, user, "admin_login", request)
    return issue_tokens(user, admin_access=True)


async def request_magic_link(db: AsyncSession, data: MagicLinkRequest) -> None:
    """
    Email a single-use login link to an admin-portal user.

    Silently does nothing for unknown or non-admin emails.
    """
    user = await UserRepository.get_by_email(db, data.email)
    eligible = (
        user is not None
        and user.is_active
        and user.role.value in ADMIN_PORTAL_ROLES
        and (data.admin_role is None or data.admin_role == user.role.value)
    )
    if not eligible:
        logger.info(f"Magic link requested for ineligible email {data.email}")
        return

    now = datetime.now(UTC)
    await repository.invalidate_tokens(db, user.id, AuthTokenType.MAGIC_LINK, now)

    token = generate_secure_token()
    await repository.create_token(
        db,
        user_id=user.id,
        token_hash=hash_token(token),
        token_type=AuthTokenType.MAGIC_LINK,
        expires_at=now + timedelta(minutes=settings.magic_link_expire_minutes),
        context={"admin_role": user.role.value},
    )
    await send_magic_link_email(user.email, user.first_name, token)
    logger.info(f"Magic link issued for admin {user.id}")


async def _consume_token(db: AsyncSession, raw_token: str, token_type: AuthTokenType) -> AuthToken:
    """
    Look up and burn a single-use token.

    Raises:
        InvalidTokenError, TokenAlreadyUsedError, TokenExpiredError
    """
    record = await repository.get_token_by_hash(db, hash_token(raw_token), token_type)
    if record is None:
        raise InvalidTokenError()
    if record.is_used:
        raise TokenAlreadyUsedError()

    now = datetime.now(UTC)
    if record.is_expired(now):
        raise TokenExpiredError()

    if not await repository.claim_token(db, record.id, now):
        raise TokenAlreadyUsedError()
    return record


async def consume_magic_link(
    db: AsyncSession,
    token: str,
    request: Request | None = None,
) -> AuthResponse:
    """Exchange a magic-link token for admin tokens."""
    record = await _consume_token(db, token, AuthTokenType.MAGIC_LINK)

    user = await UserRepository.get_by_id(db, record.user_id)
    if user is None or not user.is_active or user.role.value not in ADMIN_PORTAL_ROLES:
        raise InvalidTokenError("This link is no longer valid for admin access.")

    await _complete_login(db, user, "admin_magic_login", request)
    return issue_tokens(user, admin_access=True)


# ============================================
# One-time codes
# ============================================


async def _deliver_otp(user: User, channel: OtpChannel, destination: str, code: str, purpose: OtpPurpose) -> None:
    if channel == OtpChannel.EMAIL:
        if not await send_otp_email(destination, user.first_name, code, purpose.value):
            raise OtpDeliveryError("email")
        return

    try:
        await send_otp_sms(destination, code, purpose.value)
    except SmsNotConfiguredError:
        if not settings.is_development:
            raise OtpDeliveryError("sms") from None
        logger.warning(f"SMS gateway not configured; OTP for {destination} is {code}")
    except SmsError as e:
        raise OtpDeliveryError("sms") from e


async def request_otp(db: AsyncSession, data: OtpRequest) -> OtpRequestResponse:
    """
    Generate and send a one-time code.

    Raises:
        AccountNotFoundError: No active account for the identifier
        OtpDeliveryError: The email/SMS could not be sent
    """
    kind, destination = parse_identifier(data.email_or_phone)
    user = await find_user_by_identifier(db, data.email_or_phone)
    if user is None or not user.is_active:
        raise AccountNotFoundError()

    now = datetime.now(UTC)
    await repository.invalidate_otps(db, user.id, data.purpose)

    code = generate_otp_code()
    channel = OtpChannel.EMAIL if kind == "email" else OtpChannel.SMS
    await repository.create_otp(
        db,
        user_id=user.id,
        channel=channel,
        destination=destination,
        code_hash=hash_token(code),
        purpose=data.purpose,
        expires_at=now + timedelta(minutes=settings.otp_expire_minutes),
    )
    await _deliver_otp(user, channel, destination, code, data.purpose)

    logger.info(f"OTP ({data.purpose.value}) sent to user {user.id} via {channel.value}")
    return OtpRequestResponse(
        message=f"Verification code sent via {channel.value}.",
        channel=channel.value,
        expires_in=settings.otp_expire_minutes * 60,
    )


async def _create_reset_token(db: AsyncSession, user: User) -> str:
    now = datetime.now(UTC)
    await repository.invalidate_tokens(db, user.id, AuthTokenType.PASSWORD_RESET, now)

    token = generate_secure_token()
    await repository.create_token(
        db,
        user_id=user.id,
        token_hash=hash_token(token),
        token_type=AuthTokenType.PASSWORD_RESET,
        expires_at=now + timedelta(minutes=settings.password_reset_expire_minutes),
    )
    return token


async def verify_otp(
    db: AsyncSession,
    data: OtpVerifyRequest,
    request: Request | None = None,
) -> OtpVerifyResponse:
    """
    Check a one-time code and act on its purpose.

    - login: returns tokens
    - verify: marks the account verified
    - reset: returns a password reset token

    Raises:
        InvalidOtpError: No live code or wrong code
        OtpAttemptsExceededError: Too many wrong guesses; the code is burnt
    """
    user = await find_user_by_identifier(db, data.email_or_phone)
    if user is None or not user.is_active:
        raise InvalidOtpError()

    now = datetime.now(UTC)
    otp = await repository.get_live_otp(db, user.id, data.purpose, now)
    if otp is None:
        raise InvalidOtpError()

    if not secrets.compare_digest(otp.code_hash, hash_token(data.code)):
        attempts = await repository.record_failed_attempt(db, otp.id, settings.otp_max_attempts)
        await db.commit()
        remaining = settings.otp_max_attempts - attempts
        logger.warning(f"Wrong OTP for user {user.id} (attempt {attempts})")
        if remaining <= 0:
            raise OtpAttemptsExceededError()
        raise InvalidOtpError(attempts_remaining=remaining)

    if not await repository.consume_otp(db, otp.id):
        raise InvalidOtpError()

    if data.purpose == OtpPurpose.LOGIN:
        await _complete_login(db, user, "otp_login", request)
        return OtpVerifyResponse(purpose=data.purpose, message="Login successful.", auth=issue_tokens(user))

    if data.purpose == OtpPurpose.VERIFY:
        user.is_verified = True
        await db.flush()
        return OtpVerifyResponse(purpose=data.purpose, message="Account verified.")

    reset_token = await _create_reset_token(db, user)
    return OtpVerifyResponse(
        purpose=data.purpose,
        message="Code verified. Use the reset token to choose a new password.",
        reset_token=reset_token,
    )


# ============================================
# Password reset
# ============================================


async def forgot_password(db: AsyncSession, data: ForgotPasswordRequest) -> None:
    """Email a reset link when the account exists. Never reveals whether it does."""
    try:
        user = await find_user_by_identifier(db, data.email_or_phone)
    except InvalidIdentifierError:
        logger.info("Password reset requested with an unusable identifier")
        return

    if user is None or not user.is_active:
        logger.info("Password reset requested for unknown or inactive account")
        return

    token = await _create_reset_token(db, user)
    await send_password_reset_email(user.email, user.first_name, token)
    logger.info(f"Password reset link issued for user {user.id}")


async def reset_password(
    db: AsyncSession,
    data: ResetPasswordRequest,
    request: Request | None = None,
) -> None:
    """
    Set a new password using a reset token.

    Raises:
        InvalidTokenError, TokenAlreadyUsedError, TokenExpiredError
    """
    record = await _consume_token(db, data.token, AuthTokenType.PASSWORD_RESET)

    user = await UserRepository.get_by_id(db, record.user_id)
    if user is None or not user.is_active:
        raise InvalidTokenError()

    await UserRepository.set_password(db, user, hash_password(data.new_password))
    await log_action(
        db,
        action="password_reset",
        user_id=str(user.id),
        entity_type="user",
        entity_id=str(user.id),
        request=request,
    )


# ============================================
# Token lifecycle
# ============================================


def _seconds_until(exp: int | None) -> int:
    if exp is None:
        return 0
    return max(0, int(exp - datetime.now(UTC).timestamp()))


async def refresh_tokens(db: AsyncSession, refresh_token: str) -> AuthResponse:
    """
    Exchange a refresh token for a new token pair. The old refresh token is
    revoked so it cannot be replayed.

    Raises:
        InvalidRefreshTokenError
    """
    payload = decode_token(refresh_token)
    if payload is None or payload.get("type") != REFRESH_TOKEN_TYPE:
        raise InvalidRefreshTokenError()
    if await is_token_id_revoked(payload.get("jti")):
        raise InvalidRefreshTokenError()

    user = await UserRepository.get_by_id(db, payload["sub"])
    if user is None or not user.is_active:
        raise InvalidRefreshTokenError()

    if payload.get("jti"):
        await revoke_token_id(payload["jti"], _seconds_until(payload.get("exp")))

    return issue_tokens(user)


async def logout(db: AsyncSession, user: CurrentUser, request: Request | None = None) -> None:
    """Revoke the caller's access token until it expires."""
    if user.jti:
        await revoke_token_id(user.jti, _seconds_until(user.token_exp))

    await log_action(
        db,
        action="logout",
        user_id=user.id,
        entity_type="user",
        entity_id=user.id,
        request=request,
    )
    logger.info(f"User logged out: {user.email}")


async def get_profile(db: AsyncSession, user_id: str) -> UserResponse:
    user = await UserRepository.get_by_id(db, user_id)
    if user is None:
        raise AccountNotFoundError()
    return serialize_user(user)
