"""
Unit tests for the authentication service layer.

These tests cover:
- Identifier parsing
- Password, school and admin login
- Registration
- One-time codes
- Single-use links (magic login, password reset)
- Refresh token rotation
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from campus.core.security import create_access_token, create_refresh_token, decode_token, hash_token
from campus.modules.auth import service
from campus.modules.auth.models import AuthToken, AuthTokenType, OtpChannel, OtpCode, OtpPurpose
from campus.modules.auth.schemas import (
    AdminLoginRequest,
    ForgotPasswordRequest,
    LoginRequest,
    MagicLinkRequest,
    OtpVerifyRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SchoolLoginRequest,
)
from campus.modules.auth.service import (
    AccountInactiveError,
    EmailExistsError,
    InvalidAdminCredentialsError,
    InvalidAdminKeyError,
    InvalidCredentialsError,
    InvalidIdentifierError,
    InvalidOtpError,
    InvalidRefreshTokenError,
    NoSchoolAccessError,
    OtpAttemptsExceededError,
    TokenAlreadyUsedError,
    TokenExpiredError,
    parse_identifier,
)
from campus.modules.users.models import UserRole
from factories import PASSWORD, add_membership, make_orm_user

SERVICE = "campus.modules.auth.service"


@pytest.fixture
def log_action():
    with patch(f"{SERVICE}.log_action", new=AsyncMock()) as mock:
        yield mock


@pytest.fixture
def users():
    with patch(f"{SERVICE}.UserRepository") as repo:
        repo.touch_last_login = AsyncMock()
        repo.get_by_email = AsyncMock(return_value=None)
        repo.get_by_phone = AsyncMock(return_value=None)
        repo.get_by_id = AsyncMock(return_value=None)
        yield repo


class TestParseIdentifier:
    def test_email_is_lowercased(self):
        assert parse_identifier("  Jane@School.TEST ") == ("email", "jane@school.test")

    def test_phone_is_normalised(self):
        kind, value = parse_identifier("0712345678")
        assert kind == "phone"
        assert value.startswith("+")
        assert value.endswith("712345678")

    def test_garbage_rejected(self):
        with pytest.raises(InvalidIdentifierError):
            parse_identifier("12ab")


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_success(self, mock_db, users, log_action):
        user = make_orm_user(UserRole.TEACHER)
        users.get_by_email.return_value = user

        result = await service.login(mock_db, LoginRequest(email_or_phone=user.email, password=PASSWORD))

        assert result.user.email == user.email
        assert decode_token(result.access_token)["sub"] == user.id
        assert result.refresh_token is not None
        users.touch_last_login.assert_awaited_once()
        assert log_action.await_args.kwargs["action"] == "login"

    @pytest.mark.asyncio
    async def test_wrong_password_is_logged_and_rejected(self, mock_db, users, log_action):
        user = make_orm_user()
        users.get_by_email.return_value = user

        with pytest.raises(InvalidCredentialsError):
            await service.login(mock_db, LoginRequest(email_or_phone=user.email, password="nope"))

        assert log_action.await_args.kwargs["success"] is False
        mock_db.commit.assert_awaited()

    @pytest.mark.asyncio
    async def test_unknown_user_same_error(self, mock_db, users, log_action):
        with pytest.raises(InvalidCredentialsError) as exc_info:
            await service.login(mock_db, LoginRequest(email_or_phone="ghost@test.com", password=PASSWORD))
        assert exc_info.value.error_code == "INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_inactive_account(self, mock_db, users, log_action):
        users.get_by_email.return_value = make_orm_user(is_active=False)
        with pytest.raises(AccountInactiveError):
            await service.login(mock_db, LoginRequest(email_or_phone="a@test.com", password=PASSWORD))

    @pytest.mark.asyncio
    async def test_school_code_requires_membership(self, mock_db, users, log_action, school):
        users.get_by_email.return_value = make_orm_user(UserRole.PARENT)
        with patch(f"{SERVICE}.SchoolRepository") as schools:
            schools.get_by_code = AsyncMock(return_value=school)
            with pytest.raises(NoSchoolAccessError):
                await service.login(
                    mock_db,
                    LoginRequest(email_or_phone="p@test.com", password=PASSWORD, school_code=school.code),
                )

    @pytest.mark.asyncio
    async def test_school_code_with_membership(self, mock_db, users, log_action, school):
        user = make_orm_user(UserRole.PARENT)
        add_membership(user, school, UserRole.PARENT)
        users.get_by_email.return_value = user
        with patch(f"{SERVICE}.SchoolRepository") as schools:
            schools.get_by_code = AsyncMock(return_value=school)
            result = await service.login(
                mock_db,
                LoginRequest(email_or_phone=user.email, password=PASSWORD, school_code=school.code),
            )
        assert result.user.memberships[0].school_code == school.code


class TestSchoolLogin:
    @pytest.mark.asyncio
    async def test_requires_matching_role(self, mock_db, users, log_action, school):
        user = make_orm_user(UserRole.TEACHER)
        add_membership(user, school, UserRole.TEACHER)
        users.get_by_email.return_value = user

        with patch(f"{SERVICE}.SchoolRepository") as schools:
            schools.find_by_identifier = AsyncMock(return_value=school)
            ok = await service.school_login(
                mock_db,
                SchoolLoginRequest(
                    school_identifier=school.code, role="teacher", email=user.email, password=PASSWORD
                ),
            )
            assert ok.user.id == user.id

            with pytest.raises(InvalidCredentialsError):
                await service.school_login(
                    mock_db,
                    SchoolLoginRequest(
                        school_identifier=school.code, role="principal", email=user.email, password=PASSWORD
                    ),
                )


class TestAdminLogin:
    @pytest.mark.asyncio
    async def test_admin_token_carries_admin_access(self, mock_db, users, log_action):
        admin = make_orm_user(UserRole.SUPPORT_ADMIN)
        users.get_by_email.return_value = admin

        result = await service.admin_login(mock_db, AdminLoginRequest(email=admin.email, password=PASSWORD))

        assert decode_token(result.access_token)["admin_access"] is True

    @pytest.mark.asyncio
    async def test_school_user_rejected(self, mock_db, users, log_action):
        users.get_by_email.return_value = make_orm_user(UserRole.SCHOOL_ADMIN)
        with pytest.raises(InvalidAdminCredentialsError):
            await service.admin_login(mock_db, AdminLoginRequest(email="s@test.com", password=PASSWORD))

    @pytest.mark.asyncio
    async def test_wrong_admin_key(self, mock_db, users, log_action):
        with patch.object(service.settings, "admin_access_key", "expected-key"):
            with pytest.raises(InvalidAdminKeyError):
                await service.admin_login(
                    mock_db,
                    AdminLoginRequest(email="a@test.com", password=PASSWORD, admin_key="wrong"),
                )
        users.get_by_email.assert_not_awaited()


class TestRegister:
    @pytest.mark.asyncio
    async def test_duplicate_email(self, mock_db, users, log_action):
        users.email_exists = AsyncMock(return_value=True)
        with pytest.raises(EmailExistsError):
            await service.register(
                mock_db,
                RegisterRequest(email="dup@test.com", password="secret1", first_name="A", last_name="B"),
            )

    @pytest.mark.asyncio
    async def test_teacher_joins_school_inactive(self, mock_db, users, log_action, school):
        user = make_orm_user(UserRole.TEACHER)
        users.email_exists = AsyncMock(return_value=False)
        users.create = AsyncMock(return_value=user)
        membership = MagicMock(is_active=True)

        with (
            patch(f"{SERVICE}.SchoolRepository") as schools,
            patch(f"{SERVICE}.MembershipRepository") as memberships,
        ):
            schools.get_by_code = AsyncMock(return_value=school)
            memberships.create = AsyncMock(return_value=membership)

            await service.register(
                mock_db,
                RegisterRequest(
                    email="new@test.com",
                    password="secret1",
                    first_name="New",
                    last_name="Teacher",
                    role="teacher",
                    school_code=school.code,
                ),
            )

        assert memberships.create.await_args.kwargs["role"] == UserRole.TEACHER
        assert membership.is_active is False


class TestMagicLink:
    @pytest.mark.asyncio
    async def test_non_admin_gets_nothing(self, mock_db, users):
        users.get_by_email.return_value = make_orm_user(UserRole.TEACHER)
        with (
            patch(f"{SERVICE}.repository") as repo,
            patch(f"{SERVICE}.send_magic_link_email", new=AsyncMock()) as send,
        ):
            repo.create_token = AsyncMock()
            await service.request_magic_link(mock_db, MagicLinkRequest(email="t@test.com"))
        repo.create_token.assert_not_called()
        send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_admin_receives_hashed_token(self, mock_db, users):
        admin = make_orm_user(UserRole.CONTENT_ADMIN)
        users.get_by_email.return_value = admin
        with (
            patch(f"{SERVICE}.repository") as repo,
            patch(f"{SERVICE}.send_magic_link_email", new=AsyncMock()) as send,
        ):
            repo.invalidate_tokens = AsyncMock()
            repo.create_token = AsyncMock()
            await service.request_magic_link(mock_db, MagicLinkRequest(email=admin.email))

        raw_token = send.await_args.args[2]
        stored = repo.create_token.await_args.kwargs
        assert stored["token_hash"] == hash_token(raw_token)
        assert stored["token_type"] == AuthTokenType.MAGIC_LINK
        repo.invalidate_tokens.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_used_token(self, mock_db):
        record = AuthToken(
            user_id="u",
            token_hash="h",
            token_type=AuthTokenType.MAGIC_LINK,
            expires_at=datetime.now(UTC) + timedelta(minutes=5),
            used_at=datetime.now(UTC),
        )
        with patch(f"{SERVICE}.repository") as repo:
            repo.get_token_by_hash = AsyncMock(return_value=record)
            with pytest.raises(TokenAlreadyUsedError):
                await service.consume_magic_link(mock_db, "some-long-token")

    @pytest.mark.asyncio
    async def test_expired_token(self, mock_db):
        record = AuthToken(
            user_id="u",
            token_hash="h",
            token_type=AuthTokenType.MAGIC_LINK,
            expires_at=datetime.now(UTC) - timedelta(minutes=1),
            used_at=None,
        )
        with patch(f"{SERVICE}.repository") as repo:
            repo.get_token_by_hash = AsyncMock(return_value=record)
            repo.claim_token = AsyncMock()
            with pytest.raises(TokenExpiredError):
                await service.consume_magic_link(mock_db, "some-long-token")
            repo.claim_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_token_claimed_concurrently(self, mock_db, users):
        record = AuthToken(
            id="token-1",
            user_id="u",
            token_hash="h",
            token_type=AuthTokenType.PASSWORD_RESET,
            expires_at=datetime.now(UTC) + timedelta(minutes=5),
            used_at=None,
        )
        with patch(f"{SERVICE}.repository") as repo:
            repo.get_token_by_hash = AsyncMock(return_value=record)
            repo.claim_token = AsyncMock(return_value=False)
            with pytest.raises(TokenAlreadyUsedError):
                await service.reset_password(
                    mock_db, ResetPasswordRequest(token="some-long-token", new_password="new-secret1")
                )

        assert repo.claim_token.await_args.args[1] == "token-1"
        users.set_password.assert_not_called()


def _otp(user_id: str, code: str, purpose: OtpPurpose, attempts: int = 0) -> OtpCode:
    return OtpCode(
        user_id=user_id,
        channel=OtpChannel.EMAIL,
        destination="x@test.com",
        code_hash=hash_token(code),
        purpose=purpose,
        expires_at=datetime.now(UTC) + timedelta(minutes=5),
        consumed=False,
        attempts=attempts,
    )


class TestVerifyOtp:
    @pytest.mark.asyncio
    async def test_wrong_code_counts_attempt(self, mock_db, users):
        user = make_orm_user()
        users.get_by_email.return_value = user
        otp = _otp(user.id, "123456", OtpPurpose.LOGIN)

        with patch(f"{SERVICE}.repository") as repo:
            repo.get_live_otp = AsyncMock(return_value=otp)
            repo.record_failed_attempt = AsyncMock(return_value=1)
            with pytest.raises(InvalidOtpError) as exc_info:
                await service.verify_otp(
                    mock_db, OtpVerifyRequest(email_or_phone=user.email, code="000000")
                )

        repo.record_failed_attempt.assert_awaited_once_with(mock_db, otp.id, service.settings.otp_max_attempts)
        mock_db.commit.assert_awaited_once()
        assert "remaining" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_last_wrong_guess_burns_code(self, mock_db, users):
        user = make_orm_user()
        users.get_by_email.return_value = user
        otp = _otp(user.id, "123456", OtpPurpose.LOGIN, attempts=service.settings.otp_max_attempts - 1)

        with patch(f"{SERVICE}.repository") as repo:
            repo.get_live_otp = AsyncMock(return_value=otp)
            repo.record_failed_attempt = AsyncMock(return_value=service.settings.otp_max_attempts)
            with pytest.raises(OtpAttemptsExceededError):
                await service.verify_otp(
                    mock_db, OtpVerifyRequest(email_or_phone=user.email, code="000000")
                )

    @pytest.mark.asyncio
    async def test_code_consumed_concurrently(self, mock_db, users, log_action):
        user = make_orm_user()
        users.get_by_email.return_value = user
        otp = _otp(user.id, "654321", OtpPurpose.LOGIN)

        with patch(f"{SERVICE}.repository") as repo:
            repo.get_live_otp = AsyncMock(return_value=otp)
            repo.consume_otp = AsyncMock(return_value=False)
            with pytest.raises(InvalidOtpError):
                await service.verify_otp(
                    mock_db, OtpVerifyRequest(email_or_phone=user.email, code="654321")
                )

        log_action.assert_not_called()

    @pytest.mark.asyncio
    async def test_login_code_returns_tokens(self, mock_db, users, log_action):
        user = make_orm_user()
        users.get_by_email.return_value = user
        otp = _otp(user.id, "654321", OtpPurpose.LOGIN)

        with patch(f"{SERVICE}.repository") as repo:
            repo.get_live_otp = AsyncMock(return_value=otp)
            repo.consume_otp = AsyncMock(return_value=True)
            result = await service.verify_otp(
                mock_db, OtpVerifyRequest(email_or_phone=user.email, code="654321")
            )

        repo.consume_otp.assert_awaited_once_with(mock_db, otp.id)
        assert result.auth is not None
        assert result.reset_token is None

    @pytest.mark.asyncio
    async def test_reset_code_returns_reset_token(self, mock_db, users):
        user = make_orm_user()
        users.get_by_email.return_value = user
        otp = _otp(user.id, "111222", OtpPurpose.RESET)

        with patch(f"{SERVICE}.repository") as repo:
            repo.get_live_otp = AsyncMock(return_value=otp)
            repo.consume_otp = AsyncMock(return_value=True)
            repo.invalidate_tokens = AsyncMock()
            repo.create_token = AsyncMock()
            result = await service.verify_otp(
                mock_db,
                OtpVerifyRequest(email_or_phone=user.email, code="111222", purpose=OtpPurpose.RESET),
            )

        assert result.auth is None
        assert result.reset_token
        assert repo.create_token.await_args.kwargs["token_type"] == AuthTokenType.PASSWORD_RESET


class TestForgotPassword:
    @pytest.mark.asyncio
    async def test_unusable_identifier_is_silent(self, mock_db, users):
        with patch(f"{SERVICE}.send_password_reset_email", new=AsyncMock()) as send:
            await service.forgot_password(mock_db, ForgotPasswordRequest(email_or_phone="x1y"))
        send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_account_is_silent(self, mock_db, users):
        with patch(f"{SERVICE}.send_password_reset_email", new=AsyncMock()) as send:
            await service.forgot_password(mock_db, ForgotPasswordRequest(email_or_phone="who@test.com"))
        send.assert_not_awaited()


class TestRefreshTokens:
    @pytest.mark.asyncio
    async def test_access_token_is_not_a_refresh_token(self, mock_db):
        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh_tokens(mock_db, create_access_token("u"))

    @pytest.mark.asyncio
    async def test_rotation_revokes_old_token(self, mock_db, users):
        user = make_orm_user()
        users.get_by_id.return_value = user
        old = create_refresh_token(user.id)

        with (
            patch(f"{SERVICE}.is_token_id_revoked", new=AsyncMock(return_value=False)),
            patch(f"{SERVICE}.revoke_token_id", new=AsyncMock()) as revoke,
        ):
            result = await service.refresh_tokens(mock_db, old)

        assert result.refresh_token != old
        assert revoke.await_args.args[0] == decode_token(old)["jti"]

    @pytest.mark.asyncio
    async def test_revoked_refresh_token(self, mock_db):
        with patch(f"{SERVICE}.is_token_id_revoked", new=AsyncMock(return_value=True)):
            with pytest.raises(InvalidRefreshTokenError):
                await service.refresh_tokens(mock_db, create_refresh_token("u"))
