"""
Authentication Models

One-time credentials: OTP codes (email or SMS) and single-use tokens for
password reset and admin magic-link login. Secrets are stored only as
SHA-256 hashes.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import ENUM, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from campus.modules.shared import BaseModel


class OtpPurpose(str, Enum):
    LOGIN = "login"
    VERIFY = "verify"
    RESET = "reset"


class OtpChannel(str, Enum):
    EMAIL = "email"
    SMS = "sms"


class AuthTokenType(str, Enum):
    PASSWORD_RESET = "password_reset"
    MAGIC_LINK = "magic_link"


class OtpCode(BaseModel):
    """A numeric one-time code sent to a user's email or phone."""

    __tablename__ = "otp_codes"

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    channel: Mapped[OtpChannel] = mapped_column(
        ENUM(OtpChannel, name="otp_channel", create_type=True),
        nullable=False,
    )
    destination: Mapped[str] = mapped_column(String(255), nullable=False)
    code_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    purpose: Mapped[OtpPurpose] = mapped_column(
        ENUM(OtpPurpose, name="otp_purpose", create_type=True),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    consumed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def __repr__(self) -> str:
        return f"<OtpCode(user_id={self.user_id}, purpose={self.purpose.value}, consumed={self.consumed})>"


class AuthToken(BaseModel):
    """A single-use token delivered as a link (password reset, magic login)."""

    __tablename__ = "auth_tokens"

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    token_type: Mapped[AuthTokenType] = mapped_column(
        ENUM(AuthTokenType, name="auth_token_type", create_type=True),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    context: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    @property
    def is_used(self) -> bool:
        return self.used_at is not None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def __repr__(self) -> str:
        return f"<AuthToken(user_id={self.user_id}, type={self.token_type.value}, used={self.is_used})>"
