"""Authentication schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from campus.modules.auth.models import OtpPurpose

PASSWORD_MIN_LENGTH = 6

SelfRegistrationRole = Literal["student", "parent", "teacher", "school_admin"]
SchoolLoginRole = Literal["school_admin", "principal", "teacher", "staff"]
AdminPortalRole = Literal[
    "super_admin", "support_admin", "sales_admin", "content_admin", "finance_admin"
]


class RegisterRequest(BaseModel):
    """Self-service account registration."""

    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: SelfRegistrationRole = "student"
    phone: str | None = Field(None, max_length=20)
    school_code: str | None = Field(None, max_length=20)


class LoginRequest(BaseModel):
    """Login with an email address or phone number."""

    email_or_phone: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)
    school_code: str | None = Field(None, max_length=20)


class SchoolLoginRequest(BaseModel):
    """Staff login scoped to a school found by code, email or name."""

    school_identifier: str = Field(..., min_length=2, max_length=200)
    role: SchoolLoginRole
    email: EmailStr
    password: str = Field(..., min_length=1)


class GuestLoginRequest(BaseModel):
    school_code: str | None = Field(None, max_length=20)


class AdminLoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    admin_key: str | None = None


class MagicLinkRequest(BaseModel):
    email: EmailStr
    admin_role: AdminPortalRole | None = None


class TokenRequest(BaseModel):
    """A single-use token taken from an emailed link."""

    token: str = Field(..., min_length=10, max_length=256)


class OtpRequest(BaseModel):
    email_or_phone: str = Field(..., min_length=3, max_length=255)
    purpose: OtpPurpose = OtpPurpose.LOGIN


class OtpVerifyRequest(BaseModel):
    email_or_phone: str = Field(..., min_length=3, max_length=255)
    code: str = Field(..., pattern=r"^\d{6}$")
    purpose: OtpPurpose = OtpPurpose.LOGIN


class ForgotPasswordRequest(BaseModel):
    email_or_phone: str = Field(..., min_length=3, max_length=255)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=10, max_length=256)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)


class RefreshRequest(BaseModel):
    refresh_token: str


class MembershipResponse(BaseModel):
    school_id: str
    school_name: str | None = None
    school_code: str | None = None
    role: str


class UserResponse(BaseModel):
    """User as returned by the auth endpoints."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    phone: str | None = None
    first_name: str
    last_name: str
    role: str
    avatar_url: str | None = None
    is_active: bool
    is_verified: bool
    last_login_at: datetime | None = None
    memberships: list[MembershipResponse] = []

    @field_validator("role", mode="before")
    @classmethod
    def role_value(cls, value):
        return getattr(value, "value", value)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    expires_in: int


class AuthResponse(TokenResponse):
    user: UserResponse


class GuestLoginResponse(AuthResponse):
    limitations: list[str]


class OtpRequestResponse(BaseModel):
    success: bool = True
    message: str
    channel: str
    expires_in: int


class OtpVerifyResponse(BaseModel):
    verified: bool = True
    purpose: OtpPurpose
    message: str
    auth: AuthResponse | None = None
    reset_token: str | None = None
