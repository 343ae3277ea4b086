"""
Authentication schemas: registration, login, two-factor verification and
password reset.

Request bodies use camelCase keys on the wire.
"""

from typing import List, Optional
from uuid import UUID

from pydantic import EmailStr, Field, ValidationInfo, field_validator

from app.schemas.common import CamelModel, validate_password_strength


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class RegisterRequest(CamelModel):
    """Schema for creating a new account."""

    first_name: str = Field(..., min_length=1, max_length=100, description="First name")
    last_name: str = Field(..., min_length=1, max_length=100, description="Last name")
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password")
    confirm_password: str = Field(..., description="Password confirmation")

    @field_validator("first_name", "last_name", "email", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        return _strip(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return validate_password_strength(v)

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, v, info: ValidationInfo):
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("Passwords do not match")
        return v


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return _strip(v)


class TwoFactorVerifyRequest(CamelModel):
    challenge_id: UUID = Field(..., description="Challenge id returned by login")
    code: str = Field(..., pattern=r"^\d{6}$", description="Six digit code from the email")


class ForgotPasswordRequest(CamelModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return _strip(v)


class ResetPasswordRequest(CamelModel):
    token: UUID = Field(..., description="Reset token from the email link")
    password: str
    confirm_password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return validate_password_strength(v)

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, v, info: ValidationInfo):
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("Passwords do not match")
        return v


class AuthUser(CamelModel):
    id: str
    email: str
    name: str
    roles: List[str]


class TokenResponse(CamelModel):
    token_type: str = "Bearer"
    access_token: str
    expires_in: int
    user: AuthUser


class TwoFactorRequiredResponse(CamelModel):
    requires_two_factor: bool = True
    challenge_id: str
    expires_in_seconds: int
    message: str = "Authentication code sent to your email."


class TwoFactorChallengeResponse(CamelModel):
    message: str = "2FA challenge created"
    challenge_id: str
    expires_in_seconds: int
    otp_code: Optional[str] = None


class ForgotPasswordResponse(CamelModel):
    message: str = "If the email exists, a reset link has been sent."
    reset_token: Optional[str] = None


class EmailAvailableResponse(CamelModel):
    available: bool
