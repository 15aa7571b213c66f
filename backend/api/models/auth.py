"""
Request and response models for the auth and user endpoints.

Request bodies accept both snake_case and camelCase keys (the front ends
send idToken, newPassword, ...).
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from modules.auth.models import AuthUser
from modules.auth.passwords import validate_password_policy
from modules.auth.permissions import UserRole

E164_PHONE = re.compile(r"^\+[1-9]\d{1,14}$")
OTP_PATTERN = r"^\d{6}$"


def validate_id_token(token: str) -> str:
    if len(token.split(".")) != 3:
        raise ValueError("Invalid token format. Expected JWT format (header.payload.signature)")
    return token


class RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------


class RegisterRequest(RequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def _password_policy(cls, v: str) -> str:
        return validate_password_policy(v)


class LoginRequest(RequestModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ExternalTokenRequest(RequestModel):
    id_token: str = Field(..., min_length=10, max_length=2048)

    @field_validator("id_token")
    @classmethod
    def _jwt_shape(cls, v: str) -> str:
        return validate_id_token(v)


class SendOtpRequest(RequestModel):
    email: EmailStr


class VerifyOtpRequest(RequestModel):
    email: EmailStr
    otp: str = Field(..., pattern=OTP_PATTERN)
    password: Optional[str] = None

    @field_validator("password")
    @classmethod
    def _password_policy(cls, v: Optional[str]) -> Optional[str]:
        return validate_password_policy(v) if v is not None else v


class ResetPasswordRequest(RequestModel):
    email: EmailStr
    otp: str = Field(..., pattern=OTP_PATTERN)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def _password_policy(cls, v: str) -> str:
        return validate_password_policy(v)


class PhoneLoginRequest(ExternalTokenRequest):
    phone: str

    @field_validator("phone")
    @classmethod
    def _e164(cls, v: str) -> str:
        if not E164_PHONE.match(v):
            raise ValueError("Phone must be in E.164 format (e.g., +1234567890)")
        return v


class ChangePasswordRequest(RequestModel):
    current_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def _password_policy(cls, v: str) -> str:
        return validate_password_policy(v)


class DeleteAccountRequest(RequestModel):
    password: str = Field(..., min_length=1)


class UpdateProfileRequest(RequestModel):
    """Omitted fields stay unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    avatar: Optional[str] = Field(None, max_length=2048)

    @field_validator("phone")
    @classmethod
    def _e164(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not E164_PHONE.match(v):
            raise ValueError("Phone must be in E.164 format (e.g., +1234567890)")
        return v


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------


class AuthUserResponse(BaseModel):
    """User payload of every login-style response. The access token is `token`."""

    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    token: str

    @classmethod
    def from_auth_user(cls, user: AuthUser) -> "AuthUserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            role=user.role,
            token=user.access_token,
        )


class AccessTokenResponse(BaseModel):
    token: str


class EmailExistsResponse(BaseModel):
    exists: bool


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class UserProfileResponse(BaseModel):
    """Profile of the logged-in user."""

    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None
    role: UserRole
    admin_level: Optional[int] = None
    permissions: list[str] = Field(default_factory=list)
