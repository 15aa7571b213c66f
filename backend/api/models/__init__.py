"""API models package."""

from .auth import (
    RegisterRequest,
    LoginRequest,
    ExternalTokenRequest,
    SendOtpRequest,
    VerifyOtpRequest,
    ResetPasswordRequest,
    PhoneLoginRequest,
    ChangePasswordRequest,
    DeleteAccountRequest,
    AuthUserResponse,
    AccessTokenResponse,
    EmailExistsResponse,
    MessageResponse,
    UserProfileResponse,
)
from .errors import ErrorResponse, ERROR_RESPONSES

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "ExternalTokenRequest",
    "SendOtpRequest",
    "VerifyOtpRequest",
    "ResetPasswordRequest",
    "PhoneLoginRequest",
    "ChangePasswordRequest",
    "DeleteAccountRequest",
    "AuthUserResponse",
    "AccessTokenResponse",
    "EmailExistsResponse",
    "MessageResponse",
    "UserProfileResponse",
    "ErrorResponse",
    "ERROR_RESPONSES",
]
