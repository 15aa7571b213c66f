"""
Authentication module exceptions.

These exceptions are raised by the auth module and can be caught
by API error handlers to return appropriate HTTP responses.
Credential and token failures are AuthenticationErrors (401), guard
violations are AuthorizationErrors (403).
"""

from typing import Any

from shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)


# -----------------------------------------------------------------------------
# Access tokens
# -----------------------------------------------------------------------------


class InvalidTokenError(AuthenticationError):
    """Raised when a JWT token is invalid or malformed."""

    def __init__(self, message: str = "Invalid authentication token"):
        super().__init__(message, code="INVALID_TOKEN")


class ExpiredTokenError(AuthenticationError):
    """Raised when a JWT token has expired."""

    def __init__(self, message: str = "Authentication token has expired"):
        super().__init__(message, code="TOKEN_EXPIRED")


class MissingTokenError(AuthenticationError):
    """Raised when no authentication token is provided."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="MISSING_TOKEN")


class AccountDeletedError(AuthenticationError):
    """Raised when a soft-deleted account presents a valid token."""

    def __init__(self, user_id: str):
        super().__init__(
            "Account has been deleted",
            code="ACCOUNT_DELETED",
            details={"user_id": user_id},
        )


# -----------------------------------------------------------------------------
# Refresh tokens
# -----------------------------------------------------------------------------


class RefreshTokenNotFoundError(AuthenticationError):
    """Raised when a presented refresh token has no ledger record."""

    def __init__(self):
        super().__init__("Refresh token not found", code="REFRESH_TOKEN_NOT_FOUND")


class RefreshTokenReusedError(AuthenticationError):
    """Raised when a refresh token that was already rotated or revoked is presented."""

    def __init__(self):
        super().__init__("Refresh token already used", code="REFRESH_TOKEN_REUSED")


class RefreshTokenExpiredError(AuthenticationError):
    """Raised when a refresh token is past its expiry."""

    def __init__(self):
        super().__init__("Refresh token expired", code="REFRESH_TOKEN_EXPIRED")


# -----------------------------------------------------------------------------
# Credentials
# -----------------------------------------------------------------------------


class DuplicateIdentityError(ConflictError):
    """Raised when registering an email or phone that is already taken."""

    def __init__(self, field: str = "email"):
        super().__init__(
            f"User with this {field} already exists",
            code="DUPLICATE_IDENTITY",
            details={"field": field},
        )


class InvalidCredentialsError(AuthenticationError):
    """Raised when an email/password pair does not match."""

    def __init__(self, message: str = "Invalid email or password", code: str = "INVALID_CREDENTIALS"):
        super().__init__(message, code=code)


class PasswordlessAccountError(InvalidCredentialsError):
    """Raised on password login against an account that never set a password."""

    def __init__(self):
        super().__init__(
            "This account uses passwordless login. Please use OTP or Google.",
            code="PASSWORDLESS_ACCOUNT",
        )


class InvalidExternalTokenError(AuthenticationError):
    """Raised when a third-party identity token fails verification."""

    def __init__(self, message: str = "Invalid or expired identity token"):
        super().__init__(message, code="INVALID_EXTERNAL_TOKEN")


class InvalidOrExpiredCodeError(AuthenticationError):
    """Raised when a one-time code is missing, expired or wrong."""

    def __init__(self):
        super().__init__("Invalid or expired OTP", code="INVALID_OR_EXPIRED_CODE")


class PasswordRequiredError(ValidationError):
    """Raised when an OTP login would create a new user but no password was given."""

    def __init__(self):
        super().__init__("Password is required for new users", code="PASSWORD_REQUIRED")


class PhoneMismatchError(AuthenticationError):
    """Raised when the phone bound to an identity token differs from the supplied one."""

    def __init__(self):
        super().__init__("Phone number mismatch", code="PHONE_MISMATCH")


class UserNotFoundError(NotFoundError):
    """Raised when the referenced user doesn't exist in the database."""

    def __init__(self, user_id: str = ""):
        super().__init__(
            "User not found",
            code="USER_NOT_FOUND",
            details={"user_id": user_id} if user_id else {},
        )


# -----------------------------------------------------------------------------
# Permissions
# -----------------------------------------------------------------------------


class InvalidPermissionError(ValidationError):
    """Raised when a value is not part of the permission universe."""

    def __init__(self, permission: str):
        super().__init__(
            f"Invalid permission: {permission}",
            code="INVALID_PERMISSION",
            details={"permission": permission},
        )


class InvalidAdminLevelError(ValidationError):
    """Raised when a value is not a known admin level."""

    def __init__(self, level: Any):
        super().__init__(
            "Invalid admin level",
            code="INVALID_ADMIN_LEVEL",
            details={"admin_level": level},
        )


class InsufficientPermissionsError(AuthorizationError):
    """Raised when an admin lacks the permission a route requires."""

    def __init__(self, required: list[str]):
        super().__init__(
            f"Missing required permission: {', '.join(required)}",
            code="INSUFFICIENT_PERMISSIONS",
            details={"required": required},
        )


class AdminRequiredError(AuthorizationError):
    """Raised when a regular user reaches an admin-only route."""

    def __init__(self):
        super().__init__("Not authorized as admin", code="ADMIN_REQUIRED")


class SuperAdminRequiredError(AuthorizationError):
    """Raised when a non-super-admin reaches a super-admin-only route."""

    def __init__(self):
        super().__init__("Super admin access required", code="SUPER_ADMIN_REQUIRED")
