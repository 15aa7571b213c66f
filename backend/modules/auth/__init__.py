"""
Authentication module.

Handles credential verification, token issuance and rotation, and the
admin permission model.

Public API:
- IAuthService: Interface for auth operations
- AuthService / build_auth_service: Orchestrator and its production wiring
- User, AuthUser, AuthResult, TokenPair: Core models
- Permission, AdminLevel, UserRole: Permission model
- Auth exceptions: InvalidCredentialsError, RefreshTokenReusedError, etc.
"""

from .interfaces import (
    IAuthService,
    IIdentityVerifier,
    IMessageSender,
    IOtpStore,
    IRefreshTokenRepository,
    IUserRepository,
)
from .models import (
    AccessTokenPayload,
    AuthResult,
    AuthUser,
    ExternalIdentity,
    RefreshTokenRecord,
    TokenPair,
    User,
    UserCreate,
)
from .permissions import (
    AdminLevel,
    DEFAULT_PERMISSIONS,
    Permission,
    UserRole,
    default_permissions,
    has_all_permissions,
    has_any_permission,
    has_permission,
    parse_admin_level,
    parse_permission,
)
from .tokens import TokenIssuer, hash_token
from .repository import RefreshTokenRepository, UserRepository
from .service import AuthService, build_auth_service
from .exceptions import (
    AccountDeletedError,
    AdminRequiredError,
    DuplicateIdentityError,
    ExpiredTokenError,
    InsufficientPermissionsError,
    InvalidAdminLevelError,
    InvalidCredentialsError,
    InvalidExternalTokenError,
    InvalidOrExpiredCodeError,
    InvalidPermissionError,
    InvalidTokenError,
    MissingTokenError,
    PasswordlessAccountError,
    PasswordRequiredError,
    PhoneMismatchError,
    RefreshTokenExpiredError,
    RefreshTokenNotFoundError,
    RefreshTokenReusedError,
    SuperAdminRequiredError,
    UserNotFoundError,
)

__all__ = [
    # Interfaces
    "IAuthService",
    "IIdentityVerifier",
    "IMessageSender",
    "IOtpStore",
    "IRefreshTokenRepository",
    "IUserRepository",
    # Models
    "AccessTokenPayload",
    "AuthResult",
    "AuthUser",
    "ExternalIdentity",
    "RefreshTokenRecord",
    "TokenPair",
    "User",
    "UserCreate",
    # Permissions
    "AdminLevel",
    "DEFAULT_PERMISSIONS",
    "Permission",
    "UserRole",
    "default_permissions",
    "has_all_permissions",
    "has_any_permission",
    "has_permission",
    "parse_admin_level",
    "parse_permission",
    # Implementation
    "AuthService",
    "RefreshTokenRepository",
    "TokenIssuer",
    "UserRepository",
    "build_auth_service",
    "hash_token",
    # Exceptions
    "AccountDeletedError",
    "AdminRequiredError",
    "DuplicateIdentityError",
    "ExpiredTokenError",
    "InsufficientPermissionsError",
    "InvalidAdminLevelError",
    "InvalidCredentialsError",
    "InvalidExternalTokenError",
    "InvalidOrExpiredCodeError",
    "InvalidPermissionError",
    "InvalidTokenError",
    "MissingTokenError",
    "PasswordlessAccountError",
    "PasswordRequiredError",
    "PhoneMismatchError",
    "RefreshTokenExpiredError",
    "RefreshTokenNotFoundError",
    "RefreshTokenReusedError",
    "SuperAdminRequiredError",
    "UserNotFoundError",
]
