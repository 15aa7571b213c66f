"""
Authentication module data models.

These models define the data structures used by the auth module
and exposed to other modules through the interface.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from . import permissions as rbac
from .permissions import AdminLevel, Permission, UserRole


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    """Lowercase and trim an email address for storage and lookup."""
    return email.strip().lower()


class User(BaseModel):
    """
    Persisted identity record.

    The password hash is carried so the credential store can verify
    passwords, but it is excluded from every serialization.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., description="User ID (UUID)")
    name: str = Field(..., description="Display name")
    email: Optional[str] = Field(None, description="Normalized email, unique when present")
    password_hash: Optional[str] = Field(None, exclude=True, repr=False)
    phone: Optional[str] = Field(None, description="E.164 phone, unique when present")
    avatar: Optional[str] = Field(None, description="Avatar URL")
    role: UserRole = Field(default=UserRole.USER, description="Account role")
    admin_level: Optional[AdminLevel] = Field(None, description="Required for admins")
    permissions: list[Permission] = Field(default_factory=list, description="Admin permissions")
    is_deleted: bool = Field(default=False, description="Soft-delete flag")
    deleted_at: Optional[datetime] = Field(None, description="Soft-delete time")
    created_at: datetime = Field(default_factory=utc_now, description="Account creation time")

    @model_validator(mode="after")
    def _admin_has_level(self) -> "User":
        if self.role == UserRole.ADMIN and self.admin_level is None:
            raise ValueError("admin users require an admin_level")
        return self

    def has_password(self) -> bool:
        return bool(self.password_hash)

    def is_admin(self) -> bool:
        return rbac.is_admin(self)

    def is_super_admin(self) -> bool:
        return rbac.is_super_admin(self)

    def has_permission(self, permission: Permission) -> bool:
        return rbac.has_permission(self, permission)

    def has_any_permission(self, permissions: Iterable[Permission]) -> bool:
        return rbac.has_any_permission(self, permissions)

    def has_all_permissions(self, permissions: Iterable[Permission]) -> bool:
        return rbac.has_all_permissions(self, permissions)


class UserCreate(BaseModel):
    """Fields accepted when creating a user. Passwords are plaintext here."""

    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = Field(None, repr=False)
    avatar: Optional[str] = None
    role: UserRole = UserRole.USER
    admin_level: Optional[AdminLevel] = None
    permissions: list[Permission] = Field(default_factory=list)


class AuthUser(BaseModel):
    """
    User payload returned by every login-style flow.

    The refresh token is deliberately absent; it travels in a cookie.
    """

    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    access_token: str

    @classmethod
    def from_user(cls, user: User, access_token: str) -> "AuthUser":
        return cls(
            id=user.id,
            name=user.name or "User",
            email=user.email,
            phone=user.phone,
            role=user.role,
            access_token=access_token,
        )


class TokenPair(BaseModel):
    """Freshly minted access token plus raw refresh token."""

    access_token: str
    refresh_token: str = Field(..., repr=False)


class AuthResult(BaseModel):
    """Outcome of a successful login, registration, reset or OTP flow."""

    user: AuthUser
    refresh_token: str = Field(..., repr=False)


class RefreshTokenRecord(BaseModel):
    """Ledger entry for an issued refresh token (hash only)."""

    id: str
    user_id: str
    token_hash: str
    expires_at: datetime
    revoked: bool = False
    created_at: datetime = Field(default_factory=utc_now)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at < (now or utc_now())


class AccessTokenPayload(BaseModel):
    """Decoded access token claims."""

    sub: str = Field(..., description="Subject (user ID)")
    iss: str = Field(..., description="Issuer")
    aud: str = Field(..., description="Audience")
    exp: int = Field(..., description="Expiration timestamp")
    iat: int = Field(..., description="Issued at timestamp")
    type: str = Field(default="access", description="Token type")


class ExternalIdentity(BaseModel):
    """Verified claims from a third-party identity token."""

    uid: str = Field(..., description="Provider subject")
    email: Optional[str] = None
    phone_number: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None

    model_config = {"frozen": True}
