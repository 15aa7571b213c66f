"""
Authentication module interfaces.

Other modules should depend on these protocols, not the concrete
implementations. The orchestrator only ever talks to its collaborators
(credential store, refresh-token ledger, one-time-code store, identity
verifier, message sender) through them, which is what lets tests swap in
in-memory doubles.
"""

from datetime import datetime
from typing import Protocol, Optional, runtime_checkable

from .models import (
    AuthResult,
    ExternalIdentity,
    RefreshTokenRecord,
    TokenPair,
    User,
    UserCreate,
)


@runtime_checkable
class IUserRepository(Protocol):
    """
    Credential store.

    Owns user records exclusively. Callers always pass plaintext passwords;
    hashing happens inside the store.
    """

    async def find_by_id(self, user_id: str) -> Optional[User]:
        ...

    async def find_by_email(self, email: str) -> Optional[User]:
        """Look up by email; the email is normalized before matching."""
        ...

    async def find_by_phone(self, phone: str) -> Optional[User]:
        ...

    async def create(self, data: UserCreate) -> User:
        """
        Create a user record.

        Raises:
            DuplicateIdentityError: If the email or phone is already taken
        """
        ...

    async def update_password(self, user_id: str, new_password: str) -> None:
        """
        Replace a user's password.

        Raises:
            UserNotFoundError: If no such user exists
        """
        ...

    async def save(self, user: User) -> User:
        """Persist the mutable fields of an existing record."""
        ...

    def match_password(self, user: User, candidate: str) -> bool:
        """Compare a candidate plaintext against the user's stored hash."""
        ...


@runtime_checkable
class IRefreshTokenRepository(Protocol):
    """
    Refresh-token ledger.

    Stores only token hashes. The only mutation after insert is flipping
    ``revoked`` from false to true.
    """

    async def insert(
        self,
        user_id: str,
        token_hash: str,
        expires_at: datetime,
    ) -> RefreshTokenRecord:
        ...

    async def lookup(self, token_hash: str) -> Optional[RefreshTokenRecord]:
        ...

    async def revoke(self, record_id: str) -> bool:
        """
        Atomically mark a record revoked.

        Returns:
            True if this call flipped revoked from false to true, False if
            the record was already revoked (or does not exist)
        """
        ...

    async def revoke_all_for_user(self, user_id: str) -> int:
        ...

    async def prune_expired(self, now: Optional[datetime] = None) -> int:
        ...


@runtime_checkable
class IOtpStore(Protocol):
    """Key/value store with per-key expiry for one-time codes."""

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value, overwriting any live value for the key."""
        ...

    async def get(self, key: str) -> Optional[str]:
        ...

    async def delete(self, key: str) -> None:
        ...


@runtime_checkable
class IIdentityVerifier(Protocol):
    """Verifier for third-party identity tokens (Google / phone sign-in)."""

    async def verify(self, id_token: str) -> ExternalIdentity:
        """
        Verify signature, audience and expiry and return the claims.

        Raises:
            InvalidExternalTokenError: If the token fails any check
        """
        ...


@runtime_checkable
class IMessageSender(Protocol):
    """One-shot "send a message to an address" capability."""

    async def send(self, to: str, subject: str, text: str, html: str) -> None:
        ...


@runtime_checkable
class IAuthService(Protocol):
    """
    Interface for authentication operations.

    This protocol defines the contract that the auth module exposes
    to the API layer. Every login-style call returns an AuthResult whose
    raw refresh token must be moved into a cookie by the caller.
    """

    async def register(self, name: str, email: str, password: str) -> AuthResult:
        ...

    async def login(self, email: str, password: str) -> AuthResult:
        ...

    async def login_with_external_token(self, id_token: str) -> AuthResult:
        ...

    async def send_otp(self, email: str) -> None:
        ...

    async def login_with_otp(
        self,
        email: str,
        otp: str,
        password: Optional[str] = None,
    ) -> AuthResult:
        ...

    async def login_with_phone_token(self, id_token: str, phone: str) -> AuthResult:
        ...

    async def reset_password(self, email: str, otp: str, new_password: str) -> AuthResult:
        ...

    async def change_password(
        self,
        user_id: str,
        current_password: str,
        new_password: str,
    ) -> None:
        ...

    async def delete_account(self, user_id: str, password: str) -> None:
        ...

    async def check_email_exists(self, email: str) -> bool:
        ...

    async def refresh(self, refresh_token: str) -> TokenPair:
        ...

    async def logout(self, refresh_token: Optional[str] = None) -> None:
        ...

    async def authenticate(self, access_token: str) -> User:
        """
        Resolve a bearer access token to an active user record.

        Raises:
            MissingTokenError, ExpiredTokenError, InvalidTokenError,
            AccountDeletedError
        """
        ...
