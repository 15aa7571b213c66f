"""
Token issuance.

Access tokens are short-lived HS256 JWTs verified without a storage lookup.
Refresh tokens are opaque random strings; only their SHA-256 hash is ever
written to the ledger.
"""

import hashlib
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from shared.config import Settings

from .interfaces import IRefreshTokenRepository
from .models import AccessTokenPayload, TokenPair
from .exceptions import (
    ExpiredTokenError,
    InvalidTokenError,
    MissingTokenError,
)

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"


def hash_token(raw: str) -> str:
    """SHA-256 hex digest of a raw refresh token."""
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def generate_refresh_token() -> str:
    """New opaque refresh token (UUID4, 122 random bits)."""
    return str(uuid.uuid4())


class TokenIssuer:
    """
    Mints access/refresh token pairs.

    Every issue_tokens() call writes exactly one ledger record.
    """

    def __init__(self, ledger: IRefreshTokenRepository, settings: Settings):
        self._ledger = ledger
        self._settings = settings

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(minutes=self._settings.access_token_ttl_minutes)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return timedelta(days=self._settings.refresh_token_ttl_days)

    def create_access_token(self, user_id: str, now: Optional[datetime] = None) -> str:
        """Sign an access token for a user."""
        if not self._settings.jwt_secret:
            raise RuntimeError("JWT_SECRET is not configured")

        now = now or datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
            "iat": int(now.timestamp()),
            "exp": int((now + self.access_token_ttl).timestamp()),
            "type": ACCESS_TOKEN_TYPE,
        }
        return jwt.encode(
            payload,
            self._settings.jwt_secret,
            algorithm=self._settings.jwt_algorithm,
        )

    def decode_access_token(self, token: Optional[str]) -> AccessTokenPayload:
        """
        Verify and decode an access token.

        Raises:
            MissingTokenError: If no token was given
            ExpiredTokenError: If the token is past its expiry
            InvalidTokenError: On bad signature, issuer, audience or type
        """
        if not token:
            raise MissingTokenError()

        try:
            payload = jwt.decode(
                token,
                self._settings.jwt_secret,
                algorithms=[self._settings.jwt_algorithm],
                audience=self._settings.jwt_audience,
                issuer=self._settings.jwt_issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError()
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        claims = AccessTokenPayload(**payload)
        if claims.type != ACCESS_TOKEN_TYPE:
            raise InvalidTokenError("Invalid token type")
        return claims

    async def issue_tokens(self, user_id: str) -> TokenPair:
        """Create an access token and record a new refresh token for a user."""
        now = datetime.now(timezone.utc)
        access_token = self.create_access_token(user_id, now=now)

        raw_refresh = generate_refresh_token()
        await self._ledger.insert(
            user_id=user_id,
            token_hash=hash_token(raw_refresh),
            expires_at=now + self.refresh_token_ttl,
        )
        logger.debug(f"Issued token pair for user {user_id}")

        return TokenPair(access_token=access_token, refresh_token=raw_refresh)
