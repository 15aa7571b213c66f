"""
Third-party identity token verification.

Google and phone sign-in both arrive as Firebase ID tokens. They are RS256
JWTs signed by Google's securetoken service account; the public keys are
fetched from the JWKS endpoint and cached by PyJWKClient.
"""

import asyncio
import logging
from typing import Optional

import jwt
from jwt import PyJWKClient

from .models import ExternalIdentity
from .exceptions import InvalidExternalTokenError

logger = logging.getLogger(__name__)

FIREBASE_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/"
    "securetoken@system.gserviceaccount.com"
)
FIREBASE_ISSUER_PREFIX = "https://securetoken.google.com/"


class FirebaseTokenVerifier:
    """
    IIdentityVerifier for Firebase ID tokens.

    Build one per process; the underlying key cache is shared across calls.
    """

    def __init__(
        self,
        project_id: str,
        jwks_client: Optional[PyJWKClient] = None,
        leeway: int = 0,
    ):
        self._project_id = project_id
        self._jwks_client = jwks_client or PyJWKClient(FIREBASE_JWKS_URL)
        self._leeway = leeway

    @property
    def issuer(self) -> str:
        return f"{FIREBASE_ISSUER_PREFIX}{self._project_id}"

    def _decode(self, id_token: str) -> dict:
        signing_key = self._jwks_client.get_signing_key_from_jwt(id_token)
        return jwt.decode(
            id_token,
            signing_key.key,
            algorithms=["RS256"],
            audience=self._project_id,
            issuer=self.issuer,
            leeway=self._leeway,
            options={"require": ["exp", "iat", "sub"]},
        )

    async def verify(self, id_token: str) -> ExternalIdentity:
        """
        Verify a Firebase ID token and return its claims.

        Raises:
            InvalidExternalTokenError: On any signature, audience, issuer or
                expiry failure, or if the key set cannot be fetched
        """
        if not self._project_id:
            raise InvalidExternalTokenError("Identity verification is not configured")

        try:
            # Key fetch does blocking HTTP
            claims = await asyncio.to_thread(self._decode, id_token)
        except (jwt.InvalidTokenError, jwt.PyJWKClientError) as e:
            logger.debug(f"Identity token rejected: {type(e).__name__}: {e}")
            raise InvalidExternalTokenError()

        logger.debug(
            f"Identity token verified for uid={claims.get('sub')} "
            f"provider={claims.get('firebase', {}).get('sign_in_provider')}"
        )

        return ExternalIdentity(
            uid=claims["sub"],
            email=claims.get("email"),
            phone_number=claims.get("phone_number"),
            name=claims.get("name"),
            picture=claims.get("picture"),
        )
