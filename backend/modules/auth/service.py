"""
Authentication service implementation.

Orchestrates every login method (password, Google, email OTP, phone) on
top of the credential store, the one-time-code store and the token issuer,
and owns refresh-token rotation and revocation.
"""

import logging
from typing import Optional

from shared.config import Settings, get_settings
from shared.database import get_redis_client, get_supabase_client

from .interfaces import (
    IAuthService,
    IIdentityVerifier,
    IMessageSender,
    IOtpStore,
    IRefreshTokenRepository,
    IUserRepository,
)
from .models import AuthResult, AuthUser, TokenPair, User, UserCreate, normalize_email, utc_now
from .permissions import UserRole
from .tokens import TokenIssuer, hash_token
from .otp import generate_otp, otp_key, RedisOtpStore
from .identity import FirebaseTokenVerifier
from .messaging import SmtpMessageSender
from .repository import RefreshTokenRepository, UserRepository
from .exceptions import (
    AccountDeletedError,
    DuplicateIdentityError,
    InvalidCredentialsError,
    InvalidExternalTokenError,
    InvalidOrExpiredCodeError,
    InvalidTokenError,
    MissingTokenError,
    PasswordlessAccountError,
    PasswordRequiredError,
    PhoneMismatchError,
    RefreshTokenExpiredError,
    RefreshTokenNotFoundError,
    RefreshTokenReusedError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)

OTP_EMAIL_SUBJECT = "Your Login Code"


class AuthService(IAuthService):
    """
    Implementation of the authentication service.

    Stateless: every flow is a short linear sequence of calls on the
    injected collaborators, and every successful login ends in
    TokenIssuer.issue_tokens().
    """

    def __init__(
        self,
        users: IUserRepository,
        refresh_tokens: IRefreshTokenRepository,
        otp_store: IOtpStore,
        identity_verifier: IIdentityVerifier,
        message_sender: IMessageSender,
        settings: Optional[Settings] = None,
    ):
        self._settings = settings or get_settings()
        self._users = users
        self._refresh_tokens = refresh_tokens
        self._otp_store = otp_store
        self._identity_verifier = identity_verifier
        self._message_sender = message_sender
        self._issuer = TokenIssuer(refresh_tokens, self._settings)

    @property
    def token_issuer(self) -> TokenIssuer:
        return self._issuer

    # -------------------------------------------------------------------------
    # Login flows
    # -------------------------------------------------------------------------

    async def register(self, name: str, email: str, password: str) -> AuthResult:
        """
        Register a new user with email and password.

        Raises:
            DuplicateIdentityError: If the email is already registered
        """
        normalized = normalize_email(email)
        if await self._users.find_by_email(normalized):
            raise DuplicateIdentityError("email")

        user = await self._users.create(
            UserCreate(
                name=name.strip(),
                email=normalized,
                password=password,
                role=UserRole.USER,
            )
        )
        logger.info(f"Registered user {user.id} via password")
        return await self._to_auth_result(user)

    async def login(self, email: str, password: str) -> AuthResult:
        """
        Log in with email and password.

        Raises:
            InvalidCredentialsError: Unknown email, wrong password or
                deleted account
            PasswordlessAccountError: Account never set a password
        """
        user = await self._users.find_by_email(normalize_email(email))
        if user is None or user.is_deleted:
            raise InvalidCredentialsError()
        if not user.has_password():
            raise PasswordlessAccountError()
        if not self._users.match_password(user, password.strip()):
            raise InvalidCredentialsError()

        logger.info(f"User {user.id} logged in via password")
        return await self._to_auth_result(user)

    async def login_with_external_token(self, id_token: str) -> AuthResult:
        """
        Log in (or sign up) with a Google identity token.

        Raises:
            InvalidExternalTokenError: Verification failed or no email claim
        """
        identity = await self._identity_verifier.verify(id_token)
        if not identity.email:
            raise InvalidExternalTokenError("No email in identity token")

        email = normalize_email(identity.email)
        user = await self._users.find_by_email(email)
        if user is None:
            user = await self._users.create(
                UserCreate(
                    name=identity.name or email.split("@")[0],
                    email=email,
                    avatar=identity.picture,
                    role=UserRole.USER,
                )
            )
            logger.info(f"Registered user {user.id} via external identity")
        self._ensure_active(user)

        logger.info(f"User {user.id} logged in via external identity")
        return await self._to_auth_result(user)

    async def send_otp(self, email: str) -> None:
        """Generate a login code, store it and email it. Overwrites any live code."""
        normalized = normalize_email(email)
        otp = generate_otp()
        ttl = self._settings.otp_ttl_seconds
        await self._otp_store.set(otp_key(normalized), otp, ttl)

        minutes = ttl // 60
        await self._message_sender.send(
            to=normalized,
            subject=OTP_EMAIL_SUBJECT,
            text=f"Your OTP is: {otp}. It expires in {minutes} minutes.",
            html=(
                f"<h2>Your OTP: <strong>{otp}</strong></h2>"
                f"<p>Expires in {minutes} minutes.</p>"
            ),
        )
        logger.info("Sent login code")

    async def login_with_otp(
        self,
        email: str,
        otp: str,
        password: Optional[str] = None,
    ) -> AuthResult:
        """
        Log in (or sign up) with an emailed one-time code.

        Raises:
            InvalidOrExpiredCodeError: No live code or a wrong code
            PasswordRequiredError: The email is new and no password was given
        """
        normalized = normalize_email(email)
        await self._consume_otp(normalized, otp)

        user = await self._users.find_by_email(normalized)
        if user is None:
            if password is None:
                raise PasswordRequiredError()
            user = await self._users.create(
                UserCreate(
                    name=normalized.split("@")[0],
                    email=normalized,
                    password=password,
                    role=UserRole.USER,
                )
            )
            logger.info(f"Registered user {user.id} via OTP")
        self._ensure_active(user)

        logger.info(f"User {user.id} logged in via OTP")
        return await self._to_auth_result(user)

    async def login_with_phone_token(self, id_token: str, phone: str) -> AuthResult:
        """
        Log in (or sign up) with a phone-bound identity token.

        Raises:
            InvalidExternalTokenError: Verification failed
            PhoneMismatchError: The token's phone differs from the supplied one
        """
        identity = await self._identity_verifier.verify(id_token)
        if identity.phone_number != phone:
            raise PhoneMismatchError()

        user = await self._users.find_by_phone(phone)
        if user is None:
            user = await self._users.create(
                UserCreate(
                    name=f"User {phone[-4:]}",
                    phone=phone,
                    role=UserRole.USER,
                )
            )
            logger.info(f"Registered user {user.id} via phone")
        self._ensure_active(user)

        logger.info(f"User {user.id} logged in via phone")
        return await self._to_auth_result(user)

    # -------------------------------------------------------------------------
    # Password management
    # -------------------------------------------------------------------------

    async def reset_password(self, email: str, otp: str, new_password: str) -> AuthResult:
        """
        Set a new password after proving control of the email.

        Raises:
            InvalidOrExpiredCodeError: No live code or a wrong code
            UserNotFoundError: No account has this email
            AccountDeletedError: The account was soft-deleted
        """
        normalized = normalize_email(email)
        await self._consume_otp(normalized, otp)

        user = await self._users.find_by_email(normalized)
        if user is None:
            raise UserNotFoundError()
        self._ensure_active(user)

        await self._users.update_password(user.id, new_password)
        logger.info(f"Password reset for user {user.id}")
        return await self._to_auth_result(user)

    async def change_password(
        self,
        user_id: str,
        current_password: str,
        new_password: str,
    ) -> None:
        """
        Change the password of a logged-in user.

        Raises:
            UserNotFoundError: Missing user or an account without a password
            InvalidCredentialsError: The current password does not match
        """
        user = await self._users.find_by_id(user_id)
        if user is None or not user.has_password():
            raise UserNotFoundError(user_id)
        if not self._users.match_password(user, current_password):
            raise InvalidCredentialsError(
                "Current password is incorrect", code="INCORRECT_PASSWORD"
            )

        await self._users.update_password(user_id, new_password)
        logger.info(f"Password changed for user {user_id}")

    async def delete_account(self, user_id: str, password: str) -> None:
        """
        Soft-delete the caller's own account and revoke all its sessions.

        Raises:
            UserNotFoundError: The user does not exist or is already deleted
            InvalidCredentialsError: The password does not match
        """
        user = await self._users.find_by_id(user_id)
        if user is None or user.is_deleted:
            raise UserNotFoundError(user_id)
        if not self._users.match_password(user, password):
            raise InvalidCredentialsError("Password is incorrect", code="INCORRECT_PASSWORD")

        user.is_deleted = True
        user.deleted_at = utc_now()
        await self._users.save(user)
        revoked = await self._refresh_tokens.revoke_all_for_user(user_id)
        logger.info(f"Deleted account {user_id}, revoked {revoked} refresh tokens")

    async def check_email_exists(self, email: str) -> bool:
        return await self._users.find_by_email(normalize_email(email)) is not None

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    async def refresh(self, refresh_token: str) -> TokenPair:
        """
        Rotate a refresh token: revoke the presented one, issue a new pair.

        Raises:
            MissingTokenError: No token presented
            RefreshTokenNotFoundError: Unknown token
            RefreshTokenReusedError: Already rotated or revoked, including
                losing a concurrent rotation race
            RefreshTokenExpiredError: Past its expiry
            AccountDeletedError: The owner was deleted after the token was issued
        """
        if not refresh_token:
            raise MissingTokenError("Refresh token is required")

        record = await self._refresh_tokens.lookup(hash_token(refresh_token))
        if record is None:
            raise RefreshTokenNotFoundError()
        if record.revoked:
            logger.warning(f"Refresh token reuse detected for user {record.user_id}")
            raise RefreshTokenReusedError()
        if record.is_expired():
            raise RefreshTokenExpiredError()

        owner = await self._users.find_by_id(record.user_id)
        if owner is None or owner.is_deleted:
            await self._refresh_tokens.revoke(record.id)
            raise AccountDeletedError(record.user_id)

        if not await self._refresh_tokens.revoke(record.id):
            logger.warning(f"Lost refresh rotation race for user {record.user_id}")
            raise RefreshTokenReusedError()

        tokens = await self._issuer.issue_tokens(record.user_id)
        logger.info(f"Rotated refresh token for user {record.user_id}")
        return tokens

    async def logout(self, refresh_token: Optional[str] = None) -> None:
        """Revoke the presented refresh token. Unknown or revoked tokens are a no-op."""
        if not refresh_token:
            return

        record = await self._refresh_tokens.lookup(hash_token(refresh_token))
        if record is None or record.revoked:
            return

        if await self._refresh_tokens.revoke(record.id):
            logger.info(f"User {record.user_id} logged out")

    async def authenticate(self, access_token: str) -> User:
        """
        Resolve a bearer access token to an active user record.

        Raises:
            MissingTokenError, ExpiredTokenError, InvalidTokenError: Bad token
            AccountDeletedError: The account was soft-deleted
        """
        claims = self._issuer.decode_access_token(access_token)

        user = await self._users.find_by_id(claims.sub)
        if user is None:
            raise InvalidTokenError("User not found")
        self._ensure_active(user)
        return user

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _consume_otp(self, email: str, otp: str) -> None:
        key = otp_key(email)
        stored = await self._otp_store.get(key)
        if stored is None or stored != otp:
            raise InvalidOrExpiredCodeError()
        await self._otp_store.delete(key)

    def _ensure_active(self, user: User) -> None:
        if user.is_deleted:
            raise AccountDeletedError(user.id)

    async def _to_auth_result(self, user: User) -> AuthResult:
        tokens = await self._issuer.issue_tokens(user.id)
        return AuthResult(
            user=AuthUser.from_user(user, tokens.access_token),
            refresh_token=tokens.refresh_token,
        )


def build_auth_service(
    settings: Optional[Settings] = None,
    users: Optional[IUserRepository] = None,
    refresh_tokens: Optional[IRefreshTokenRepository] = None,
) -> AuthService:
    """Wire an AuthService against Supabase, Redis, Firebase and SMTP."""
    settings = settings or get_settings()
    db = get_supabase_client()
    return AuthService(
        users=users or UserRepository(db, bcrypt_rounds=settings.bcrypt_rounds),
        refresh_tokens=refresh_tokens or RefreshTokenRepository(db),
        otp_store=RedisOtpStore(get_redis_client()),
        identity_verifier=FirebaseTokenVerifier(settings.firebase_project_id),
        message_sender=SmtpMessageSender.from_settings(settings),
        settings=settings,
    )

