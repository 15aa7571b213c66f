import asyncio

import pytest
import pytest_asyncio

from modules.auth.otp import otp_key
from modules.auth.permissions import UserRole
from modules.auth.tokens import hash_token
from modules.auth.exceptions import (
    AccountDeletedError,
    DuplicateIdentityError,
    ExpiredTokenError,
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

from fakes import create_test_token, make_user

PASSWORD = "Secret#123"


class TestRegisterAndLogin:
    @pytest.mark.asyncio
    async def test_register_issues_tokens(self, auth_service, user_repo, token_ledger):
        """Registration should create the user and write one ledger record."""
        result = await auth_service.register("  Ana  ", "Ana@Example.com", PASSWORD)

        assert result.user.name == "Ana"
        assert result.user.email == "ana@example.com"
        assert result.user.role == UserRole.USER
        assert result.user.access_token

        records = token_ledger.for_user(result.user.id)
        assert len(records) == 1
        assert records[0].token_hash == hash_token(result.refresh_token)

        stored = user_repo.get(result.user.id)
        assert stored.password_hash != PASSWORD

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, auth_service, user_repo):
        user_repo.add(make_user(email="ana@example.com"))
        with pytest.raises(DuplicateIdentityError):
            await auth_service.register("Ana", "ANA@example.com", PASSWORD)

    @pytest.mark.asyncio
    async def test_login(self, auth_service, user_repo):
        user = user_repo.add(make_user(email="ana@example.com", password=PASSWORD))

        result = await auth_service.login("Ana@Example.com", PASSWORD)

        assert result.user.id == user.id
        payload = auth_service.token_issuer.decode_access_token(result.user.access_token)
        assert payload.sub == user.id

    @pytest.mark.asyncio
    async def test_login_trims_password(self, auth_service, user_repo):
        user_repo.add(make_user(email="ana@example.com", password=PASSWORD))
        result = await auth_service.login("ana@example.com", f" {PASSWORD} ")
        assert result.user.email == "ana@example.com"

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, auth_service):
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login("nobody@example.com", PASSWORD)

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, auth_service, user_repo, token_ledger):
        user = user_repo.add(make_user(email="ana@example.com", password=PASSWORD))
        with pytest.raises(InvalidCredentialsError) as exc_info:
            await auth_service.login("ana@example.com", "Wrong#123")
        assert exc_info.value.code == "INVALID_CREDENTIALS"
        assert token_ledger.for_user(user.id) == []

    @pytest.mark.asyncio
    async def test_login_passwordless_account(self, auth_service, user_repo):
        """Accounts without a password are told to use another method."""
        user_repo.add(make_user(email="ana@example.com", password=None))
        with pytest.raises(PasswordlessAccountError) as exc_info:
            await auth_service.login("ana@example.com", PASSWORD)
        assert "passwordless" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_login_deleted_account(self, auth_service, user_repo):
        user_repo.add(make_user(email="ana@example.com", password=PASSWORD, is_deleted=True))
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login("ana@example.com", PASSWORD)

    @pytest.mark.asyncio
    async def test_login_deleted_passwordless_account(self, auth_service, user_repo):
        """A deleted account never reveals how it used to sign in."""
        user_repo.add(make_user(email="ana@example.com", password=None, is_deleted=True))
        with pytest.raises(InvalidCredentialsError) as exc_info:
            await auth_service.login("ana@example.com", PASSWORD)
        assert exc_info.value.code == "INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_register_then_login_with_other_email_case(self, auth_service, user_repo):
        result = await auth_service.register("Ann", "Ann@Test.com", "Sup3r$ecret")

        assert user_repo.get(result.user.id).email == "ann@test.com"
        login = await auth_service.login("ANN@TEST.COM", "Sup3r$ecret")
        assert login.user.id == result.user.id

    @pytest.mark.asyncio
    async def test_check_email_exists(self, auth_service, user_repo):
        user_repo.add(make_user(email="ana@example.com"))
        assert await auth_service.check_email_exists("ANA@example.com")
        assert not await auth_service.check_email_exists("bob@example.com")


class TestExternalLogin:
    @pytest.mark.asyncio
    async def test_google_signup(self, auth_service, identity_verifier, user_repo):
        """A first Google login should create a passwordless user."""
        identity_verifier.register(
            "google-token",
            email="Ana@Example.com",
            name="Ana Maria",
            picture="https://example.com/ana.png",
        )

        result = await auth_service.login_with_external_token("google-token")

        stored = user_repo.get(result.user.id)
        assert stored.email == "ana@example.com"
        assert stored.name == "Ana Maria"
        assert stored.avatar == "https://example.com/ana.png"
        assert not stored.has_password()

    @pytest.mark.asyncio
    async def test_google_login_existing_user(self, auth_service, identity_verifier, user_repo):
        user = user_repo.add(make_user(email="ana@example.com", password=PASSWORD))
        identity_verifier.register("google-token", email="ana@example.com")

        result = await auth_service.login_with_external_token("google-token")

        assert result.user.id == user.id
        assert len(user_repo.users) == 1

    @pytest.mark.asyncio
    async def test_google_name_defaults_to_local_part(self, auth_service, identity_verifier):
        identity_verifier.register("google-token", email="ana.maria@example.com")
        result = await auth_service.login_with_external_token("google-token")
        assert result.user.name == "ana.maria"

    @pytest.mark.asyncio
    async def test_google_token_without_email(self, auth_service, identity_verifier):
        identity_verifier.register("google-token", phone_number="+15550001111")
        with pytest.raises(InvalidExternalTokenError):
            await auth_service.login_with_external_token("google-token")

    @pytest.mark.asyncio
    async def test_google_rejected_token(self, auth_service):
        with pytest.raises(InvalidExternalTokenError):
            await auth_service.login_with_external_token("forged-token")

    @pytest.mark.asyncio
    async def test_google_deleted_account(self, auth_service, identity_verifier, user_repo):
        user_repo.add(make_user(email="ana@example.com", is_deleted=True))
        identity_verifier.register("google-token", email="ana@example.com")
        with pytest.raises(AccountDeletedError):
            await auth_service.login_with_external_token("google-token")

    @pytest.mark.asyncio
    async def test_phone_signup(self, auth_service, identity_verifier, user_repo):
        identity_verifier.register("phone-token", phone_number="+15550001234")

        result = await auth_service.login_with_phone_token("phone-token", "+15550001234")

        assert result.user.phone == "+15550001234"
        assert result.user.name == "User 1234"
        assert result.user.email is None
        assert len(user_repo.users) == 1

    @pytest.mark.asyncio
    async def test_phone_login_existing_user(self, auth_service, identity_verifier, user_repo):
        user = user_repo.add(make_user(email=None, phone="+15550001234"))
        identity_verifier.register("phone-token", phone_number="+15550001234")

        result = await auth_service.login_with_phone_token("phone-token", "+15550001234")

        assert result.user.id == user.id

    @pytest.mark.asyncio
    async def test_phone_mismatch(self, auth_service, identity_verifier, user_repo):
        """A token bound to another number must not log in."""
        identity_verifier.register("phone-token", phone_number="+15550009999")
        with pytest.raises(PhoneMismatchError):
            await auth_service.login_with_phone_token("phone-token", "+15550001234")
        assert user_repo.users == {}


class TestOtp:
    @pytest.mark.asyncio
    async def test_send_otp(self, auth_service, otp_store, message_sender):
        """The code should be stored with a TTL and emailed."""
        await auth_service.send_otp("Ana@Example.com")

        key = otp_key("ana@example.com")
        otp = otp_store.values[key]
        assert len(otp) == 6 and otp.isdigit()
        assert otp_store.ttls[key] == 600

        assert len(message_sender.sent) == 1
        message = message_sender.sent[0]
        assert message["to"] == "ana@example.com"
        assert message["subject"] == "Your Login Code"
        assert otp in message["text"]
        assert "10 minutes" in message["text"]
        assert otp in message["html"]

    @pytest.mark.asyncio
    async def test_send_otp_overwrites_previous_code(self, auth_service, otp_store):
        otp_store.values[otp_key("ana@example.com")] = "000000"
        await auth_service.send_otp("ana@example.com")
        assert otp_store.values[otp_key("ana@example.com")] != "000000"
        assert len(otp_store.values) == 1

    @pytest.mark.asyncio
    async def test_otp_login_existing_user(self, auth_service, otp_store, user_repo):
        user = user_repo.add(make_user(email="ana@example.com"))
        await otp_store.set(otp_key("ana@example.com"), "123456", 600)

        result = await auth_service.login_with_otp("ana@example.com", "123456")

        assert result.user.id == user.id
        assert otp_key("ana@example.com") not in otp_store.values

    @pytest.mark.asyncio
    async def test_otp_is_single_use(self, auth_service, otp_store, user_repo):
        """A consumed code cannot be verified again."""
        user_repo.add(make_user(email="ana@example.com"))
        await otp_store.set(otp_key("ana@example.com"), "123456", 600)

        await auth_service.login_with_otp("ana@example.com", "123456")
        with pytest.raises(InvalidOrExpiredCodeError):
            await auth_service.login_with_otp("ana@example.com", "123456")

    @pytest.mark.asyncio
    async def test_otp_wrong_code(self, auth_service, otp_store, user_repo):
        user_repo.add(make_user(email="ana@example.com"))
        await otp_store.set(otp_key("ana@example.com"), "123456", 600)

        with pytest.raises(InvalidOrExpiredCodeError):
            await auth_service.login_with_otp("ana@example.com", "654321")
        # A wrong guess does not burn the live code
        assert otp_store.values[otp_key("ana@example.com")] == "123456"

    @pytest.mark.asyncio
    async def test_otp_expired_code(self, auth_service, otp_store, user_repo):
        user_repo.add(make_user(email="ana@example.com"))
        await otp_store.set(otp_key("ana@example.com"), "123456", 600)
        otp_store.expire(otp_key("ana@example.com"))

        with pytest.raises(InvalidOrExpiredCodeError):
            await auth_service.login_with_otp("ana@example.com", "123456")

    @pytest.mark.asyncio
    async def test_otp_signup_requires_password(self, auth_service, otp_store, user_repo):
        await otp_store.set(otp_key("new@example.com"), "123456", 600)
        with pytest.raises(PasswordRequiredError):
            await auth_service.login_with_otp("new@example.com", "123456")
        assert user_repo.users == {}

    @pytest.mark.asyncio
    async def test_otp_signup_with_password(self, auth_service, otp_store, user_repo):
        await otp_store.set(otp_key("new.user@example.com"), "123456", 600)

        result = await auth_service.login_with_otp("new.user@example.com", "123456", PASSWORD)

        stored = user_repo.get(result.user.id)
        assert stored.name == "new.user"
        assert user_repo.match_password(stored, PASSWORD)

    @pytest.mark.asyncio
    async def test_otp_deleted_account(self, auth_service, otp_store, user_repo):
        user_repo.add(make_user(email="ana@example.com", is_deleted=True))
        await otp_store.set(otp_key("ana@example.com"), "123456", 600)
        with pytest.raises(AccountDeletedError):
            await auth_service.login_with_otp("ana@example.com", "123456")


class TestPasswordManagement:
    @pytest.mark.asyncio
    async def test_reset_password(self, auth_service, otp_store, user_repo):
        user = user_repo.add(make_user(email="ana@example.com", password=PASSWORD))
        await otp_store.set(otp_key("ana@example.com"), "123456", 600)

        result = await auth_service.reset_password("ana@example.com", "123456", "Brand#New99")

        assert result.user.id == user.id
        await auth_service.login("ana@example.com", "Brand#New99")
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login("ana@example.com", PASSWORD)

    @pytest.mark.asyncio
    async def test_reset_password_unknown_user(self, auth_service, otp_store):
        await otp_store.set(otp_key("nobody@example.com"), "123456", 600)
        with pytest.raises(UserNotFoundError):
            await auth_service.reset_password("nobody@example.com", "123456", "Brand#New99")

    @pytest.mark.asyncio
    async def test_reset_password_bad_code(self, auth_service, user_repo):
        user = user_repo.add(make_user(email="ana@example.com", password=PASSWORD))
        with pytest.raises(InvalidOrExpiredCodeError):
            await auth_service.reset_password("ana@example.com", "123456", "Brand#New99")
        assert user.id not in user_repo.password_updates

    @pytest.mark.asyncio
    async def test_reset_password_deleted_account(self, auth_service, otp_store, user_repo, token_ledger):
        """A deleted account cannot reset its password or keep its sessions alive."""
        user_repo.add(make_user(email="ana@example.com", password=PASSWORD))
        session = await auth_service.login("ana@example.com", PASSWORD)
        await auth_service.delete_account(session.user.id, PASSWORD)
        await auth_service.send_otp("ana@example.com")
        code = otp_store.values[otp_key("ana@example.com")]

        with pytest.raises(AccountDeletedError):
            await auth_service.reset_password("ana@example.com", code, "Brand#New99")

        assert session.user.id not in user_repo.password_updates
        assert len(token_ledger.for_user(session.user.id)) == 1
        with pytest.raises(RefreshTokenReusedError):
            await auth_service.refresh(session.refresh_token)

    @pytest.mark.asyncio
    async def test_change_password(self, auth_service, user_repo):
        user = user_repo.add(make_user(email="ana@example.com", password=PASSWORD))

        await auth_service.change_password(user.id, PASSWORD, "Brand#New99")

        assert user_repo.match_password(user_repo.get(user.id), "Brand#New99")

    @pytest.mark.asyncio
    async def test_change_password_wrong_current(self, auth_service, user_repo):
        user = user_repo.add(make_user(email="ana@example.com", password=PASSWORD))
        with pytest.raises(InvalidCredentialsError) as exc_info:
            await auth_service.change_password(user.id, "Wrong#123", "Brand#New99")
        assert exc_info.value.code == "INCORRECT_PASSWORD"

    @pytest.mark.asyncio
    async def test_change_password_passwordless_account(self, auth_service, user_repo):
        user = user_repo.add(make_user(email="ana@example.com", password=None))
        with pytest.raises(UserNotFoundError):
            await auth_service.change_password(user.id, "", "Brand#New99")


class TestDeleteAccount:
    @pytest.mark.asyncio
    async def test_delete_account(self, auth_service, user_repo, token_ledger):
        """Deletion should soft-delete the user and revoke every session."""
        user_repo.add(make_user(email="ana@example.com", password=PASSWORD))
        first = await auth_service.login("ana@example.com", PASSWORD)
        second = await auth_service.login("ana@example.com", PASSWORD)

        await auth_service.delete_account(first.user.id, PASSWORD)

        stored = user_repo.get(first.user.id)
        assert stored.is_deleted
        assert stored.deleted_at is not None
        assert all(r.revoked for r in token_ledger.for_user(first.user.id))

        with pytest.raises(RefreshTokenReusedError):
            await auth_service.refresh(second.refresh_token)
        with pytest.raises(AccountDeletedError):
            await auth_service.authenticate(first.user.access_token)

    @pytest.mark.asyncio
    async def test_delete_account_wrong_password(self, auth_service, user_repo):
        user = user_repo.add(make_user(email="ana@example.com", password=PASSWORD))
        with pytest.raises(InvalidCredentialsError):
            await auth_service.delete_account(user.id, "Wrong#123")
        assert not user_repo.get(user.id).is_deleted

    @pytest.mark.asyncio
    async def test_delete_account_twice(self, auth_service, user_repo):
        user = user_repo.add(make_user(email="ana@example.com", password=PASSWORD, is_deleted=True))
        with pytest.raises(UserNotFoundError):
            await auth_service.delete_account(user.id, PASSWORD)


class TestRefreshRotation:
    @pytest_asyncio.fixture
    async def session(self, auth_service, user_repo):
        user_repo.add(make_user(email="ana@example.com", password=PASSWORD))
        return await auth_service.login("ana@example.com", PASSWORD)

    @pytest.mark.asyncio
    async def test_refresh_rotates(self, auth_service, token_ledger, session):
        """The old token is revoked and a new record is written."""
        pair = await auth_service.refresh(session.refresh_token)

        assert pair.refresh_token != session.refresh_token
        old = await token_ledger.lookup(hash_token(session.refresh_token))
        new = await token_ledger.lookup(hash_token(pair.refresh_token))
        assert old.revoked is True
        assert new.revoked is False
        assert auth_service.token_issuer.decode_access_token(pair.access_token).sub == session.user.id

    @pytest.mark.asyncio
    async def test_refresh_replay_is_reuse(self, auth_service, session):
        await auth_service.refresh(session.refresh_token)
        with pytest.raises(RefreshTokenReusedError):
            await auth_service.refresh(session.refresh_token)

    @pytest.mark.asyncio
    async def test_refresh_chain(self, auth_service, session):
        """Each rotated token works exactly once."""
        token = session.refresh_token
        for _ in range(3):
            token = (await auth_service.refresh(token)).refresh_token
        await auth_service.refresh(token)

    @pytest.mark.asyncio
    async def test_refresh_unknown_token(self, auth_service):
        with pytest.raises(RefreshTokenNotFoundError):
            await auth_service.refresh("not-a-known-token")

    @pytest.mark.asyncio
    async def test_refresh_missing_token(self, auth_service):
        with pytest.raises(MissingTokenError):
            await auth_service.refresh("")

    @pytest.mark.asyncio
    async def test_refresh_expired_token(self, auth_service, token_ledger, session):
        record = await token_ledger.lookup(hash_token(session.refresh_token))
        token_ledger.expire(record.id)

        with pytest.raises(RefreshTokenExpiredError):
            await auth_service.refresh(session.refresh_token)

    @pytest.mark.asyncio
    async def test_refresh_for_deleted_owner(self, auth_service, user_repo, token_ledger, session):
        """A live token whose owner was deleted is revoked, not rotated."""
        user_repo.get(session.user.id).is_deleted = True

        with pytest.raises(AccountDeletedError):
            await auth_service.refresh(session.refresh_token)

        records = token_ledger.for_user(session.user.id)
        assert len(records) == 1
        assert records[0].revoked

    @pytest.mark.asyncio
    async def test_refresh_for_missing_owner(self, auth_service, user_repo, session):
        del user_repo.users[session.user.id]
        with pytest.raises(AccountDeletedError):
            await auth_service.refresh(session.refresh_token)

    @pytest.mark.asyncio
    async def test_concurrent_refresh_has_one_winner(self, auth_service, session):
        """Two simultaneous rotations of one token: one succeeds, one is reuse."""
        results = await asyncio.gather(
            auth_service.refresh(session.refresh_token),
            auth_service.refresh(session.refresh_token),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], RefreshTokenReusedError)


class TestLogout:
    @pytest.mark.asyncio
    async def test_logout_revokes(self, auth_service, user_repo, token_ledger):
        user_repo.add(make_user(email="ana@example.com", password=PASSWORD))
        session = await auth_service.login("ana@example.com", PASSWORD)

        await auth_service.logout(session.refresh_token)

        record = await token_ledger.lookup(hash_token(session.refresh_token))
        assert record.revoked
        with pytest.raises(RefreshTokenReusedError):
            await auth_service.refresh(session.refresh_token)

    @pytest.mark.asyncio
    async def test_logout_is_idempotent(self, auth_service, user_repo):
        user_repo.add(make_user(email="ana@example.com", password=PASSWORD))
        session = await auth_service.login("ana@example.com", PASSWORD)

        await auth_service.logout(session.refresh_token)
        await auth_service.logout(session.refresh_token)

    @pytest.mark.asyncio
    async def test_logout_without_token(self, auth_service):
        await auth_service.logout(None)
        await auth_service.logout("")
        await auth_service.logout("unknown-token")


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_authenticate(self, auth_service, user_repo):
        user = user_repo.add(make_user(email="ana@example.com"))
        token = auth_service.token_issuer.create_access_token(user.id)

        resolved = await auth_service.authenticate(token)

        assert resolved.id == user.id

    @pytest.mark.asyncio
    async def test_authenticate_expired(self, auth_service, user_repo):
        user = user_repo.add(make_user(email="ana@example.com"))
        with pytest.raises(ExpiredTokenError):
            await auth_service.authenticate(create_test_token(user.id, expired=True))

    @pytest.mark.asyncio
    async def test_authenticate_unknown_user(self, auth_service):
        with pytest.raises(InvalidTokenError):
            await auth_service.authenticate(create_test_token("ghost"))

    @pytest.mark.asyncio
    async def test_authenticate_missing(self, auth_service):
        with pytest.raises(MissingTokenError):
            await auth_service.authenticate("")
