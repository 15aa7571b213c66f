"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
The doubles themselves live in fakes.py so test modules can import them.
"""

import pytest

from api.dependencies import reset_container
from modules.auth.service import AuthService
from modules.users.service import UserManagementService
from shared.config import get_settings
from shared.database import reset_client_cache

from fakes import (
    InMemoryOtpStore,
    InMemoryRefreshTokenLedger,
    InMemoryUserRepository,
    RecordingMessageSender,
    StubIdentityVerifier,
    make_settings,
)


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached services and clients before and after each test."""
    reset_container()
    reset_client_cache()
    get_settings.cache_clear()
    yield
    reset_container()
    reset_client_cache()
    get_settings.cache_clear()


@pytest.fixture
def test_settings():
    """Settings with a known JWT secret and non-secure cookies."""
    return make_settings()


@pytest.fixture
def user_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def token_ledger() -> InMemoryRefreshTokenLedger:
    return InMemoryRefreshTokenLedger()


@pytest.fixture
def otp_store() -> InMemoryOtpStore:
    return InMemoryOtpStore()


@pytest.fixture
def identity_verifier() -> StubIdentityVerifier:
    return StubIdentityVerifier()


@pytest.fixture
def message_sender() -> RecordingMessageSender:
    return RecordingMessageSender()


@pytest.fixture
def auth_service(
    user_repo,
    token_ledger,
    otp_store,
    identity_verifier,
    message_sender,
    test_settings,
) -> AuthService:
    """Auth service wired to in-memory collaborators."""
    return AuthService(
        users=user_repo,
        refresh_tokens=token_ledger,
        otp_store=otp_store,
        identity_verifier=identity_verifier,
        message_sender=message_sender,
        settings=test_settings,
    )


@pytest.fixture
def user_service(user_repo, token_ledger) -> UserManagementService:
    """User management service sharing the auth doubles."""
    return UserManagementService(user_repo, token_ledger)
