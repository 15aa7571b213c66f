"""Fixtures for the HTTP layer tests."""

import pytest
from fastapi.testclient import TestClient

from api import app
from api.dependencies import (
    get_admin_service,
    get_app_settings,
    get_auth_service,
    get_user_service,
)
from modules.admins.service import AdminService


@pytest.fixture
def client(auth_service, user_service, user_repo, test_settings):
    """TestClient with every service dependency pointed at the in-memory doubles."""
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    app.dependency_overrides[get_admin_service] = lambda: AdminService(user_repo)
    app.dependency_overrides[get_user_service] = lambda: user_service
    app.dependency_overrides[get_app_settings] = lambda: test_settings
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def bearer(auth_service):
    """Build an Authorization header for a user id."""

    def _bearer(user_id: str) -> dict[str, str]:
        token = auth_service.token_issuer.create_access_token(user_id)
        return {"Authorization": f"Bearer {token}"}

    return _bearer
