"""
Service wiring for the API layer.

Routes depend on the auth, admin and user management service interfaces
through the functions at the bottom of this module; the container behind
them builds the Supabase, Redis, Firebase and SMTP backed implementations
on first use. Every service shares one UserRepository, the single owner of
the users table per process, and one refresh-token ledger.
"""

from typing import TYPE_CHECKING

from shared.config import Settings, get_settings

if TYPE_CHECKING:
    from modules.auth.interfaces import IAuthService
    from modules.auth.repository import RefreshTokenRepository, UserRepository
    from modules.admins.interfaces import IAdminService
    from modules.users.interfaces import IUserManagementService


class ServiceContainer:
    """
    Lazily built, process-wide service instances.

    Tests either call reset_container() or bypass the container entirely
    with app.dependency_overrides.
    """

    def __init__(self) -> None:
        self._user_repository: "UserRepository | None" = None
        self._refresh_token_repository: "RefreshTokenRepository | None" = None
        self._auth_service: "IAuthService | None" = None
        self._admin_service: "IAdminService | None" = None
        self._user_service: "IUserManagementService | None" = None

    @property
    def user_repository(self) -> "UserRepository":
        if self._user_repository is None:
            from modules.auth.repository import UserRepository
            from shared.database import get_supabase_client
            self._user_repository = UserRepository(
                get_supabase_client(),
                bcrypt_rounds=get_settings().bcrypt_rounds,
            )
        return self._user_repository

    @property
    def refresh_token_repository(self) -> "RefreshTokenRepository":
        if self._refresh_token_repository is None:
            from modules.auth.repository import RefreshTokenRepository
            from shared.database import get_supabase_client
            self._refresh_token_repository = RefreshTokenRepository(get_supabase_client())
        return self._refresh_token_repository

    @property
    def auth(self) -> "IAuthService":
        if self._auth_service is None:
            from modules.auth.service import build_auth_service
            self._auth_service = build_auth_service(
                settings=get_settings(),
                users=self.user_repository,
                refresh_tokens=self.refresh_token_repository,
            )
        return self._auth_service

    @property
    def admins(self) -> "IAdminService":
        if self._admin_service is None:
            from modules.admins.service import AdminService
            self._admin_service = AdminService(self.user_repository)
        return self._admin_service

    @property
    def users(self) -> "IUserManagementService":
        if self._user_service is None:
            from modules.users.service import UserManagementService
            self._user_service = UserManagementService(
                self.user_repository,
                self.refresh_token_repository,
            )
        return self._user_service

    def reset(self) -> None:
        """Drop every built service so the next access rebuilds it."""
        self._user_repository = None
        self._refresh_token_repository = None
        self._auth_service = None
        self._admin_service = None
        self._user_service = None


_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """Forget the container; the next get_container() starts from scratch."""
    global _container
    _container = None


# Route dependencies


def get_auth_service() -> "IAuthService":
    return get_container().auth


def get_admin_service() -> "IAdminService":
    return get_container().admins


def get_user_service() -> "IUserManagementService":
    return get_container().users


def get_app_settings() -> Settings:
    return get_settings()
