"""
Authentication and authorization dependencies.

Resolves the bearer access token to a live user record and provides the
admin/permission guards used by protected routes.
"""

from typing import Iterable, Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from modules.auth.interfaces import IAuthService
from modules.auth.models import User
from modules.auth.permissions import Permission
from modules.auth.exceptions import (
    AdminRequiredError,
    InsufficientPermissionsError,
    MissingTokenError,
    SuperAdminRequiredError,
)

from ..dependencies import get_auth_service

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: IAuthService = Depends(get_auth_service),
) -> User:
    """
    Dependency that requires authentication.

    Rejects missing, expired and tampered tokens as well as tokens whose
    user has since been soft-deleted.

    Usage:
        @router.get("/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    if credentials is None:
        raise MissingTokenError("Not authorized, no token")

    return await auth.authenticate(credentials.credentials)


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency that requires an admin account of any level."""
    if not user.is_admin():
        raise AdminRequiredError()
    return user


async def require_super_admin(user: User = Depends(require_admin)) -> User:
    """Dependency that requires a super admin."""
    if not user.is_super_admin():
        raise SuperAdminRequiredError()
    return user


def require_permission(permission: Permission):
    """
    Build a dependency that requires one specific permission.

    Usage:
        @router.get("/users", dependencies=[Depends(require_permission(Permission.VIEW_USERS))])
    """

    async def dependency(user: User = Depends(require_admin)) -> User:
        if not user.has_permission(permission):
            raise InsufficientPermissionsError([permission.value])
        return user

    return dependency


def require_any_permission(permissions: Iterable[Permission]):
    """Build a dependency that requires at least one of the given permissions."""
    required = list(permissions)

    async def dependency(user: User = Depends(require_admin)) -> User:
        if not user.has_any_permission(required):
            raise InsufficientPermissionsError([p.value for p in required])
        return user

    return dependency


def require_all_permissions(permissions: Iterable[Permission]):
    """Build a dependency that requires every one of the given permissions."""
    required = list(permissions)

    async def dependency(user: User = Depends(require_admin)) -> User:
        missing = [p.value for p in required if not user.has_permission(p)]
        if missing:
            raise InsufficientPermissionsError(missing)
        return user

    return dependency


# Type aliases for cleaner route definitions
RequireAuth = Depends(get_current_user)
RequireAdmin = Depends(require_admin)
RequireSuperAdmin = Depends(require_super_admin)
