"""
Admin management interfaces.

The API layer depends on IAdminService; the service reads and writes admin
records through IAdminStore, which the auth UserRepository satisfies.
"""

from typing import Protocol, Optional, Union, runtime_checkable

from modules.auth.models import User
from modules.auth.permissions import AdminLevel, Permission

from .models import AdminFilters, AdminListResponse, AdminPermissionsUpdate, AdminView


@runtime_checkable
class IAdminStore(Protocol):
    """Admin-facing queries over the users table."""

    async def find_by_id(self, user_id: str) -> Optional[User]:
        ...

    async def save(self, user: User) -> User:
        ...

    async def list_admins(
        self,
        admin_level: Optional[AdminLevel] = None,
        search: Optional[str] = None,
        include_deleted: bool = False,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[User], int]:
        ...

    async def get_admin_by_id(self, user_id: str) -> Optional[User]:
        ...

    async def count_super_admins(self) -> int:
        ...


@runtime_checkable
class IAdminService(Protocol):
    """
    Interface for admin management.

    Every mutating operation takes the acting admin's id so that
    self-modification can be refused. Callers are expected to have already
    checked that the acting user is a super admin.
    """

    async def list_admins(
        self,
        filters: Optional[AdminFilters] = None,
        page: int = 1,
        limit: int = 10,
    ) -> AdminListResponse:
        ...

    async def get_admin_by_id(self, admin_id: str) -> AdminView:
        """
        Raises:
            AdminNotFoundError: If there is no admin with this id
        """
        ...

    async def update_admin_permissions(
        self,
        target_id: str,
        acting_id: str,
        updates: AdminPermissionsUpdate,
    ) -> AdminView:
        """
        Change an admin's level and/or permission list.

        Raises:
            SelfModificationError, AdminNotFoundError, TargetNotAdminError,
            LastSuperAdminDemotionError, SuperAdminRestrictionError,
            InvalidAdminLevelError, InvalidPermissionError
        """
        ...

    async def grant_permission(
        self,
        target_id: str,
        acting_id: str,
        permission: Union[Permission, str],
    ) -> AdminView:
        ...

    async def revoke_permission(
        self,
        target_id: str,
        acting_id: str,
        permission: Union[Permission, str],
    ) -> AdminView:
        ...

    async def initialize_admin_permissions(self, admin: User) -> User:
        ...
