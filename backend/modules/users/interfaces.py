"""
User management interfaces.

The API layer depends on IUserManagementService; the service reads and
writes accounts through IUserStore, which the auth UserRepository
satisfies, and revokes sessions through the auth refresh-token ledger.
"""

from datetime import datetime
from typing import Protocol, Optional, runtime_checkable

from modules.auth.models import User
from modules.auth.permissions import UserRole

from .models import ProfileUpdate, RoleUpdate, UserFilters, UserListResponse, UserView


@runtime_checkable
class IUserStore(Protocol):
    """Account queries over the users table."""

    async def find_by_id(self, user_id: str) -> Optional[User]:
        ...

    async def find_by_email(self, email: str) -> Optional[User]:
        ...

    async def find_by_phone(self, phone: str) -> Optional[User]:
        ...

    async def save(self, user: User) -> User:
        """
        Raises:
            DuplicateIdentityError: If the new email or phone is taken
        """
        ...

    async def list_users(
        self,
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
        include_deleted: bool = False,
        only_deleted: bool = False,
        has_phone: Optional[bool] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[User], int]:
        ...

    async def count_admins(self) -> int:
        """Count non-deleted admins of any level."""
        ...

    async def count_super_admins(self) -> int:
        ...


@runtime_checkable
class IUserManagementService(Protocol):
    """
    Interface for user management.

    Admin operations take the acting user so that self-targeting can be
    refused and super-admin-only changes checked. Callers are expected to
    have already checked the acting user's permissions.
    """

    async def update_profile(self, user_id: str, update: ProfileUpdate) -> UserView:
        """
        Raises:
            UserNotFoundError, DuplicateIdentityError
        """
        ...

    async def list_users(
        self,
        filters: Optional[UserFilters] = None,
        page: int = 1,
        limit: int = 10,
    ) -> UserListResponse:
        """
        Raises:
            ConflictingDeletedFiltersError: include_deleted with only_deleted
        """
        ...

    async def get_user(self, user_id: str) -> UserView:
        ...

    async def update_user_role(
        self,
        target_id: str,
        acting: User,
        update: RoleUpdate,
    ) -> UserView:
        """
        Promote a user to admin or demote an admin to user.

        Raises:
            SelfRoleChangeError, UserNotFoundError, LastAdminError,
            LastSuperAdminDemotionError, SuperAdminRequiredError,
            InvalidAdminLevelError
        """
        ...

    async def delete_user(self, target_id: str, acting: User) -> None:
        """
        Soft-delete an account and revoke its sessions.

        Raises:
            UserNotFoundError, UserAlreadyDeletedError, SelfDeletionError,
            LastAdminError, SuperAdminRequiredError
        """
        ...

    async def restore_user(self, target_id: str) -> UserView:
        """
        Raises:
            UserNotFoundError, UserNotDeletedError
        """
        ...
