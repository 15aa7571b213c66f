"""
User management service implementation.

Lets users edit their own profile and lets admins list, promote, demote,
soft-delete and restore accounts, while guaranteeing that nobody changes
or deletes themselves through the admin panel and that the system always
keeps at least one admin and one super admin.
"""

import logging
import math
from typing import Optional

from modules.auth.interfaces import IRefreshTokenRepository
from modules.auth.models import User, normalize_email, utc_now
from modules.auth.permissions import AdminLevel, UserRole, default_permissions, parse_admin_level
from modules.auth.exceptions import DuplicateIdentityError, SuperAdminRequiredError, UserNotFoundError
from modules.admins.exceptions import LastSuperAdminDemotionError

from .interfaces import IUserManagementService, IUserStore
from .models import ProfileUpdate, RoleUpdate, UserFilters, UserListResponse, UserView
from .exceptions import (
    ConflictingDeletedFiltersError,
    LastAdminError,
    SelfDeletionError,
    SelfRoleChangeError,
    UserAlreadyDeletedError,
    UserNotDeletedError,
)

logger = logging.getLogger(__name__)


class UserManagementService(IUserManagementService):
    """Implementation of the user management service."""

    def __init__(self, store: IUserStore, refresh_tokens: IRefreshTokenRepository):
        self._store = store
        self._refresh_tokens = refresh_tokens

    # -------------------------------------------------------------------------
    # Own profile
    # -------------------------------------------------------------------------

    async def update_profile(self, user_id: str, update: ProfileUpdate) -> UserView:
        """
        Apply the provided profile fields. The email is normalized the same
        way registration does, so the account stays reachable by login.
        """
        user = await self._store.find_by_id(user_id)
        if user is None or user.is_deleted:
            raise UserNotFoundError(user_id)

        if update.name is not None:
            user.name = update.name.strip()
        if update.email is not None:
            email = normalize_email(update.email)
            if email != user.email:
                owner = await self._store.find_by_email(email)
                if owner is not None and owner.id != user_id:
                    raise DuplicateIdentityError("email")
            user.email = email
        if update.phone is not None:
            if update.phone != user.phone:
                owner = await self._store.find_by_phone(update.phone)
                if owner is not None and owner.id != user_id:
                    raise DuplicateIdentityError("phone")
            user.phone = update.phone
        if update.avatar is not None:
            user.avatar = update.avatar

        saved = await self._store.save(user)
        logger.info(f"User {user_id} updated their profile")
        return UserView.from_user(saved)

    # -------------------------------------------------------------------------
    # Admin operations
    # -------------------------------------------------------------------------

    async def list_users(
        self,
        filters: Optional[UserFilters] = None,
        page: int = 1,
        limit: int = 10,
    ) -> UserListResponse:
        filters = filters or UserFilters()
        if filters.include_deleted and filters.only_deleted:
            raise ConflictingDeletedFiltersError()

        users, total = await self._store.list_users(
            role=filters.role,
            search=filters.search,
            include_deleted=filters.include_deleted,
            only_deleted=filters.only_deleted,
            has_phone=filters.has_phone,
            created_from=filters.created_from,
            created_to=filters.created_to,
            page=page,
            limit=limit,
        )
        return UserListResponse(
            users=[UserView.from_user(u) for u in users],
            total=total,
            page=page,
            total_pages=math.ceil(total / limit) if limit else 0,
        )

    async def get_user(self, user_id: str) -> UserView:
        user = await self._store.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return UserView.from_user(user)

    async def update_user_role(
        self,
        target_id: str,
        acting: User,
        update: RoleUpdate,
    ) -> UserView:
        """
        Promote a user to admin or demote an admin to user.

        Promotion sets the requested level (MODERATOR when omitted) and that
        level's default permissions. Demotion clears both. Only super admins
        may change another admin's role or hand out SUPER_ADMIN.
        """
        if target_id == acting.id:
            raise SelfRoleChangeError()

        level = None
        if update.role == UserRole.ADMIN:
            level = (
                parse_admin_level(update.admin_level)
                if update.admin_level is not None
                else AdminLevel.MODERATOR
            )

        target = await self._store.find_by_id(target_id)
        if target is None or target.is_deleted:
            raise UserNotFoundError(target_id)

        if (target.is_admin() or level == AdminLevel.SUPER_ADMIN) and not acting.is_super_admin():
            raise SuperAdminRequiredError()

        if target.is_admin() and update.role == UserRole.USER:
            await self._ensure_not_last_admin("demote")
        if target.is_super_admin() and level != AdminLevel.SUPER_ADMIN:
            if await self._store.count_super_admins() < 2:
                raise LastSuperAdminDemotionError()

        if update.role == UserRole.ADMIN:
            if target.admin_level != level:
                target.permissions = default_permissions(level)
            target.admin_level = level
            target.role = UserRole.ADMIN
        else:
            target.role = UserRole.USER
            target.admin_level = None
            target.permissions = []

        saved = await self._store.save(target)
        logger.info(
            f"Admin {acting.id} set role of user {target_id} to "
            f"{saved.role.value} (level={saved.admin_level})"
        )
        return UserView.from_user(saved)

    async def delete_user(self, target_id: str, acting: User) -> None:
        target = await self._store.find_by_id(target_id)
        if target is None:
            raise UserNotFoundError(target_id)
        if target.is_deleted:
            raise UserAlreadyDeletedError(target_id)
        if target_id == acting.id:
            raise SelfDeletionError()
        if target.is_admin():
            if not acting.is_super_admin():
                raise SuperAdminRequiredError()
            await self._ensure_not_last_admin("delete")
            if target.is_super_admin() and await self._store.count_super_admins() < 2:
                raise LastSuperAdminDemotionError()

        target.is_deleted = True
        target.deleted_at = utc_now()
        await self._store.save(target)
        revoked = await self._refresh_tokens.revoke_all_for_user(target_id)
        logger.info(
            f"Admin {acting.id} deleted user {target_id}, revoked {revoked} refresh tokens"
        )

    async def restore_user(self, target_id: str) -> UserView:
        target = await self._store.find_by_id(target_id)
        if target is None:
            raise UserNotFoundError(target_id)
        if not target.is_deleted:
            raise UserNotDeletedError(target_id)

        target.is_deleted = False
        target.deleted_at = None
        saved = await self._store.save(target)
        logger.info(f"Restored user {target_id}")
        return UserView.from_user(saved)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _ensure_not_last_admin(self, action: str) -> None:
        if await self._store.count_admins() <= 1:
            raise LastAdminError(action)
