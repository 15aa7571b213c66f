"""
Admin management service implementation.

Lets super admins inspect admins and change their level and permissions,
while guaranteeing that nobody edits their own permissions and that the
system always keeps at least one super admin.
"""

import logging
import math
from typing import Optional, Union

from modules.auth.models import User
from modules.auth.permissions import (
    AdminLevel,
    Permission,
    default_permissions,
    parse_admin_level,
    parse_permission,
)

from .interfaces import IAdminService, IAdminStore
from .models import AdminFilters, AdminListResponse, AdminPermissionsUpdate, AdminView
from .exceptions import (
    AdminNotFoundError,
    AlreadyMaximalError,
    LastSuperAdminDemotionError,
    SelfModificationError,
    SuperAdminRestrictionError,
    TargetNotAdminError,
)

logger = logging.getLogger(__name__)


class AdminService(IAdminService):
    """Implementation of the admin management service."""

    def __init__(self, store: IAdminStore):
        self._store = store

    async def list_admins(
        self,
        filters: Optional[AdminFilters] = None,
        page: int = 1,
        limit: int = 10,
    ) -> AdminListResponse:
        filters = filters or AdminFilters()
        admins, total = await self._store.list_admins(
            admin_level=filters.admin_level,
            search=filters.search,
            include_deleted=filters.include_deleted,
            page=page,
            limit=limit,
        )
        return AdminListResponse(
            admins=[AdminView.from_user(a) for a in admins],
            total=total,
            page=page,
            total_pages=math.ceil(total / limit) if limit else 0,
        )

    async def get_admin_by_id(self, admin_id: str) -> AdminView:
        admin = await self._store.get_admin_by_id(admin_id)
        if admin is None:
            raise AdminNotFoundError(admin_id)
        return AdminView.from_user(admin)

    async def update_admin_permissions(
        self,
        target_id: str,
        acting_id: str,
        updates: AdminPermissionsUpdate,
    ) -> AdminView:
        """
        Change an admin's level and/or permission list.

        A level change without an explicit permission list resets the
        permissions to the new level's defaults.
        """
        level = parse_admin_level(updates.admin_level) if updates.admin_level is not None else None
        permissions = (
            self._parse_permissions(updates.permissions)
            if updates.permissions is not None
            else None
        )

        target = await self._load_target(target_id, acting_id)

        if (
            target.admin_level == AdminLevel.SUPER_ADMIN
            and level is not None
            and level != AdminLevel.SUPER_ADMIN
        ):
            if await self._store.count_super_admins() < 2:
                raise LastSuperAdminDemotionError()

        if level is not None:
            target.admin_level = level
            if permissions is None:
                target.permissions = default_permissions(level)

        if permissions is not None:
            if target.admin_level == AdminLevel.SUPER_ADMIN:
                raise SuperAdminRestrictionError()
            target.permissions = permissions

        saved = await self._store.save(target)
        logger.info(
            f"Admin {acting_id} updated admin {target_id}: "
            f"level={saved.admin_level}, permissions={len(saved.permissions)}"
        )
        return AdminView.from_user(saved)

    async def grant_permission(
        self,
        target_id: str,
        acting_id: str,
        permission: Union[Permission, str],
    ) -> AdminView:
        perm = parse_permission(permission)
        target = await self._load_target(target_id, acting_id)

        if target.admin_level == AdminLevel.SUPER_ADMIN:
            raise AlreadyMaximalError()

        if perm not in target.permissions:
            target.permissions = [*target.permissions, perm]
            target = await self._store.save(target)
            logger.info(f"Admin {acting_id} granted {perm.value} to admin {target_id}")

        return AdminView.from_user(target)

    async def revoke_permission(
        self,
        target_id: str,
        acting_id: str,
        permission: Union[Permission, str],
    ) -> AdminView:
        perm = parse_permission(permission)
        target = await self._load_target(target_id, acting_id)

        if target.admin_level == AdminLevel.SUPER_ADMIN:
            raise SuperAdminRestrictionError("Cannot revoke permissions from super admin")

        if perm in target.permissions:
            target.permissions = [p for p in target.permissions if p != perm]
            target = await self._store.save(target)
            logger.info(f"Admin {acting_id} revoked {perm.value} from admin {target_id}")

        return AdminView.from_user(target)

    async def initialize_admin_permissions(self, admin: User) -> User:
        """Give an admin with an empty permission list its level defaults."""
        if not admin.is_admin() or admin.admin_level is None:
            return admin
        if admin.permissions:
            return admin

        admin.permissions = default_permissions(admin.admin_level)
        return await self._store.save(admin)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _load_target(self, target_id: str, acting_id: str) -> User:
        if target_id == acting_id:
            raise SelfModificationError()

        target = await self._store.find_by_id(target_id)
        if target is None:
            raise AdminNotFoundError(target_id)
        if not target.is_admin():
            raise TargetNotAdminError(target_id)
        return target

    @staticmethod
    def _parse_permissions(values: list[str]) -> list[Permission]:
        parsed: list[Permission] = []
        for value in values:
            perm = parse_permission(value)
            if perm not in parsed:
                parsed.append(perm)
        return parsed
