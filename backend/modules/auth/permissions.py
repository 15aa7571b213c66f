"""
Admin permission model.

Admins carry an ordinal level (MODERATOR < ADMIN < SUPER_ADMIN) and a list
of granular permission tags. Each level has a default permission set;
super admins implicitly hold every permission and their stored list is
never consulted.

The predicates here work on anything shaped like a user record (role,
admin_level, permissions), so they can be used on the persisted User model
and on lightweight test doubles alike.
"""

from enum import Enum, IntEnum
from typing import Any, Iterable, Optional, Protocol

from .exceptions import InvalidAdminLevelError, InvalidPermissionError


class UserRole(str, Enum):
    """Top-level account role."""

    USER = "user"
    ADMIN = "admin"


class AdminLevel(IntEnum):
    """Admin role levels in hierarchy (higher number = more privileges)."""

    MODERATOR = 1
    ADMIN = 2
    SUPER_ADMIN = 3


class Permission(str, Enum):
    """Permission tags that can be granted to admins."""

    # User management
    VIEW_USERS = "view_users"
    MANAGE_USERS = "manage_users"
    DELETE_USERS = "delete_users"
    MANAGE_USER_ROLES = "manage_user_roles"

    # Product management
    VIEW_PRODUCTS = "view_products"
    CREATE_PRODUCTS = "create_products"
    UPDATE_PRODUCTS = "update_products"
    DELETE_PRODUCTS = "delete_products"

    # Category management
    VIEW_CATEGORIES = "view_categories"
    MANAGE_CATEGORIES = "manage_categories"

    # Tag category management
    VIEW_TAG_CATEGORIES = "view_tag_categories"
    MANAGE_TAG_CATEGORIES = "manage_tag_categories"

    # Admin management (super admin only)
    VIEW_ADMINS = "view_admins"
    MANAGE_ADMINS = "manage_admins"
    MANAGE_ADMIN_PERMISSIONS = "manage_admin_permissions"

    # Analytics & dashboard
    VIEW_ANALYTICS = "view_analytics"
    VIEW_DASHBOARD = "view_dashboard"

    # Settings
    MANAGE_SETTINGS = "manage_settings"


DEFAULT_PERMISSIONS: dict[AdminLevel, tuple[Permission, ...]] = {
    AdminLevel.MODERATOR: (
        Permission.VIEW_USERS,
        Permission.VIEW_PRODUCTS,
        Permission.UPDATE_PRODUCTS,
        Permission.VIEW_CATEGORIES,
        Permission.VIEW_TAG_CATEGORIES,
        Permission.VIEW_DASHBOARD,
    ),
    AdminLevel.ADMIN: (
        Permission.VIEW_USERS,
        Permission.MANAGE_USERS,
        Permission.DELETE_USERS,
        Permission.VIEW_PRODUCTS,
        Permission.CREATE_PRODUCTS,
        Permission.UPDATE_PRODUCTS,
        Permission.DELETE_PRODUCTS,
        Permission.VIEW_CATEGORIES,
        Permission.MANAGE_CATEGORIES,
        Permission.VIEW_TAG_CATEGORIES,
        Permission.MANAGE_TAG_CATEGORIES,
        Permission.VIEW_ANALYTICS,
        Permission.VIEW_DASHBOARD,
    ),
    AdminLevel.SUPER_ADMIN: tuple(Permission),
}


class PermissionHolder(Protocol):
    """Anything that carries the fields the permission predicates read."""

    role: Any
    admin_level: Optional[AdminLevel]
    permissions: list[Permission]


def default_permissions(level: AdminLevel) -> list[Permission]:
    """Return a fresh copy of the default permission list for a level."""
    return list(DEFAULT_PERMISSIONS[AdminLevel(level)])


def parse_permission(value: Any) -> Permission:
    """
    Coerce a raw value into a Permission.

    Raises:
        InvalidPermissionError: If the value is not a known permission tag
    """
    try:
        return Permission(value)
    except ValueError:
        raise InvalidPermissionError(str(value))


def parse_admin_level(value: Any) -> AdminLevel:
    """
    Coerce a raw value (int or numeric string) into an AdminLevel.

    Raises:
        InvalidAdminLevelError: If the value is not 1, 2 or 3
    """
    try:
        return AdminLevel(int(value))
    except (TypeError, ValueError):
        raise InvalidAdminLevelError(value)


def is_admin(holder: PermissionHolder) -> bool:
    return holder.role == UserRole.ADMIN


def is_super_admin(holder: PermissionHolder) -> bool:
    return is_admin(holder) and holder.admin_level == AdminLevel.SUPER_ADMIN


def has_permission(holder: PermissionHolder, permission: Permission) -> bool:
    """
    Authorization predicate.

    False for non-admins, True for super admins whatever their stored
    list says, otherwise plain membership.
    """
    if not is_admin(holder):
        return False
    if holder.admin_level == AdminLevel.SUPER_ADMIN:
        return True
    return permission in (holder.permissions or [])


def has_any_permission(holder: PermissionHolder, permissions: Iterable[Permission]) -> bool:
    return any(has_permission(holder, p) for p in permissions)


def has_all_permissions(holder: PermissionHolder, permissions: Iterable[Permission]) -> bool:
    return all(has_permission(holder, p) for p in permissions)
