"""
User management module.

Profile edits for the logged-in user and the admin panel's operations over
customer accounts: listing, inspection, role changes, soft deletion and
restore.

Public API:
- IUserManagementService: Interface for user management
- UserManagementService: Implementation over any IUserStore
- UserView, UserListResponse, UserFilters, ProfileUpdate, RoleUpdate: Models
- User management exceptions: SelfRoleChangeError, LastAdminError, etc.
"""

from .interfaces import IUserManagementService, IUserStore
from .models import ProfileUpdate, RoleUpdate, UserFilters, UserListResponse, UserView
from .service import UserManagementService
from .exceptions import (
    ConflictingDeletedFiltersError,
    LastAdminError,
    SelfDeletionError,
    SelfRoleChangeError,
    UserAlreadyDeletedError,
    UserNotDeletedError,
)

__all__ = [
    # Interfaces
    "IUserManagementService",
    "IUserStore",
    # Models
    "ProfileUpdate",
    "RoleUpdate",
    "UserFilters",
    "UserListResponse",
    "UserView",
    # Implementation
    "UserManagementService",
    # Exceptions
    "ConflictingDeletedFiltersError",
    "LastAdminError",
    "SelfDeletionError",
    "SelfRoleChangeError",
    "UserAlreadyDeletedError",
    "UserNotDeletedError",
]
