"""
Admin management module.

Super-admin operations over admin accounts: listing, inspection, level and
permission changes.

Public API:
- IAdminService: Interface for admin management
- AdminService: Implementation over any IAdminStore
- AdminView, AdminListResponse, AdminFilters, AdminPermissionsUpdate: Models
- Admin exceptions: SelfModificationError, LastSuperAdminDemotionError, etc.
"""

from .interfaces import IAdminService, IAdminStore
from .models import AdminFilters, AdminListResponse, AdminPermissionsUpdate, AdminView
from .service import AdminService
from .exceptions import (
    AdminNotFoundError,
    AlreadyMaximalError,
    LastSuperAdminDemotionError,
    SelfModificationError,
    SuperAdminRestrictionError,
    TargetNotAdminError,
)

__all__ = [
    # Interfaces
    "IAdminService",
    "IAdminStore",
    # Models
    "AdminFilters",
    "AdminListResponse",
    "AdminPermissionsUpdate",
    "AdminView",
    # Implementation
    "AdminService",
    # Exceptions
    "AdminNotFoundError",
    "AlreadyMaximalError",
    "LastSuperAdminDemotionError",
    "SelfModificationError",
    "SuperAdminRestrictionError",
    "TargetNotAdminError",
]
