"""
Admin management endpoints.

All routes require a super admin.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from modules.auth.models import User
from modules.auth.permissions import AdminLevel
from modules.admins.interfaces import IAdminService
from modules.admins.models import (
    AdminFilters,
    AdminListResponse,
    AdminPermissionsUpdate,
    AdminView,
)

from ..dependencies import get_admin_service
from ..middleware.auth import require_super_admin
from ..models.errors import ERROR_RESPONSES

router = APIRouter(responses=ERROR_RESPONSES)


class PermissionChangeRequest(BaseModel):
    """Single permission to grant or revoke."""

    permission: str


@router.get("", response_model=AdminListResponse)
async def list_admins(
    page: int = Query(default=1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(default=10, ge=1, le=100, description="Items per page"),
    admin_level: Optional[AdminLevel] = Query(default=None, alias="adminLevel"),
    search: Optional[str] = Query(default=None, max_length=200),
    include_deleted: bool = Query(default=False, alias="includeDeleted"),
    _: User = Depends(require_super_admin),
    service: IAdminService = Depends(get_admin_service),
) -> AdminListResponse:
    """List admins, newest first."""
    filters = AdminFilters(
        admin_level=admin_level,
        search=search,
        include_deleted=include_deleted,
    )
    return await service.list_admins(filters, page, limit)


@router.get("/{admin_id}", response_model=AdminView)
async def get_admin(
    admin_id: str,
    _: User = Depends(require_super_admin),
    service: IAdminService = Depends(get_admin_service),
) -> AdminView:
    """Get a single admin."""
    return await service.get_admin_by_id(admin_id)


@router.put("/{admin_id}/permissions", response_model=AdminView)
async def update_admin_permissions(
    admin_id: str,
    body: AdminPermissionsUpdate,
    user: User = Depends(require_super_admin),
    service: IAdminService = Depends(get_admin_service),
) -> AdminView:
    """Change an admin's level and/or permission list."""
    return await service.update_admin_permissions(admin_id, user.id, body)


@router.post("/{admin_id}/permissions/grant", response_model=AdminView)
async def grant_permission(
    admin_id: str,
    body: PermissionChangeRequest,
    user: User = Depends(require_super_admin),
    service: IAdminService = Depends(get_admin_service),
) -> AdminView:
    """Grant one permission to an admin."""
    return await service.grant_permission(admin_id, user.id, body.permission)


@router.post("/{admin_id}/permissions/revoke", response_model=AdminView)
async def revoke_permission(
    admin_id: str,
    body: PermissionChangeRequest,
    user: User = Depends(require_super_admin),
    service: IAdminService = Depends(get_admin_service),
) -> AdminView:
    """Revoke one permission from an admin."""
    return await service.revoke_permission(admin_id, user.id, body.permission)
