"""
User-related endpoints.

The /me routes serve the logged-in user's own profile and account. The
remaining routes are the admin panel's user management, each guarded by
the permission it needs.
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response

from shared.config import Settings
from modules.auth.interfaces import IAuthService
from modules.auth.models import User
from modules.auth.permissions import Permission, UserRole
from modules.users.interfaces import IUserManagementService
from modules.users.models import ProfileUpdate, RoleUpdate, UserFilters, UserListResponse, UserView

from ..cookies import clear_refresh_cookie
from ..dependencies import get_app_settings, get_auth_service, get_user_service
from ..middleware.auth import (
    get_current_user,
    require_all_permissions,
    require_any_permission,
    require_permission,
)
from ..models.auth import (
    ChangePasswordRequest,
    DeleteAccountRequest,
    MessageResponse,
    UpdateProfileRequest,
    UserProfileResponse,
)
from ..models.errors import ERROR_RESPONSES

router = APIRouter(responses=ERROR_RESPONSES)


def _profile_response(user: User) -> UserProfileResponse:
    return UserProfileResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        phone=user.phone,
        avatar=user.avatar,
        role=user.role,
        admin_level=int(user.admin_level) if user.admin_level is not None else None,
        permissions=[p.value for p in user.permissions] if user.is_admin() else [],
    )


# -----------------------------------------------------------------------------
# Own account
# -----------------------------------------------------------------------------


@router.get("/me", response_model=UserProfileResponse)
async def get_current_user_profile(
    user: User = Depends(get_current_user),
) -> UserProfileResponse:
    """
    Get the current user's profile.

    Requires authentication.
    """
    return _profile_response(user)


@router.put("/me", response_model=UserProfileResponse)
async def update_current_user_profile(
    body: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    service: IUserManagementService = Depends(get_user_service),
) -> UserProfileResponse:
    """Update the current user's name, email, phone or avatar."""
    updated = await service.update_profile(
        user.id,
        ProfileUpdate(**body.model_dump(exclude_unset=True)),
    )
    return UserProfileResponse(
        id=updated.id,
        name=updated.name,
        email=updated.email,
        phone=updated.phone,
        avatar=updated.avatar,
        role=updated.role,
        admin_level=int(updated.admin_level) if updated.admin_level is not None else None,
        permissions=[p.value for p in updated.permissions],
    )


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    auth: IAuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Change the current user's password."""
    await auth.change_password(user.id, body.current_password, body.new_password)
    return MessageResponse(message="Password updated successfully")


@router.delete("/me", response_model=MessageResponse)
async def delete_account(
    body: DeleteAccountRequest,
    response: Response,
    user: User = Depends(get_current_user),
    auth: IAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
) -> MessageResponse:
    """Delete the current user's account and end every session."""
    await auth.delete_account(user.id, body.password)
    clear_refresh_cookie(response, settings)
    return MessageResponse(message="Your account has been deleted")


# -----------------------------------------------------------------------------
# Admin user management
# -----------------------------------------------------------------------------


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(default=1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(default=10, ge=1, le=100, description="Items per page"),
    role: Optional[UserRole] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=200),
    include_deleted: bool = Query(default=False, alias="includeDeleted"),
    only_deleted: bool = Query(default=False, alias="onlyDeleted"),
    has_phone: Optional[bool] = Query(default=None, alias="hasPhone"),
    created_from: Optional[datetime] = Query(default=None, alias="createdFrom"),
    created_to: Optional[datetime] = Query(default=None, alias="createdTo"),
    _: User = Depends(require_any_permission([Permission.VIEW_USERS, Permission.MANAGE_USERS])),
    service: IUserManagementService = Depends(get_user_service),
) -> UserListResponse:
    """List users, newest first."""
    filters = UserFilters(
        role=role,
        search=search,
        include_deleted=include_deleted,
        only_deleted=only_deleted,
        has_phone=has_phone,
        created_from=created_from,
        created_to=created_to,
    )
    return await service.list_users(filters, page, limit)


@router.get("/{user_id}", response_model=UserView)
async def get_user(
    user_id: str,
    _: User = Depends(require_permission(Permission.VIEW_USERS)),
    service: IUserManagementService = Depends(get_user_service),
) -> UserView:
    """Get a single user, deleted or not."""
    return await service.get_user(user_id)


@router.put("/{user_id}/role", response_model=UserView)
async def update_user_role(
    user_id: str,
    body: RoleUpdate,
    user: User = Depends(require_permission(Permission.MANAGE_USER_ROLES)),
    service: IUserManagementService = Depends(get_user_service),
) -> UserView:
    """Promote a user to admin or demote an admin to user."""
    return await service.update_user_role(user_id, user, body)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    user: User = Depends(require_permission(Permission.DELETE_USERS)),
    service: IUserManagementService = Depends(get_user_service),
) -> MessageResponse:
    """Soft-delete a user and end every one of their sessions."""
    await service.delete_user(user_id, user)
    return MessageResponse(message="User deleted successfully")


@router.post("/{user_id}/restore", response_model=UserView)
async def restore_user(
    user_id: str,
    _: User = Depends(require_all_permissions([Permission.MANAGE_USERS, Permission.DELETE_USERS])),
    service: IUserManagementService = Depends(get_user_service),
) -> UserView:
    """Undo a soft delete."""
    return await service.restore_user(user_id)
