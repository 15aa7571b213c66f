"""
User management data models.
"""

from datetime import datetime
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from modules.auth.models import User
from modules.auth.permissions import AdminLevel, Permission, UserRole


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile. None means unchanged."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None


class RoleUpdate(BaseModel):
    """
    Requested role change.

    admin_level is kept raw and parsed by the service so that a bad level
    surfaces as InvalidAdminLevelError. It is ignored when demoting.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    role: UserRole
    admin_level: Optional[Union[int, str]] = None


class UserFilters(BaseModel):
    """Filters for the admin user listing."""

    role: Optional[UserRole] = None
    search: Optional[str] = Field(None, description="Substring of name, email or phone, or an exact id")
    include_deleted: bool = False
    only_deleted: bool = False
    has_phone: Optional[bool] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None


class UserView(BaseModel):
    """User record as exposed to admins. Never carries the password hash."""

    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None
    role: UserRole
    admin_level: Optional[AdminLevel] = None
    permissions: list[Permission] = Field(default_factory=list)
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserView":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            avatar=user.avatar,
            role=user.role,
            admin_level=user.admin_level,
            permissions=list(user.permissions) if user.is_admin() else [],
            is_deleted=user.is_deleted,
            deleted_at=user.deleted_at,
            created_at=user.created_at,
        )


class UserListResponse(BaseModel):
    """Paginated list of users."""

    users: list[UserView]
    total: int
    page: int
    total_pages: int
