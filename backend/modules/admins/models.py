"""
Admin management data models.
"""

from datetime import datetime
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from modules.auth.models import User
from modules.auth.permissions import AdminLevel, Permission, UserRole


class AdminFilters(BaseModel):
    """Filters for listing admins."""

    admin_level: Optional[AdminLevel] = None
    search: Optional[str] = Field(None, description="Substring of name or email, or an exact id")
    include_deleted: bool = False


class AdminView(BaseModel):
    """Admin record as exposed to super admins. Never carries the password hash."""

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
    def from_user(cls, user: User) -> "AdminView":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            avatar=user.avatar,
            role=user.role,
            admin_level=user.admin_level,
            permissions=list(user.permissions),
            is_deleted=user.is_deleted,
            deleted_at=user.deleted_at,
            created_at=user.created_at,
        )


class AdminListResponse(BaseModel):
    """Paginated list of admins."""

    admins: list[AdminView]
    total: int
    page: int
    total_pages: int


class AdminPermissionsUpdate(BaseModel):
    """
    Requested change to an admin's level and/or permissions.

    Values are kept raw here and parsed by the service, so that unknown
    levels and permission tags surface as InvalidAdminLevelError and
    InvalidPermissionError.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    admin_level: Optional[Union[int, str]] = None
    permissions: Optional[list[str]] = None
