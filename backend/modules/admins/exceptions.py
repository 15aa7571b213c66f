"""
Admin management exceptions.

Guard violations are AuthorizationErrors (403); missing targets are
NotFoundErrors (404).
"""

from shared.exceptions import AuthorizationError, NotFoundError


class SelfModificationError(AuthorizationError):
    """Raised when an admin tries to change their own permissions."""

    def __init__(self):
        super().__init__("Cannot modify your own permissions", code="SELF_MODIFICATION")


class AdminNotFoundError(NotFoundError):
    """Raised when the target admin doesn't exist."""

    def __init__(self, admin_id: str):
        super().__init__(
            "Admin not found",
            code="ADMIN_NOT_FOUND",
            details={"admin_id": admin_id},
        )


class TargetNotAdminError(NotFoundError):
    """Raised when the target user exists but is not an admin."""

    def __init__(self, user_id: str):
        super().__init__(
            "Target user is not an admin",
            code="TARGET_NOT_ADMIN",
            details={"user_id": user_id},
        )


class LastSuperAdminDemotionError(AuthorizationError):
    """Raised when a change would leave the system without a super admin."""

    def __init__(self):
        super().__init__(
            "Cannot demote the last super admin in the system",
            code="LAST_SUPER_ADMIN",
        )


class SuperAdminRestrictionError(AuthorizationError):
    """Raised when trying to restrict a super admin's permission set."""

    def __init__(self, message: str = "Cannot restrict permissions for super admin"):
        super().__init__(message, code="SUPER_ADMIN_RESTRICTION")


class AlreadyMaximalError(AuthorizationError):
    """Raised when granting a permission to a super admin."""

    def __init__(self):
        super().__init__("Super admin already has all permissions", code="ALREADY_MAXIMAL")
