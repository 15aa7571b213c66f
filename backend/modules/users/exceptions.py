"""
User management exceptions.

Acting on your own account is an AuthorizationError (403); a request that
would leave the store in a state it refuses (no admins left, deleting a
deleted user) is a ValidationError (400).
"""

from shared.exceptions import AuthorizationError, ValidationError


class SelfRoleChangeError(AuthorizationError):
    """Raised when an admin tries to change their own role."""

    def __init__(self):
        super().__init__("Cannot change your own role", code="SELF_ROLE_CHANGE")


class SelfDeletionError(AuthorizationError):
    """Raised when an admin tries to delete their own account from the admin panel."""

    def __init__(self):
        super().__init__("Cannot delete your own account", code="SELF_DELETION")


class LastAdminError(ValidationError):
    """Raised when a change would leave the system without any admin."""

    def __init__(self, action: str = "demote"):
        super().__init__(
            f"Cannot {action} the last admin in the system",
            code="LAST_ADMIN",
        )


class UserAlreadyDeletedError(ValidationError):
    def __init__(self, user_id: str):
        super().__init__(
            "User is already deleted",
            code="USER_ALREADY_DELETED",
            details={"user_id": user_id},
        )


class UserNotDeletedError(ValidationError):
    def __init__(self, user_id: str):
        super().__init__(
            "User is not deleted",
            code="USER_NOT_DELETED",
            details={"user_id": user_id},
        )


class ConflictingDeletedFiltersError(ValidationError):
    """Raised when a listing asks for both includeDeleted and onlyDeleted."""

    def __init__(self):
        super().__init__(
            "includeDeleted and onlyDeleted cannot be used together",
            code="CONFLICTING_FILTERS",
        )
