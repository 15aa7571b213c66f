"""
Auth repositories for database access.

Encapsulates all Supabase queries and data mapping for the auth tables:
- users
- refresh_tokens
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

from postgrest.exceptions import APIError
from supabase import Client

from shared.repository import BaseRepository
from .models import RefreshTokenRecord, User, UserCreate, normalize_email, utc_now
from .passwords import MIN_BCRYPT_ROUNDS, hash_password, verify_password
from .permissions import AdminLevel, Permission, UserRole
from .exceptions import DuplicateIdentityError, UserNotFoundError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def _escape_like(term: str) -> str:
    """Escape LIKE wildcards so a search term only ever matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _quote_filter_value(value: str) -> str:
    """Quote a value for use inside a PostgREST or=() filter."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _search_filter(term: str, columns: tuple[str, ...]) -> str:
    """
    Build an or=() filter matching a literal substring in any of the columns,
    plus an exact id match when the term looks like a UUID.
    """
    pattern = _quote_filter_value(f"*{_escape_like(term)}*")
    clauses = [f"{column}.ilike.{pattern}" for column in columns]
    if _UUID_RE.match(term):
        clauses.append(f"id.eq.{term}")
    return ",".join(clauses)


class UserRepository(BaseRepository[User]):
    """
    Credential store over the users table.

    Passwords only ever enter as plaintext and are hashed here; hashes never
    leave except inside the User model, which excludes them from
    serialization.

    Note: This repository does NOT perform authorization checks.
    """

    table_name = "users"

    def __init__(self, db: Client, bcrypt_rounds: int = MIN_BCRYPT_ROUNDS) -> None:
        super().__init__(db)
        self._bcrypt_rounds = bcrypt_rounds

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def find_by_id(self, user_id: str) -> Optional[User]:
        result = self._table().select("*").eq("id", user_id).execute()
        if not result.data:
            return None
        return self._map_to_user(result.data[0])

    async def find_by_email(self, email: str) -> Optional[User]:
        result = self._table().select("*").eq("email", normalize_email(email)).execute()
        if not result.data:
            return None
        return self._map_to_user(result.data[0])

    async def find_by_phone(self, phone: str) -> Optional[User]:
        result = self._table().select("*").eq("phone", phone).execute()
        if not result.data:
            return None
        return self._map_to_user(result.data[0])

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(self, data: UserCreate) -> User:
        """
        Insert a new user, hashing the plaintext password if one is given.

        Raises:
            DuplicateIdentityError: On a unique violation for email or phone
        """
        row: dict[str, Any] = {
            "name": data.name,
            "email": normalize_email(data.email) if data.email else None,
            "phone": data.phone,
            "avatar": data.avatar,
            "role": data.role.value,
            "admin_level": int(data.admin_level) if data.admin_level is not None else None,
            "permissions": [p.value for p in data.permissions],
            "password_hash": (
                hash_password(data.password, self._bcrypt_rounds) if data.password else None
            ),
        }

        try:
            result = self._table().insert(row).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                field = "phone" if "phone" in (e.message or "") else "email"
                raise DuplicateIdentityError(field)
            raise

        user = self._map_to_user(result.data[0])
        logger.info(f"Created user {user.id}")
        return user

    async def update_password(self, user_id: str, new_password: str) -> None:
        """
        Replace the stored hash with one for a new plaintext password.

        Raises:
            UserNotFoundError: If no row was updated
        """
        result = (
            self._table()
            .update({
                "password_hash": hash_password(new_password, self._bcrypt_rounds),
                "updated_at": utc_now().isoformat(),
            })
            .eq("id", user_id)
            .execute()
        )
        if not result.data:
            raise UserNotFoundError(user_id)

    async def save(self, user: User) -> User:
        """
        Persist the mutable profile, role and permission fields of a user.

        Raises:
            DuplicateIdentityError: If the new email or phone is taken
            UserNotFoundError: If no row was updated
        """
        data = {
            "name": user.name,
            "email": user.email,
            "phone": user.phone,
            "avatar": user.avatar,
            "role": user.role.value,
            "admin_level": int(user.admin_level) if user.admin_level is not None else None,
            "permissions": [p.value for p in user.permissions],
            "is_deleted": user.is_deleted,
            "deleted_at": user.deleted_at.isoformat() if user.deleted_at else None,
            "updated_at": utc_now().isoformat(),
        }
        try:
            result = self._table().update(data).eq("id", user.id).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                field = "phone" if "phone" in (e.message or "") else "email"
                raise DuplicateIdentityError(field)
            raise
        if not result.data:
            raise UserNotFoundError(user.id)
        return self._map_to_user(result.data[0])

    def match_password(self, user: User, candidate: str) -> bool:
        return verify_password(candidate, user.password_hash)

    # -------------------------------------------------------------------------
    # Admin queries
    # -------------------------------------------------------------------------

    async def list_admins(
        self,
        admin_level: Optional[AdminLevel] = None,
        search: Optional[str] = None,
        include_deleted: bool = False,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[User], int]:
        """
        List admin accounts, newest first.

        Args:
            admin_level: Only admins at this level.
            search: Case-insensitive substring over name and email; also an
                exact id match when the term looks like a UUID.
            include_deleted: Include soft-deleted admins.
            page: Page number (1-indexed).
            limit: Items per page.

        Returns:
            Tuple of (admins on this page, total matching count).
        """
        offset = (page - 1) * limit

        query = self._table().select("*", count="exact").eq("role", UserRole.ADMIN.value)
        if not include_deleted:
            query = query.eq("is_deleted", False)
        if admin_level is not None:
            query = query.eq("admin_level", int(admin_level))

        term = (search or "").strip()
        if term:
            query = query.or_(_search_filter(term, ("name", "email")))

        result = query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()

        admins = [self._map_to_user(row) for row in result.data]
        return admins, result.count or 0

    async def list_users(
        self,
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
        include_deleted: bool = False,
        only_deleted: bool = False,
        has_phone: Optional[bool] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[User], int]:
        """
        List accounts of any role for the admin panel, newest first.

        Soft-deleted accounts are hidden unless include_deleted is set, and
        only_deleted shows nothing else. Search covers name, email and
        phone, plus an exact id match when the term looks like a UUID.
        """
        offset = (page - 1) * limit

        query = self._table().select("*", count="exact")
        if only_deleted:
            query = query.eq("is_deleted", True)
        elif not include_deleted:
            query = query.eq("is_deleted", False)
        if role is not None:
            query = query.eq("role", UserRole(role).value)
        if has_phone is True:
            query = query.not_.is_("phone", "null")
        elif has_phone is False:
            query = query.is_("phone", "null")
        if created_from is not None:
            query = query.gte("created_at", created_from.isoformat())
        if created_to is not None:
            query = query.lte("created_at", created_to.isoformat())

        term = (search or "").strip()
        if term:
            query = query.or_(_search_filter(term, ("name", "email", "phone")))

        result = query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()

        users = [self._map_to_user(row) for row in result.data]
        return users, result.count or 0

    async def count_admins(self) -> int:
        """Count non-deleted admins of any level."""
        result = (
            self._table()
            .select("id", count="exact")
            .eq("role", UserRole.ADMIN.value)
            .eq("is_deleted", False)
            .execute()
        )
        return result.count or 0

    async def get_admin_by_id(self, user_id: str) -> Optional[User]:
        result = (
            self._table()
            .select("*")
            .eq("id", user_id)
            .eq("role", UserRole.ADMIN.value)
            .execute()
        )
        if not result.data:
            return None
        return self._map_to_user(result.data[0])

    async def count_super_admins(self) -> int:
        """Count non-deleted super admins."""
        result = (
            self._table()
            .select("id", count="exact")
            .eq("role", UserRole.ADMIN.value)
            .eq("admin_level", int(AdminLevel.SUPER_ADMIN))
            .eq("is_deleted", False)
            .execute()
        )
        return result.count or 0

    # -------------------------------------------------------------------------
    # Private mapping methods
    # -------------------------------------------------------------------------

    def _map_to_user(self, data: dict[str, Any]) -> User:
        """Map database row to User model."""
        level = data.get("admin_level")
        return User(
            id=str(data["id"]),
            name=data.get("name") or "",
            email=data.get("email"),
            password_hash=data.get("password_hash"),
            phone=data.get("phone"),
            avatar=data.get("avatar"),
            role=UserRole(data.get("role") or UserRole.USER.value),
            admin_level=AdminLevel(level) if level is not None else None,
            permissions=[
                Permission(p) for p in (data.get("permissions") or [])
                if p in Permission._value2member_map_
            ],
            is_deleted=bool(data.get("is_deleted", False)),
            deleted_at=data.get("deleted_at"),
            created_at=data["created_at"],
        )


class RefreshTokenRepository(BaseRepository[RefreshTokenRecord]):
    """
    Refresh-token ledger over the refresh_tokens table.

    Only token hashes are stored. Revocation is a conditional update so that
    concurrent rotations of the same token have a single winner.
    """

    table_name = "refresh_tokens"

    async def insert(
        self,
        user_id: str,
        token_hash: str,
        expires_at: datetime,
    ) -> RefreshTokenRecord:
        data = {
            "user_id": user_id,
            "token_hash": token_hash,
            "expires_at": expires_at.isoformat(),
            "revoked": False,
        }
        result = self._table().insert(data).execute()
        return self._map_to_record(result.data[0])

    async def lookup(self, token_hash: str) -> Optional[RefreshTokenRecord]:
        result = self._table().select("*").eq("token_hash", token_hash).execute()
        if not result.data:
            return None
        return self._map_to_record(result.data[0])

    async def revoke(self, record_id: str) -> bool:
        """
        Flip revoked false -> true in a single UPDATE ... WHERE revoked = false.

        Returns:
            True if this call performed the flip.
        """
        result = (
            self._table()
            .update({"revoked": True})
            .eq("id", record_id)
            .eq("revoked", False)
            .execute()
        )
        return bool(result.data)

    async def revoke_all_for_user(self, user_id: str) -> int:
        result = (
            self._table()
            .update({"revoked": True})
            .eq("user_id", user_id)
            .eq("revoked", False)
            .execute()
        )
        return len(result.data or [])

    async def prune_expired(self, now: Optional[datetime] = None) -> int:
        """Delete records past their expiry. Returns the number removed."""
        cutoff = now or datetime.now(timezone.utc)
        result = self._table().delete().lt("expires_at", cutoff.isoformat()).execute()
        removed = len(result.data or [])
        if removed:
            logger.info(f"Pruned {removed} expired refresh tokens")
        return removed

    def _map_to_record(self, data: dict[str, Any]) -> RefreshTokenRecord:
        """Map database row to RefreshTokenRecord model."""
        return RefreshTokenRecord(
            id=str(data["id"]),
            user_id=str(data["user_id"]),
            token_hash=data["token_hash"],
            expires_at=data["expires_at"],
            revoked=bool(data.get("revoked", False)),
            created_at=data["created_at"],
        )
