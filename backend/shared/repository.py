"""
Supabase-backed repository base.

Each repository owns exactly one table and maps its rows to pydantic
models; nothing outside the repository sees raw row dicts.
"""

from typing import TypeVar, Generic
from supabase import Client


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base for the users and refresh_tokens repositories.

    Subclasses set ``table_name`` and build their queries with ``_table()``.
    Authorization is the caller's concern; repositories never check it.

    Example:
        class UserRepository(BaseRepository[User]):
            table_name = "users"

            async def find_by_id(self, user_id: str) -> Optional[User]:
                result = self._table().select("*").eq("id", user_id).execute()
                return self._map_to_user(result.data[0]) if result.data else None
    """

    table_name: str = ""

    def __init__(self, db: Client) -> None:
        self._db = db

    def _table(self):
        """Query builder on the repository's own table."""
        return self._db.table(self.table_name)
