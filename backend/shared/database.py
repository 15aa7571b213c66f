"""
Storage client factories.

Provides the Supabase service-role client (users and refresh tokens live in
Postgres behind PostgREST) and the Redis client used for short-lived
one-time codes. Both are created once per process and reused.
"""

from typing import Optional
from supabase import create_client, Client
import redis.asyncio as redis

from .config import get_settings

# Module-level client cache
_service_client: Optional[Client] = None
_redis_client: Optional[redis.Redis] = None


def get_supabase_client() -> Client:
    """
    Get Supabase client with service role (bypasses RLS).

    The auth subsystem owns the users and refresh_tokens tables outright,
    so every query goes through the service role.

    Returns:
        Supabase client configured with service role key
    """
    global _service_client

    if _service_client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise RuntimeError(
                "Supabase configuration missing. "
                "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables."
            )
        _service_client = create_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )

    return _service_client


def get_redis_client() -> redis.Redis:
    """
    Get the async Redis client.

    The client connects lazily on first command, so building it never
    blocks application startup.

    Returns:
        redis.asyncio.Redis configured from REDIS_URL with string responses
    """
    global _redis_client

    if _redis_client is None:
        settings = get_settings()
        if not settings.redis_url:
            raise RuntimeError(
                "Redis configuration missing. Set the REDIS_URL environment variable."
            )
        _redis_client = redis.from_url(settings.redis_url, decode_responses=True)

    return _redis_client


def reset_client_cache() -> None:
    """
    Reset the cached storage clients.

    Useful for testing or when configuration changes.
    """
    global _service_client, _redis_client
    _service_client = None
    _redis_client = None
