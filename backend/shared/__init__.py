"""
Shared infrastructure for Storefront backend.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase and Redis client factories
- exceptions: Base exception classes
- logging: Root logger setup

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import get_supabase_client, get_redis_client, reset_client_cache
from .exceptions import (
    StorefrontError,
    NotFoundError,
    ValidationError,
    ConflictError,
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
)
from .logging import configure_logging

__all__ = [
    "Settings",
    "get_settings",
    "get_supabase_client",
    "get_redis_client",
    "reset_client_cache",
    "StorefrontError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "AuthenticationError",
    "AuthorizationError",
    "ExternalServiceError",
    "configure_logging",
]
