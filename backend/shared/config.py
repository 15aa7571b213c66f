"""
Centralized configuration for the Storefront backend.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings should be namespaced (e.g., SMTP_*, SUPABASE_*).
"""

from functools import lru_cache
from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Storefront API"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    # CORS settings (admin and storefront front ends)
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:5174"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Supabase (users and refresh_tokens tables)
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_db_url: str = ""

    # Redis (one-time codes)
    redis_url: str = "redis://localhost:6379/0"

    # Access tokens
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "storefront-api"
    jwt_audience: str = "storefront"
    access_token_ttl_minutes: int = 15

    # Refresh tokens
    refresh_token_ttl_days: int = 30
    refresh_cookie_name: str = "refresh_token"
    refresh_cookie_path: str = "/api/auth"
    refresh_cookie_secure: bool = True
    refresh_cookie_samesite: Literal["lax", "strict", "none"] = "strict"
    refresh_cookie_domain: Optional[str] = None

    # One-time codes
    otp_ttl_seconds: int = 600

    # Password hashing
    bcrypt_rounds: int = 10

    # Firebase (Google and phone sign-in)
    firebase_project_id: str = ""

    # Outgoing email
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    email_from: str = ""
    email_from_name: str = "Storefront"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
