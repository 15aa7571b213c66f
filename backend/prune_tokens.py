#!/usr/bin/env python3
"""
Delete expired refresh tokens.

Meant to run periodically (cron, scheduled job). Revoked-but-unexpired
tokens are kept so that replays are still reported as reuse.

Usage:
    uv run python prune_tokens.py
"""

import asyncio

from rich.console import Console

from shared.config import get_settings
from shared.database import get_supabase_client
from shared.logging import configure_logging
from modules.auth.repository import RefreshTokenRepository

console = Console()


async def prune() -> int:
    return await RefreshTokenRepository(get_supabase_client()).prune_expired()


def main():
    configure_logging(get_settings().log_level)
    removed = asyncio.run(prune())
    console.print(f"[green]Removed {removed} expired refresh token(s).[/green]")


if __name__ == "__main__":
    main()
