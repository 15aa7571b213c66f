"""
One-time login codes.

Codes live in Redis under ``otp:<email>`` with a TTL. Setting a new code
overwrites any live one, so there is at most one valid code per address.
"""

import secrets
from typing import Optional

import redis.asyncio as redis

OTP_KEY_PREFIX = "otp:"


def generate_otp() -> str:
    """Uniformly random 6-digit code in 100000-999999."""
    return str(secrets.randbelow(900000) + 100000)


def otp_key(email: str) -> str:
    return f"{OTP_KEY_PREFIX}{email}"


class RedisOtpStore:
    """IOtpStore backed by redis.asyncio."""

    def __init__(self, client: redis.Redis):
        self._client = client

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._client.set(key, value, ex=ttl_seconds)

    async def get(self, key: str) -> Optional[str]:
        value = await self._client.get(key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def delete(self, key: str) -> None:
        await self._client.delete(key)
