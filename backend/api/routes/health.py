"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

import asyncio
import logging

from fastapi import APIRouter, Response
from pydantic import BaseModel

from shared.config import get_settings
from shared.database import get_redis_client, get_supabase_client

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    database: str
    cache: str


async def _check_database() -> str:
    try:
        client = get_supabase_client()
        await asyncio.to_thread(
            lambda: client.table("users").select("id").limit(1).execute()
        )
        return "connected"
    except Exception as e:
        logger.warning(f"Database readiness check failed: {type(e).__name__}: {e}")
        return "unavailable"


async def _check_cache() -> str:
    try:
        await get_redis_client().ping()
        return "connected"
    except Exception as e:
        logger.warning(f"Redis readiness check failed: {type(e).__name__}: {e}")
        return "unavailable"


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running.
    """
    return HealthResponse(status="healthy", version=get_settings().app_version)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(response: Response) -> ReadinessResponse:
    """
    Readiness check endpoint.

    Returns 503 unless both the database and Redis answer.
    """
    database, cache = await asyncio.gather(_check_database(), _check_cache())
    ready = database == "connected" and cache == "connected"
    if not ready:
        response.status_code = 503
    return ReadinessResponse(
        status="ready" if ready else "not_ready",
        database=database,
        cache=cache,
    )
