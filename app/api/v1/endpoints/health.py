"""
Liveness probe with a per-dependency breakdown.
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_db
from app.core.config import settings
from app.repositories.base import utcnow
from app.schemas.common import HealthChecks, HealthResponse

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


async def _database_ok(db: AsyncSession) -> bool:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Health check: database unreachable: %s", exc)
        return False
    return True


async def _redis_ok() -> bool:
    client = aioredis.from_url(settings.REDIS_URL, socket_connect_timeout=1)
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.warning("Health check: redis unreachable: %s", exc)
        return False
    finally:
        await client.aclose()
    return True


@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Report liveness; ``success`` follows the database, redis is informational."""
    checks = HealthChecks(database=await _database_ok(db), redis=await _redis_ok())
    return HealthResponse(
        success=checks.database,
        message="Server is running" if checks.database else "Database unavailable",
        timestamp=utcnow(),
        checks=checks,
    )
