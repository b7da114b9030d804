"""
Shared helpers for the store layer.

Mutations run once; only idempotent reads on a clean session may be
retried, and only a single time.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def read_with_retry(db: AsyncSession, stmt: Any) -> Any:
    """Execute a read-only statement, retrying once on a transient failure."""
    try:
        return await db.execute(stmt)
    except (OperationalError, TimeoutError) as exc:
        logger.warning("Read failed, retrying once: %s", exc)
        await db.rollback()
        return await db.execute(stmt)
