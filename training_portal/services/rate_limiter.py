"""Fixed-window request limiter backed by the ``rate_limits`` table.

One row per key. The first hit (or the first hit after the window expired)
resets the row to ``count=1`` and a fresh expiry; later hits inside the window
increment the counter until ``limit`` is reached.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import NamedTuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.config import settings
from training_portal.core.dates import ensure_utc, utcnow
from training_portal.core.exceptions import RateLimitedError
from training_portal.repositories.rate_limit import RateLimitRepository

logger = logging.getLogger(__name__)


class RateLimitResult(NamedTuple):
    success: bool
    count: int


async def check_rate_limit(
    session: AsyncSession,
    key: str,
    limit: int | None = None,
    window_seconds: int | None = None,
) -> RateLimitResult:
    """Count one hit for *key*. Fails open (success, count 0) on database errors."""
    limit = limit if limit is not None else settings.rate_limit_requests
    window = timedelta(
        seconds=window_seconds if window_seconds is not None else settings.rate_limit_window_seconds
    )
    repo = RateLimitRepository(session)

    try:
        async with session.begin_nested():
            now = utcnow()
            row = await repo.get_for_update(key)

            if row is None or ensure_utc(row.expires_at) < now:
                row = await repo.reset(row, key, now + window)
                return RateLimitResult(True, row.count)

            if row.count >= limit:
                return RateLimitResult(False, row.count)

            row = await repo.increment(row)
            return RateLimitResult(True, row.count)
    except SQLAlchemyError as exc:
        logger.warning("[RateLimit] Check failed for key %s, allowing request: %s", key, exc)
        return RateLimitResult(True, 0)


async def enforce_rate_limit(session: AsyncSession, key: str, **kwargs) -> RateLimitResult:
    """Same as check_rate_limit but raises RateLimitedError when the window is exhausted."""
    result = await check_rate_limit(session, key, **kwargs)
    if not result.success:
        logger.info("[RateLimit] Limit reached for key %s (%d hits)", key, result.count)
        raise RateLimitedError()
    return result
