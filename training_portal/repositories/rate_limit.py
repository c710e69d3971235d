"""Rate-limit counter repository."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select

from training_portal.domain.rate_limit import RateLimit
from training_portal.repositories.base import BaseRepository


class RateLimitRepository(BaseRepository[RateLimit]):
    model = RateLimit

    async def get_for_update(self, key: str) -> RateLimit | None:
        """Row lock on backends that support it; a no-op on SQLite."""
        result = await self._session.execute(
            select(RateLimit).where(RateLimit.key == key).with_for_update()
        )
        return result.scalars().first()

    async def reset(self, row: RateLimit | None, key: str, expires_at: datetime) -> RateLimit:
        if row is None:
            row = RateLimit(key=key, count=1, expires_at=expires_at)
            self._session.add(row)
        else:
            row.count = 1
            row.expires_at = expires_at
        await self._session.flush()
        return row

    async def increment(self, row: RateLimit) -> RateLimit:
        row.count += 1
        await self._session.flush()
        return row
