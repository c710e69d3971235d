from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import select

from training_portal.core.dates import utcnow
from training_portal.core.exceptions import RateLimitedError
from training_portal.domain import RateLimit
from training_portal.services.rate_limiter import check_rate_limit, enforce_rate_limit


async def test_hits_are_counted_until_the_limit(session):
    results = [await check_rate_limit(session, "k", limit=3, window_seconds=60) for _ in range(4)]
    assert [r.success for r in results] == [True, True, True, False]
    assert [r.count for r in results] == [1, 2, 3, 3]


async def test_keys_are_independent(session):
    await check_rate_limit(session, "a", limit=1, window_seconds=60)
    assert not (await check_rate_limit(session, "a", limit=1, window_seconds=60)).success
    assert (await check_rate_limit(session, "b", limit=1, window_seconds=60)).success


async def test_expired_window_resets_the_counter(session):
    await check_rate_limit(session, "k", limit=1, window_seconds=60)
    assert not (await check_rate_limit(session, "k", limit=1, window_seconds=60)).success

    row = (await session.execute(select(RateLimit).where(RateLimit.key == "k"))).scalar_one()
    row.expires_at = utcnow() - timedelta(seconds=1)
    await session.flush()

    result = await check_rate_limit(session, "k", limit=1, window_seconds=60)
    assert result.success
    assert result.count == 1


async def test_counter_survives_commit(session):
    await check_rate_limit(session, "k", limit=5, window_seconds=60)
    await session.commit()
    result = await check_rate_limit(session, "k", limit=5, window_seconds=60)
    assert result.count == 2


async def test_enforce_raises_when_exhausted(session):
    await enforce_rate_limit(session, "k", limit=1, window_seconds=60)
    with pytest.raises(RateLimitedError):
        await enforce_rate_limit(session, "k", limit=1, window_seconds=60)


async def test_defaults_come_from_settings(session, monkeypatch):
    from training_portal.core.config import settings

    monkeypatch.setattr(settings, "rate_limit_requests", 1)
    assert (await check_rate_limit(session, "k")).success
    assert not (await check_rate_limit(session, "k")).success
