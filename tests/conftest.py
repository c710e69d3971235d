"""Shared fixtures: in-memory SQLite, a recording mailer and an HTTP client.

Environment variables are set before the first ``training_portal`` import so
the module-level ``settings`` object picks them up.
"""

from __future__ import annotations

import asyncio
import os
from typing import AsyncGenerator

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["APP_ENV"] = "test"
os.environ["AUTH_SECRET"] = "test-auth-secret"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["PORTAL_BASE_URL"] = "http://portal.test"
for _key in ("SMTP_HOST", "SPREADSHEET_ID", "ADMIN_NOTIFICATION_EMAIL"):
    os.environ.pop(_key, None)

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import training_portal.domain  # noqa: F401  (registers every table)
from training_portal.db.base import Base, enable_sqlite_savepoints, get_db
from training_portal.services.notifications import Mailer, OutgoingEmail, SendResult, get_mailer

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class RecordingMailer(Mailer):
    """Keeps every message instead of talking to SMTP. Set ``fail`` to simulate outages."""

    def __init__(self):
        super().__init__()
        self.sent: list[OutgoingEmail] = []
        self.fail = False

    async def deliver(self, email: OutgoingEmail) -> SendResult:
        self.sent.append(email)
        if self.fail:
            return SendResult(False, "SMTP unavailable")
        return SendResult(True)

    async def send(self, to, subject, html) -> SendResult:
        return await self.deliver(OutgoingEmail(to, subject, html))

    def to(self, address: str) -> list[OutgoingEmail]:
        return [e for e in self.sent if e.to == address]


async def _memory_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine


@pytest_asyncio.fixture
async def engine():
    engine = await _memory_engine()
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest_asyncio.fixture
async def audit_factory():
    engine = await _memory_engine()
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(session, mailer, audit_factory) -> AsyncGenerator[AsyncClient, None]:
    from training_portal.main import app

    async def _get_db():
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.state.audit_session_factory = audit_factory

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    # Let fire-and-forget audit writes finish before their engine goes away
    pending = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
    if pending:
        await asyncio.wait(pending, timeout=1)
    app.dependency_overrides.clear()
    app.state.audit_session_factory = None
