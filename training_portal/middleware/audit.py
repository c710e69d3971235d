"""Audit logging middleware: records every state-changing request to audit_trail."""


import asyncio
import logging
import time
from collections.abc import Callable

from fastapi import Request, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from training_portal.db.base import async_session_factory
from training_portal.domain.audit import AuditTrail

logger = logging.getLogger(__name__)

# Methods that mutate state
_WRITE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}

_API_PREFIX = ("api", "v1")


def infer_entity(path: str) -> tuple[str, str | None]:
    """``/api/v1/nominations/<id>/decision`` → ``("nominations", "<id>")``."""
    parts = [p for p in path.strip("/").split("/") if p]
    if tuple(parts[:2]) == _API_PREFIX:
        parts = parts[2:]
    if not parts:
        return "unknown", None
    entity_type = parts[0]
    entity_id = parts[1] if len(parts) >= 2 else None
    if entity_id and len(entity_id) > 50:
        entity_id = None
    return entity_type, entity_id


class AuditMiddleware(BaseHTTPMiddleware):
    """Logs all write operations.

    Each audit row is written in a background task AFTER the response is
    produced so it never adds latency to the request. Failures are logged and
    never reach the caller. ``app.state.audit_session_factory`` overrides the
    session factory (tests point it at their own engine).
    """

    def __init__(self, app, session_factory=None):
        super().__init__(app)
        self._session_factory = session_factory
        self._pending: set[asyncio.Task] = set()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000)

        if request.method in _WRITE_METHODS:
            task = asyncio.create_task(self._record(request, response.status_code, duration_ms))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        return response

    def _factory(self, request: Request):
        return (
            getattr(request.app.state, "audit_session_factory", None)
            or self._session_factory
            or async_session_factory
        )

    async def _record(self, request: Request, status_code: int, duration_ms: int) -> None:
        path = request.url.path
        entity_type, entity_id = infer_entity(path)
        try:
            async with self._factory(request)() as session:
                session.add(
                    AuditTrail(
                        ip_address=request.client.host if request.client else None,
                        user_agent=request.headers.get("user-agent"),
                        method=request.method,
                        path=path[:500],
                        status_code=status_code,
                        duration_ms=duration_ms,
                        entity_type=entity_type,
                        entity_id=entity_id,
                        description=f"{request.method} {path} → {status_code} ({duration_ms}ms)",
                    )
                )
                await session.commit()
        except SQLAlchemyError as exc:
            logger.warning("Audit row for %s %s not written: %s", request.method, path, exc)
