"""Generic async repository with pagination and conditional updates."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Generic, Iterable, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Generic CRUD repository.

    Every method flushes but never commits; the unit of work belongs to the
    caller (the request-scoped session from ``get_db``).
    """

    model: type[ModelT]

    def __init__(self, session: AsyncSession):
        self._session = session

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _base_query(self):
        return select(self.model)

    def _apply_filters(self, q, filters: dict[str, Any] | None):
        if filters:
            for col_name, value in filters.items():
                if value is not None and hasattr(self.model, col_name):
                    q = q.where(getattr(self.model, col_name) == value)
        return q

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, entity_id: str, *options) -> ModelT | None:
        q = self._base_query().where(self.model.id == entity_id)
        if options:
            q = q.options(*options).execution_options(populate_existing=True)
        result = await self._session.execute(q)
        return result.scalars().first()

    async def get_by(self, **criteria: Any) -> ModelT | None:
        q = self._base_query()
        for col_name, value in criteria.items():
            q = q.where(getattr(self.model, col_name) == value)
        result = await self._session.execute(q.limit(1))
        return result.scalars().first()

    async def all(self, order_by: str = "name") -> list[ModelT]:
        q = self._base_query()
        col = getattr(self.model, order_by, None)
        if col is not None:
            q = q.order_by(col.asc())
        return list((await self._session.execute(q)).scalars().all())

    async def get_many(self, ids: Iterable[str]) -> list[ModelT]:
        ids = list(ids)
        if not ids:
            return []
        result = await self._session.execute(self._base_query().where(self.model.id.in_(ids)))
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def create(self, **kwargs: Any) -> ModelT:
        instance = self.model(**kwargs)
        self._session.add(instance)
        await self._session.flush()  # populate id / server defaults
        await self._session.refresh(instance)
        return instance

    async def update_where(self, criteria: dict[str, Any], **values: Any) -> int:
        """Single UPDATE guarded by *criteria*; returns the affected row count.

        Used for compare-and-set status changes: ``{"id": x, "status": expected}``.
        Callers treat 0 as "someone else changed the row first".
        """
        if "updated_at" not in values and hasattr(self.model, "updated_at"):
            values["updated_at"] = datetime.now(timezone.utc)

        stmt = update(self.model).values(**values)
        for col_name, expected in criteria.items():
            col = getattr(self.model, col_name)
            if isinstance(expected, (list, tuple, set, frozenset)):
                stmt = stmt.where(col.in_(list(expected)))
            elif expected is None:
                stmt = stmt.where(col.is_(None))
            else:
                stmt = stmt.where(col == expected)

        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount

    async def delete(self, entity_id: str) -> bool:
        result = await self._session.execute(
            delete(self.model).where(self.model.id == entity_id)
        )
        await self._session.flush()
        return result.rowcount > 0
