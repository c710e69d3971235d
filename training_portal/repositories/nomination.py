"""Nomination and nomination-batch repositories."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from sqlalchemy import func, or_, select
from sqlalchemy.orm import selectinload

from training_portal.domain.employee import Employee
from training_portal.domain.enums import OPEN_NOMINATION_STATUSES, NominationStatus
from training_portal.domain.nomination import Nomination, NominationBatch
from training_portal.repositories.base import BaseRepository

_DETAIL_OPTIONS = (
    selectinload(Nomination.employee),
    selectinload(Nomination.program),
    selectinload(Nomination.batch),
)

_SORTABLE = {
    "created_at": Nomination.created_at,
    "updated_at": Nomination.updated_at,
    "status": Nomination.status,
    "emp_id": Nomination.emp_id,
}


class NominationRepository(BaseRepository[Nomination]):
    model = Nomination

    async def get_with_details(self, nomination_id: str) -> Nomination | None:
        return await self.get_by_id(nomination_id, *_DETAIL_OPTIONS)

    async def list_with_details(
        self,
        *,
        offset: int = 0,
        limit: int = 20,
        order_by: str = "created_at",
        order: str = "desc",
        filters: dict | None = None,
    ) -> tuple[list[Nomination], int]:
        q = self._apply_filters(select(Nomination), filters)
        total = (await self._session.execute(select(func.count()).select_from(q.subquery()))).scalar_one()
        col = _SORTABLE.get(order_by, Nomination.created_at)
        order_col = col.desc() if order == "desc" else col.asc()
        result = await self._session.execute(
            q.options(*_DETAIL_OPTIONS).order_by(order_col).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def list_for_email(self, email: str) -> list[Nomination]:
        """Nominations where *email* belongs to the nominee or to their manager."""
        email = email.strip().lower()
        result = await self._session.execute(
            select(Nomination)
            .join(Employee, Nomination.emp_id == Employee.id)
            .where(
                or_(
                    func.lower(Employee.email) == email,
                    func.lower(Employee.manager_email) == email,
                )
            )
            .options(*_DETAIL_OPTIONS)
            .order_by(Nomination.created_at.desc())
        )
        return list(result.scalars().all())

    async def find_open(self, emp_id: str, program_id: str) -> Nomination | None:
        result = await self._session.execute(
            select(Nomination)
            .where(Nomination.emp_id == emp_id)
            .where(Nomination.program_id == program_id)
            .where(Nomination.status.in_(OPEN_NOMINATION_STATUSES))
            .limit(1)
        )
        return result.scalars().first()

    async def list_for_employee_since(self, emp_id: str, since: datetime) -> list[Nomination]:
        result = await self._session.execute(
            select(Nomination)
            .where(Nomination.emp_id == emp_id)
            .where(Nomination.created_at >= since)
            .options(selectinload(Nomination.program), selectinload(Nomination.batch))
            .order_by(Nomination.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_unbatched_for_program(self, program_id: str) -> list[Nomination]:
        """Nominations waiting for a seat: no batch yet, Pending or Approved."""
        result = await self._session.execute(
            select(Nomination)
            .where(Nomination.program_id == program_id)
            .where(Nomination.batch_id.is_(None))
            .where(Nomination.status.in_((NominationStatus.PENDING, NominationStatus.APPROVED)))
            .options(selectinload(Nomination.employee))
            .order_by(Nomination.created_at.asc())
        )
        return list(result.scalars().all())

    async def list_unbatched_for_employees(
        self, program_id: str, emp_ids: Iterable[str]
    ) -> list[Nomination]:
        emp_ids = list(emp_ids)
        if not emp_ids:
            return []
        result = await self._session.execute(
            select(Nomination)
            .where(Nomination.program_id == program_id)
            .where(Nomination.emp_id.in_(emp_ids))
            .where(Nomination.batch_id.is_(None))
            .where(Nomination.status.in_((NominationStatus.PENDING, NominationStatus.APPROVED)))
        )
        return list(result.scalars().all())

    async def list_in_batch(
        self, batch_id: str, status: NominationStatus | None = None
    ) -> list[Nomination]:
        q = select(Nomination).where(Nomination.batch_id == batch_id)
        if status is not None:
            q = q.where(Nomination.status == status)
        result = await self._session.execute(
            q.options(selectinload(Nomination.employee)).order_by(Nomination.created_at.asc())
        )
        return list(result.scalars().all())

    async def find_in_batch(self, batch_id: str, emp_id: str) -> Nomination | None:
        return await self.get_by(batch_id=batch_id, emp_id=emp_id)


class NominationBatchRepository(BaseRepository[NominationBatch]):
    model = NominationBatch

    async def get_with_session(self, batch_id: str) -> NominationBatch | None:
        return await self.get_by_id(
            batch_id,
            selectinload(NominationBatch.session),
            selectinload(NominationBatch.program),
        )
