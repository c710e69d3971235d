"""Cohort repositories."""

from __future__ import annotations

from sqlalchemy import select

from training_portal.domain.cohort import Cohort, CohortFeedback, CohortMember, CohortProgram
from training_portal.domain.enums import CohortMemberStatus
from training_portal.repositories.base import BaseRepository


class CohortRepository(BaseRepository[Cohort]):
    model = Cohort

    async def list_all(self) -> list[Cohort]:
        result = await self._session.execute(select(Cohort).order_by(Cohort.created_at.desc()))
        return list(result.scalars().all())

    async def reload(self, cohort_id: str) -> Cohort | None:
        """Fetch again, refreshing the eagerly loaded programs / members."""
        result = await self._session.execute(
            select(Cohort).where(Cohort.id == cohort_id).execution_options(populate_existing=True)
        )
        return result.scalars().first()


class CohortProgramRepository(BaseRepository[CohortProgram]):
    model = CohortProgram

    async def list_for_cohort(self, cohort_id: str) -> list[CohortProgram]:
        result = await self._session.execute(
            select(CohortProgram)
            .where(CohortProgram.cohort_id == cohort_id)
            .execution_options(populate_existing=True)
            .order_by(CohortProgram.seq.asc())
        )
        return list(result.scalars().all())


class CohortMemberRepository(BaseRepository[CohortMember]):
    model = CohortMember

    async def member_ids(self, cohort_id: str) -> set[str]:
        result = await self._session.execute(
            select(CohortMember.employee_id).where(CohortMember.cohort_id == cohort_id)
        )
        return set(result.scalars().all())

    async def list_active(self, cohort_id: str) -> list[CohortMember]:
        result = await self._session.execute(
            select(CohortMember)
            .where(CohortMember.cohort_id == cohort_id)
            .where(CohortMember.status == CohortMemberStatus.ACTIVE)
        )
        return list(result.scalars().all())

    async def find(self, cohort_id: str, employee_id: str) -> CohortMember | None:
        return await self.get_by(cohort_id=cohort_id, employee_id=employee_id)


class CohortFeedbackRepository(BaseRepository[CohortFeedback]):
    model = CohortFeedback

    async def find(self, cohort_id: str, emp_id: str) -> CohortFeedback | None:
        return await self.get_by(cohort_id=cohort_id, emp_id=emp_id)
