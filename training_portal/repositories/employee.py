"""Repositories for employees and organisational master data."""

from __future__ import annotations

from typing import Any

from sqlalchemy import or_, select

from training_portal.domain.employee import Designation, Employee, Location, Section
from training_portal.repositories.base import BaseRepository


class SectionRepository(BaseRepository[Section]):
    model = Section


class LocationRepository(BaseRepository[Location]):
    model = Location


class DesignationRepository(BaseRepository[Designation]):
    model = Designation


class EmployeeRepository(BaseRepository[Employee]):
    model = Employee

    async def search(self, query: str, limit: int = 20) -> list[Employee]:
        """Case-insensitive match on id, name or email."""
        pattern = f"%{query.strip()}%"
        result = await self._session.execute(
            select(Employee)
            .where(
                or_(
                    Employee.id.ilike(pattern),
                    Employee.name.ilike(pattern),
                    Employee.email.ilike(pattern),
                )
            )
            .order_by(Employee.name.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def upsert(self, emp_id: str, **fields: Any) -> Employee:
        """Insert or update the master record for *emp_id* (only the given fields change)."""
        existing = await self.get_by_id(emp_id)
        if existing is None:
            return await self.create(id=emp_id, **fields)
        for name, value in fields.items():
            setattr(existing, name, value)
        await self._session.flush()
        return existing
