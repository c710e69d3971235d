"""Master data: sections, locations, designations, programs and the employee register."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from training_portal.core.security import sanitize_input
from training_portal.domain.employee import Designation, Employee, Location, Section
from training_portal.domain.enums import Grade
from training_portal.domain.program import Program
from training_portal.repositories.base import BaseRepository
from training_portal.repositories.employee import (
    DesignationRepository,
    EmployeeRepository,
    LocationRepository,
    SectionRepository,
)
from training_portal.repositories.program import ProgramRepository
from training_portal.schemas.employee import (
    EmployeeCreate,
    EmployeeImportResult,
    EmployeeImportRow,
    ProgramCreate,
)

logger = logging.getLogger(__name__)


class MasterDataService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._sections = SectionRepository(session)
        self._locations = LocationRepository(session)
        self._designations = DesignationRepository(session)
        self._programs = ProgramRepository(session)
        self._employees = EmployeeRepository(session)

    # ------------------------------------------------------------------
    # Named lookups (sections, locations, designations)
    # ------------------------------------------------------------------

    async def _create_named(self, repo: BaseRepository, entity: str, name: str):
        clean = sanitize_input(name)
        if not clean:
            raise ValidationError(f"{entity} name is required.")
        if await repo.get_by(name=clean):
            raise ConflictError(f"{entity} '{clean}' already exists.")
        return await repo.create(name=clean)

    async def _delete(self, repo: BaseRepository, entity: str, entity_id: str) -> None:
        if not await repo.delete(entity_id):
            raise NotFoundError(entity, entity_id)

    async def list_sections(self) -> list[Section]:
        return await self._sections.all()

    async def create_section(self, name: str) -> Section:
        return await self._create_named(self._sections, "Section", name)

    async def delete_section(self, section_id: str) -> None:
        await self._delete(self._sections, "Section", section_id)

    async def list_locations(self) -> list[Location]:
        return await self._locations.all()

    async def create_location(self, name: str) -> Location:
        return await self._create_named(self._locations, "Location", name)

    async def delete_location(self, location_id: str) -> None:
        await self._delete(self._locations, "Location", location_id)

    async def list_designations(self) -> list[Designation]:
        return await self._designations.all()

    async def create_designation(self, name: str) -> Designation:
        return await self._create_named(self._designations, "Designation", name)

    async def delete_designation(self, designation_id: str) -> None:
        await self._delete(self._designations, "Designation", designation_id)

    # ------------------------------------------------------------------
    # Programs
    # ------------------------------------------------------------------

    async def _resolve_sections(self, section_ids: Iterable[str]) -> list[Section]:
        wanted = list(dict.fromkeys(section_ids))
        sections = await self._sections.get_many(wanted)
        missing = set(wanted) - {s.id for s in sections}
        if missing:
            raise NotFoundError("Section", ", ".join(sorted(missing)))
        return sections

    async def list_programs(self) -> list[Program]:
        return await self._programs.all()

    async def get_program(self, program_id: str) -> Program:
        program = await self._programs.get_by_id(program_id)
        if not program:
            raise NotFoundError("Program", program_id)
        return program

    async def create_program(self, data: ProgramCreate) -> Program:
        name = sanitize_input(data.name)
        if not name:
            raise ValidationError("Program name is required.")
        if await self._programs.get_by_name(name):
            raise ConflictError(f"Program '{name}' already exists.")

        sections = await self._resolve_sections(data.section_ids)
        return await self._programs.create(
            name=name,
            category=data.category,
            description=sanitize_input(data.description) or None,
            target_grades=[g.value for g in data.target_grades],
            sections=sections,
        )

    async def update_program_sections(self, program_id: str, section_ids: list[str]) -> Program:
        program = await self.get_program(program_id)
        program.sections = await self._resolve_sections(section_ids)
        await self._session.flush()
        return program

    async def delete_program(self, program_id: str) -> None:
        await self._delete(self._programs, "Program", program_id)

    # ------------------------------------------------------------------
    # Employees
    # ------------------------------------------------------------------

    async def create_employee(self, data: EmployeeCreate) -> Employee:
        emp_id = data.id.strip()
        if await self._employees.get_by_id(emp_id):
            raise ConflictError(f"Employee '{emp_id}' already exists.")
        fields = data.model_dump(exclude={"id"})
        return await self._employees.create(id=emp_id, **fields)

    async def delete_employee(self, emp_id: str) -> None:
        await self._delete(self._employees, "Employee", emp_id)

    async def search_employees(self, query: str, limit: int = 20) -> list[Employee]:
        if not query or not query.strip():
            return []
        return await self._employees.search(query, limit=limit)

    async def import_employees(self, rows: list[EmployeeImportRow]) -> EmployeeImportResult:
        """Upsert valid rows; report each invalid row as ``Row N: <reason>`` (N is 1-based)."""
        count = 0
        errors: list[str] = []

        for index, row in enumerate(rows, start=1):
            emp_id = str(row.id).strip() if row.id is not None else ""
            if not emp_id or not row.name or not row.email or not row.grade:
                errors.append(f"Row {index}: Missing required fields (id, name, email, grade)")
                continue

            grade = Grade.parse(row.grade)
            if grade is None:
                errors.append(f"Row {index}: Invalid grade (Must be EXECUTIVE or WORKMAN)")
                continue

            await self._employees.upsert(
                emp_id,
                name=row.name.strip(),
                email=row.email.strip(),
                grade=grade,
                section_name=row.section_name or None,
                location=row.location or None,
                manager_name=row.manager_name or None,
                manager_email=row.manager_email or None,
            )
            count += 1

        logger.info("Employee import: %d upserted, %d rejected", count, len(errors))
        return EmployeeImportResult(count=count, errors=errors)
