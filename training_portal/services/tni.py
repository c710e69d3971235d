"""TNI (Training Needs Identification): the employee-driven nomination intake."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.dates import start_of_local_year
from training_portal.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from training_portal.core.security import sanitize_input
from training_portal.domain.enums import NominationSource
from training_portal.domain.nomination import Nomination
from training_portal.domain.program import Program
from training_portal.repositories.employee import EmployeeRepository, SectionRepository
from training_portal.repositories.nomination import NominationRepository
from training_portal.repositories.program import ProgramRepository
from training_portal.schemas.nomination import (
    EmployeeAccess,
    EmployeeProfileOut,
    EmployeeProfileUpdate,
)
from training_portal.services.notifications import Mailer
from training_portal.services.nomination import NominationService
from training_portal.services.sheets import SheetsClient


class TNIService:
    def __init__(
        self,
        session: AsyncSession,
        mailer: Mailer | None = None,
        sheets: SheetsClient | None = None,
    ):
        self._employees = EmployeeRepository(session)
        self._sections = SectionRepository(session)
        self._programs = ProgramRepository(session)
        self._nominations = NominationRepository(session)
        self._nomination_service = NominationService(session, mailer=mailer, sheets=sheets)

    @staticmethod
    def _require_id(emp_id: str | None) -> str:
        emp_id = (emp_id or "").strip()
        if not emp_id:
            raise ValidationError("Employee ID is required.")
        return emp_id

    async def check_employee_access(self, emp_id: str | None) -> EmployeeAccess:
        emp_id = self._require_id(emp_id)
        exists = await self._employees.get_by_id(emp_id) is not None
        return EmployeeAccess(emp_id=emp_id, exists=exists)

    async def get_employee_profile(self, emp_id: str) -> EmployeeProfileOut:
        """The employee (if registered), this year's nominations and the section list."""
        emp_id = self._require_id(emp_id)
        employee = await self._employees.get_by_id(emp_id)
        nominations = (
            await self._nominations.list_for_employee_since(emp_id, start_of_local_year())
            if employee
            else []
        )
        sections = [s.name for s in await self._sections.all()]
        return EmployeeProfileOut.model_validate(
            {"employee": employee, "nominations": nominations, "sections": sections},
            from_attributes=True,
        )

    async def update_employee_profile(self, emp_id: str, data: EmployeeProfileUpdate):
        emp_id = self._require_id(emp_id)
        return await self._employees.upsert(
            emp_id,
            name=sanitize_input(data.name),
            email=sanitize_input(data.email) or None,
            grade=data.grade,
            section_name=sanitize_input(data.section_name) or None,
            location=sanitize_input(data.location) or None,
        )

    async def get_available_programs(self, emp_id: str) -> list[Program]:
        emp_id = self._require_id(emp_id)
        employee = await self._employees.get_by_id(emp_id)
        if not employee:
            raise NotFoundError("Employee", emp_id)
        programs = await self._programs.all()
        return [p for p in programs if p.is_open_to(employee.grade, employee.section_name)]

    async def submit_tni_nomination(
        self, emp_id: str, program_id: str, justification: str | None = None
    ) -> Nomination:
        emp_id = self._require_id(emp_id)
        employee = await self._employees.get_by_id(emp_id)
        if not employee:
            raise NotFoundError("Employee", emp_id)
        program = await self._programs.get_by_id(program_id)
        if not program:
            raise NotFoundError("Program", program_id)
        if not program.is_open_to(employee.grade, employee.section_name):
            raise ForbiddenError(f"'{program.name}' is not offered to your grade or section.")

        nomination = await self._nomination_service.create_nomination(
            employee,
            program,
            source=NominationSource.TNI,
            justification=justification,
        )
        return await self._nomination_service.get_nomination(nomination.id)
