"""Cohorts: a fixed group of employees taken through an ordered list of programs.

Scheduling a cohort program opens a regular session + batch and seats every
active member in it with a pre-approved nomination, so cohort sessions flow
through the same completion and feedback pipeline as any other session.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.dates import utcnow
from training_portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from training_portal.core.security import sanitize_input
from training_portal.domain.cohort import Cohort, CohortFeedback, CohortProgram
from training_portal.domain.enums import (
    CohortMemberStatus,
    CohortProgramStatus,
    CohortStatus,
    ManagerApprovalStatus,
    NominationSource,
    NominationStatus,
)
from training_portal.domain.session import TrainingSession
from training_portal.domain.workflow import ensure_transition
from training_portal.repositories.cohort import (
    CohortFeedbackRepository,
    CohortMemberRepository,
    CohortProgramRepository,
    CohortRepository,
)
from training_portal.repositories.employee import EmployeeRepository
from training_portal.repositories.nomination import NominationRepository
from training_portal.repositories.program import ProgramRepository
from training_portal.schemas.cohort import CohortCreate, CohortFeedbackIn, CohortSessionCreate, CohortUpdate
from training_portal.schemas.session import SessionCreate
from training_portal.services.notifications import Mailer
from training_portal.services.session import SessionService

logger = logging.getLogger(__name__)


class CohortService:
    def __init__(self, session: AsyncSession, mailer: Mailer | None = None):
        self._cohorts = CohortRepository(session)
        self._cohort_programs = CohortProgramRepository(session)
        self._members = CohortMemberRepository(session)
        self._feedback = CohortFeedbackRepository(session)
        self._programs = ProgramRepository(session)
        self._employees = EmployeeRepository(session)
        self._nominations = NominationRepository(session)
        self._session_service = SessionService(session, mailer=mailer)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def list_cohorts(self) -> list[Cohort]:
        return await self._cohorts.list_all()

    async def get_cohort(self, cohort_id: str) -> Cohort:
        cohort = await self._cohorts.reload(cohort_id)
        if not cohort:
            raise NotFoundError("Cohort", cohort_id)
        return cohort

    async def create_cohort(self, data: CohortCreate) -> Cohort:
        name = sanitize_input(data.name)
        if not name:
            raise ValidationError("Cohort name is required.")

        program_ids = list(dict.fromkeys(data.program_ids))
        found = {p.id for p in await self._programs.get_many(program_ids)}
        missing = [pid for pid in program_ids if pid not in found]
        if missing:
            raise NotFoundError("Program", ", ".join(missing))

        cohort = await self._cohorts.create(
            name=name,
            description=sanitize_input(data.description) or None,
            status=CohortStatus.DRAFT,
        )
        for seq, program_id in enumerate(program_ids, start=1):
            await self._cohort_programs.create(
                cohort_id=cohort.id,
                program_id=program_id,
                seq=seq,
                status=CohortProgramStatus.PENDING,
            )
        logger.info("Cohort %s created with %d programs", cohort.id, len(program_ids))
        return await self.get_cohort(cohort.id)

    async def update_cohort(self, cohort_id: str, data: CohortUpdate) -> Cohort:
        await self.get_cohort(cohort_id)
        values = {}
        if data.name is not None:
            name = sanitize_input(data.name)
            if not name:
                raise ValidationError("Cohort name is required.")
            values["name"] = name
        if data.description is not None:
            values["description"] = sanitize_input(data.description) or None
        if values:
            await self._cohorts.update_where({"id": cohort_id}, **values)
        return await self.get_cohort(cohort_id)

    async def delete_cohort(self, cohort_id: str) -> None:
        cohort = await self.get_cohort(cohort_id)
        if cohort.status != CohortStatus.DRAFT:
            raise ConflictError("Can only delete cohorts in Draft status.")
        await self._cohorts.delete(cohort_id)

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    async def add_members(self, cohort_id: str, employee_ids: list[str]) -> Cohort:
        await self.get_cohort(cohort_id)
        wanted = list(dict.fromkeys(e.strip() for e in employee_ids if e and e.strip()))
        found = {e.id for e in await self._employees.get_many(wanted)}
        missing = [emp_id for emp_id in wanted if emp_id not in found]
        if missing:
            raise NotFoundError("Employee", ", ".join(missing))

        existing = await self._members.member_ids(cohort_id)
        new_ids = [emp_id for emp_id in wanted if emp_id not in existing]
        if not new_ids:
            raise ConflictError("All employees are already in this cohort.")

        for emp_id in new_ids:
            await self._members.create(
                cohort_id=cohort_id, employee_id=emp_id, status=CohortMemberStatus.ACTIVE
            )
        logger.info("Added %d members to cohort %s", len(new_ids), cohort_id)
        return await self.get_cohort(cohort_id)

    async def remove_member(self, cohort_id: str, employee_id: str) -> Cohort:
        member = await self._members.find(cohort_id, employee_id)
        if not member:
            raise NotFoundError("Cohort member", employee_id)
        await self._members.delete(member.id)
        return await self.get_cohort(cohort_id)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    async def _get_cohort_program(self, cohort_program_id: str) -> CohortProgram:
        cohort_program = await self._cohort_programs.get_by_id(cohort_program_id)
        if not cohort_program:
            raise NotFoundError("Cohort program", cohort_program_id)
        return cohort_program

    async def schedule_cohort_session(
        self, cohort_program_id: str, data: CohortSessionCreate
    ) -> TrainingSession:
        """Open a session for one cohort program and seat every active member in it."""
        cohort_program = await self._get_cohort_program(cohort_program_id)
        if cohort_program.session_id:
            raise ConflictError("A session is already scheduled for this program.")
        ensure_transition(cohort_program.status, CohortProgramStatus.IN_PROGRESS)

        cohort = await self.get_cohort(cohort_program.cohort_id)
        program = cohort_program.program
        training_session = await self._session_service.create_session(
            SessionCreate(program_name=program.name, **data.model_dump()),
            program_id=program.id,
        )
        batch_id = training_session.nomination_batch_id

        members = await self._members.list_active(cohort.id)
        member_ids = [m.employee_id for m in members]
        waiting = await self._nominations.list_unbatched_for_employees(program.id, member_ids)
        for nomination in waiting:
            updated = await self._nominations.update_where(
                {"id": nomination.id, "status": nomination.status, "batch_id": None},
                batch_id=batch_id,
                status=NominationStatus.BATCHED,
                manager_approval_status=ManagerApprovalStatus.APPROVED,
            )
            if not updated:
                raise ConflictError(
                    f"Nomination {nomination.id} was changed by another request. Please reload."
                )

        seated = {n.emp_id for n in waiting}
        for emp_id in member_ids:
            if emp_id in seated:
                continue
            if await self._nominations.find_open(emp_id, program.id):
                logger.warning(
                    "Employee %s already holds a seat for '%s'; not added to cohort session",
                    emp_id, program.name,
                )
                continue
            await self._nominations.create(
                emp_id=emp_id,
                program_id=program.id,
                batch_id=batch_id,
                status=NominationStatus.BATCHED,
                manager_approval_status=ManagerApprovalStatus.APPROVED,
                source=NominationSource.COHORT,
            )

        await self._cohort_programs.update_where(
            {"id": cohort_program.id},
            session_id=training_session.id,
            status=CohortProgramStatus.IN_PROGRESS,
        )
        if cohort.status == CohortStatus.DRAFT:
            await self._cohorts.update_where(
                {"id": cohort.id, "status": CohortStatus.DRAFT}, status=CohortStatus.ACTIVE
            )

        logger.info(
            "Cohort %s: session %s scheduled for '%s' (%d moved, %d members)",
            cohort.id, training_session.id, program.name, len(waiting), len(member_ids),
        )
        return await self._session_service.get_session(training_session.id)

    async def mark_cohort_program_complete(self, cohort_program_id: str) -> Cohort:
        """Complete one program; the last one completes the cohort and its active members."""
        cohort_program = await self._get_cohort_program(cohort_program_id)
        ensure_transition(cohort_program.status, CohortProgramStatus.COMPLETED)
        await self._cohort_programs.update_where(
            {"id": cohort_program.id}, status=CohortProgramStatus.COMPLETED
        )

        programs = await self._cohort_programs.list_for_cohort(cohort_program.cohort_id)
        if all(p.status == CohortProgramStatus.COMPLETED for p in programs):
            cohort = await self.get_cohort(cohort_program.cohort_id)
            ensure_transition(cohort.status, CohortStatus.COMPLETED)
            await self._cohorts.update_where({"id": cohort.id}, status=CohortStatus.COMPLETED)
            await self._members.update_where(
                {"cohort_id": cohort.id, "status": CohortMemberStatus.ACTIVE},
                status=CohortMemberStatus.COMPLETED,
                completed_at=utcnow(),
            )
            logger.info("Cohort %s completed", cohort.id)
        return await self.get_cohort(cohort_program.cohort_id)

    # ------------------------------------------------------------------
    # Feedback
    # ------------------------------------------------------------------

    async def submit_cohort_feedback(self, cohort_id: str, data: CohortFeedbackIn) -> CohortFeedback:
        if data.rating < 1 or data.rating > 5:
            raise ValidationError("Rating must be between 1 and 5.")
        await self.get_cohort(cohort_id)
        emp_id = data.emp_id.strip()
        if not await self._members.find(cohort_id, emp_id):
            raise NotFoundError("Cohort member", emp_id)

        comments = sanitize_input(data.comments) or None
        existing = await self._feedback.find(cohort_id, emp_id)
        if existing:
            await self._feedback.update_where(
                {"id": existing.id}, rating=data.rating, comments=comments
            )
            return await self._feedback.get_by_id(existing.id)
        return await self._feedback.create(
            cohort_id=cohort_id, emp_id=emp_id, rating=data.rating, comments=comments
        )
