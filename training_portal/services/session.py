"""Training sessions and nomination batching.

A session owns exactly one batch. The batch moves Forming → Scheduled →
Completed; while Forming, admins add or remove nominations and employees can
self-join by QR code. Scheduling locks the roster. Completing the session
turns the batch's nominations into enrollments, which then drive the feedback
workflow.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.dates import ensure_utc, local_day_bounds, server_local_date_string, utcnow
from training_portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from training_portal.core.security import sanitize_input
from training_portal.domain.enums import (
    BatchStatus,
    EnrollmentStatus,
    ManagerApprovalStatus,
    NominationSource,
    NominationStatus,
)
from training_portal.domain.nomination import Nomination, NominationBatch
from training_portal.domain.session import Enrollment, TrainingSession
from training_portal.domain.workflow import ensure_transition
from training_portal.repositories.employee import EmployeeRepository
from training_portal.repositories.nomination import NominationBatchRepository, NominationRepository
from training_portal.repositories.program import ProgramRepository
from training_portal.repositories.session import EnrollmentRepository, TrainingSessionRepository
from training_portal.schemas.nomination import NominationOut
from training_portal.schemas.session import (
    JoinBatchResult,
    ParticipantIn,
    RegisterAndJoinIn,
    SelfEnrollIn,
    SessionCreate,
)
from training_portal.services.notifications import Mailer
from training_portal.services.nomination import NominationService

logger = logging.getLogger(__name__)

BATCH_LOCKED_MESSAGE = "This batch is locked. No new participants can be added."


def session_dates_label(session: TrainingSession) -> str:
    start = server_local_date_string(session.start_date)
    end = server_local_date_string(session.end_date)
    return start if start == end else f"{start} to {end}"


class SessionService:
    def __init__(self, session: AsyncSession, mailer: Mailer | None = None):
        self._session = session
        self._sessions = TrainingSessionRepository(session)
        self._enrollments = EnrollmentRepository(session)
        self._batches = NominationBatchRepository(session)
        self._nominations = NominationRepository(session)
        self._programs = ProgramRepository(session)
        self._employees = EmployeeRepository(session)
        self._nomination_service = NominationService(session, mailer=mailer)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def create_session(self, data: SessionCreate, program_id: str | None = None) -> TrainingSession:
        """Create a session and its Forming batch in the caller's transaction."""
        program = (
            await self._programs.get_by_id(program_id)
            if program_id
            else await self._programs.get_by_name(data.program_name.strip())
        )
        if not program:
            raise NotFoundError("Program", message=f"Program '{data.program_name}' not found.")

        start_date = ensure_utc(data.start_date)
        end_date = ensure_utc(data.end_date)
        if await self._sessions.find_duplicate(program.name, start_date, end_date):
            raise ConflictError(
                f"A session for '{program.name}' on these dates already exists.",
                code="DUPLICATE_SESSION",
            )

        batch = await self._batches.create(
            name=f"{program.name} - {server_local_date_string(start_date)}",
            program_id=program.id,
            status=BatchStatus.FORMING,
        )
        training_session = await self._sessions.create(
            program_name=program.name,
            trainer_name=sanitize_input(data.trainer_name) or None,
            start_date=start_date,
            end_date=end_date,
            start_time=data.start_time or "10:00 am",
            end_time=data.end_time or "1:00 pm",
            location=sanitize_input(data.location) or None,
            topics=sanitize_input(data.topics) or None,
            feedback_creation_date=ensure_utc(data.feedback_creation_date),
            template_type=data.template_type or "Technical",
            send_feedback_automatically=data.send_feedback_automatically,
            nomination_batch_id=batch.id,
        )
        logger.info("Session %s created for '%s' with batch %s", training_session.id, program.name, batch.id)
        return await self.get_session(training_session.id)

    async def list_sessions(self) -> list[TrainingSession]:
        return await self._sessions.list_all()

    async def get_session(self, session_id: str) -> TrainingSession:
        training_session = await self._sessions.get_with_details(session_id)
        if not training_session:
            raise NotFoundError("Session", session_id)
        return training_session

    async def get_upcoming_sessions(self) -> list[TrainingSession]:
        return await self._sessions.list_starting_from(utcnow())

    async def get_calendar_metadata(self, trainer_name: str | None = None) -> list[TrainingSession]:
        return await self._sessions.list_for_trainer(trainer_name)

    async def get_sessions_for_date(self, day: str | date, trainer_name: str | None = None) -> dict:
        """Sessions ending, or due for feedback, on the local calendar *day*.

        ``pending_count`` is the number of enrollments awaiting manager review
        (across the trainer's sessions when a trainer is given).
        """
        try:
            start, end = local_day_bounds(day)
        except ValueError as exc:
            raise ValidationError(f"Invalid date '{day}'. Expected YYYY-MM-DD.") from exc

        sessions = await self._sessions.list_touching_window(start, end, trainer_name)
        pending = await self._enrollments.count_with_status(
            EnrollmentStatus.PENDING_MANAGER, trainer_name
        )
        return {"sessions": sessions, "pending_count": pending}

    async def toggle_feedback_automation(self, session_id: str, enabled: bool) -> TrainingSession:
        updated = await self._sessions.update_where(
            {"id": session_id}, send_feedback_automatically=enabled
        )
        if not updated:
            raise NotFoundError("Session", session_id)
        return await self.get_session(session_id)

    # ------------------------------------------------------------------
    # Batch roster
    # ------------------------------------------------------------------

    async def _get_batch(self, batch_id: str) -> NominationBatch:
        batch = await self._batches.get_by_id(batch_id)
        if not batch:
            raise NotFoundError("Batch", batch_id)
        return batch

    async def _get_session_batch(self, session_id: str) -> tuple[TrainingSession, NominationBatch]:
        training_session = await self._sessions.get_with_batch(session_id)
        if not training_session:
            raise NotFoundError("Session", session_id)
        if training_session.batch is None:
            raise NotFoundError("Batch", message="This session has no batch.")
        return training_session, training_session.batch

    async def get_pending_nominations_for_program(self, program_id: str) -> list[Nomination]:
        return await self._nominations.list_unbatched_for_program(program_id)

    async def add_nominations_to_batch(self, batch_id: str, nomination_ids: list[str]) -> int:
        batch = await self._get_batch(batch_id)
        if batch.is_locked:
            raise ConflictError("Batch is locked.", code="BATCH_LOCKED")

        wanted = list(dict.fromkeys(nomination_ids))
        nominations = await self._nominations.get_many(wanted)
        missing = set(wanted) - {n.id for n in nominations}
        if missing:
            raise NotFoundError("Nomination", ", ".join(sorted(missing)))

        for nomination in nominations:
            if nomination.program_id != batch.program_id:
                raise ValidationError(f"Nomination {nomination.id} is for a different program.")
            if nomination.batch_id is not None:
                raise ConflictError(f"Nomination {nomination.id} is already in a batch.")
            ensure_transition(nomination.status, NominationStatus.BATCHED)

        for nomination in nominations:
            updated = await self._nominations.update_where(
                {"id": nomination.id, "status": nomination.status, "batch_id": None},
                batch_id=batch.id,
                status=NominationStatus.BATCHED,
            )
            if not updated:
                raise ConflictError(
                    f"Nomination {nomination.id} was changed by another request. Please reload."
                )

        logger.info("Added %d nominations to batch %s", len(nominations), batch.id)
        return len(nominations)

    async def remove_nomination_from_batch(self, nomination_id: str) -> Nomination:
        """Return a nomination to the unbatched pool, resetting its approval."""
        nomination = await self._nominations.get_by_id(nomination_id)
        if not nomination:
            raise NotFoundError("Nomination", nomination_id)
        if nomination.batch_id is None:
            raise ConflictError("Nomination is not in a batch.")

        batch = await self._get_batch(nomination.batch_id)
        if batch.is_locked:
            raise ConflictError("Batch is locked.", code="BATCH_LOCKED")

        updated = await self._nominations.update_where(
            {"id": nomination_id, "batch_id": batch.id},
            batch_id=None,
            status=NominationStatus.PENDING,
            manager_approval_status=ManagerApprovalStatus.PENDING,
            manager_rejection_reason=None,
        )
        if not updated:
            raise ConflictError("Nomination was changed by another request. Please reload.")
        return await self._nomination_service.get_nomination(nomination_id)

    async def lock_session_batch(self, session_id: str) -> NominationBatch:
        _, batch = await self._get_session_batch(session_id)
        updated = await self._batches.update_where(
            {"id": batch.id, "status": BatchStatus.FORMING}, status=BatchStatus.SCHEDULED
        )
        if not updated:
            current = await self._get_batch(batch.id)
            if current.status == BatchStatus.COMPLETED:
                raise ConflictError("Cannot lock a Completed batch.", code="BATCH_COMPLETED")
            raise ConflictError("Batch is already locked.", code="BATCH_LOCKED")

        logger.info("Batch %s locked for session %s", batch.id, session_id)
        return await self._get_batch(batch.id)

    async def complete_session(self, session_id: str) -> TrainingSession:
        """Close the batch and create a Pending enrollment per attending employee."""
        training_session, batch = await self._get_session_batch(session_id)
        updated = await self._batches.update_where(
            {"id": batch.id, "status": BatchStatus.SCHEDULED}, status=BatchStatus.COMPLETED
        )
        if not updated:
            current = await self._get_batch(batch.id)
            ensure_transition(current.status, BatchStatus.COMPLETED)
            raise ConflictError("Batch was changed by another request. Please reload.")

        attending = await self._nominations.list_in_batch(batch.id, NominationStatus.BATCHED)
        await self._nominations.update_where(
            {"batch_id": batch.id, "status": NominationStatus.BATCHED},
            status=NominationStatus.COMPLETED,
        )

        enrolled = await self._enrollments.emails_for_session(session_id)
        rows = []
        for nomination in attending:
            employee = nomination.employee
            if not employee or not employee.email:
                logger.warning(
                    "Employee %s has no email; no enrollment created for session %s",
                    nomination.emp_id, session_id,
                )
                continue
            if employee.email.lower() in enrolled:
                continue
            enrolled.add(employee.email.lower())
            rows.append(
                {
                    "session_id": session_id,
                    "employee_name": employee.name,
                    "employee_email": employee.email,
                    "emp_id": employee.id,
                    "manager_name": employee.manager_name,
                    "manager_email": employee.manager_email,
                    "status": EnrollmentStatus.PENDING,
                }
            )
        await self._enrollments.add_all(rows)

        logger.info(
            "Session %s completed: %d nominations closed, %d enrollments created",
            training_session.id, len(attending), len(rows),
        )
        return await self.get_session(session_id)

    # ------------------------------------------------------------------
    # QR self-join
    # ------------------------------------------------------------------

    async def join_batch(self, batch_id: str, emp_id: str) -> JoinBatchResult:
        emp_id = (emp_id or "").strip()
        employee = await self._employees.get_by_id(emp_id) if emp_id else None
        if not employee:
            return JoinBatchResult(joined=False, employee_not_found=True, message="EMPLOYEE_NOT_FOUND")

        batch = await self._batches.get_with_session(batch_id)
        if not batch:
            raise NotFoundError("Batch", message="Invalid Batch ID.")
        if batch.is_locked:
            raise ConflictError(BATCH_LOCKED_MESSAGE, code="BATCH_LOCKED")
        if await self._nominations.find_in_batch(batch.id, employee.id):
            raise ConflictError("You are already enrolled in this session.", code="ALREADY_ENROLLED")

        existing = await self._nominations.find_open(employee.id, batch.program_id)
        if existing is not None and existing.batch_id is not None:
            raise ConflictError(
                "You are already enrolled in another session for this program.",
                code="ALREADY_ENROLLED",
            )

        if existing is not None:
            # Reuse the waiting nomination instead of opening a second one
            ensure_transition(existing.status, NominationStatus.BATCHED)
            updated = await self._nominations.update_where(
                {"id": existing.id, "status": existing.status, "batch_id": None},
                batch_id=batch.id,
                status=NominationStatus.BATCHED,
            )
            if not updated:
                raise ConflictError(
                    "Your nomination was changed by another request. Please try again."
                )
            nomination = existing
        else:
            nomination = await self._nominations.create(
                emp_id=employee.id,
                program_id=batch.program_id,
                batch_id=batch.id,
                status=NominationStatus.BATCHED,
                manager_approval_status=ManagerApprovalStatus.PENDING,
                source=NominationSource.QR,
            )
        logger.info("Employee %s joined batch %s (nomination %s)", employee.id, batch.id, nomination.id)

        program_name = batch.program.name if batch.program else batch.name
        dates = session_dates_label(batch.session) if batch.session else batch.name
        await self._nomination_service.request_manager_approval(
            nomination, employee, program_name, session_dates=dates
        )
        return JoinBatchResult(
            joined=True,
            nomination=NominationOut.model_validate(
                await self._nomination_service.get_nomination(nomination.id)
            ),
        )

    async def register_and_join_batch(self, batch_id: str, data: RegisterAndJoinIn) -> JoinBatchResult:
        fields = {
            key: (sanitize_input(value) or None) if isinstance(value, str) else value
            for key, value in data.model_dump(exclude={"emp_id"}).items()
        }
        await self._employees.upsert(data.emp_id.strip(), **fields)
        return await self.join_batch(batch_id, data.emp_id)

    # ------------------------------------------------------------------
    # Direct enrollments
    # ------------------------------------------------------------------

    async def add_participants(self, session_id: str, participants: list[ParticipantIn]) -> int:
        """Insert enrollments, skipping e-mails already enrolled. Returns the number added."""
        training_session = await self._sessions.get_with_batch(session_id)
        if not training_session:
            raise NotFoundError("Session", session_id)
        if training_session.batch is not None and training_session.batch.is_locked:
            raise ConflictError(BATCH_LOCKED_MESSAGE, code="BATCH_LOCKED")

        enrolled = await self._enrollments.emails_for_session(session_id)
        rows = []
        for participant in participants:
            email = participant.email.strip()
            if email.lower() in enrolled:
                continue
            enrolled.add(email.lower())
            rows.append(
                {
                    "session_id": session_id,
                    "employee_name": sanitize_input(participant.name),
                    "employee_email": email,
                    "emp_id": participant.emp_id,
                    "manager_name": sanitize_input(participant.manager_name) or None,
                    "manager_email": participant.manager_email,
                    "status": EnrollmentStatus.PENDING,
                }
            )
        await self._enrollments.add_all(rows)
        return len(rows)

    async def self_enroll(self, data: SelfEnrollIn) -> tuple[Enrollment, bool]:
        """Level-1 feedback form. Returns (enrollment, created); an existing one is left as is."""
        if not await self._sessions.get_by_id(data.session_id):
            raise NotFoundError("Session", data.session_id)

        existing = await self._enrollments.find_for_session(data.session_id, data.email.strip())
        if existing:
            logger.info("%s already enrolled in session %s; skipping", data.email, data.session_id)
            return existing, False

        enrollment = await self._enrollments.create(
            session_id=data.session_id,
            employee_name=sanitize_input(data.name),
            employee_email=data.email.strip(),
            emp_id=data.emp_id,
            manager_name=sanitize_input(data.manager_name) or None,
            manager_email=data.manager_email.strip(),
            pre_training_rating=data.pre_training_rating,
            post_training_rating=data.post_training_rating,
            training_rating=data.training_rating,
            content_rating=data.content_rating,
            trainer_rating=data.trainer_rating,
            material_rating=data.material_rating,
            recommendation_rating=data.recommendation_rating,
            topics_learned=sanitize_input(data.topics_learned) or None,
            action_plan=sanitize_input(data.action_plan) or None,
            suggestions=sanitize_input(data.suggestions) or None,
            status=EnrollmentStatus.PENDING,
        )
        return enrollment, True
