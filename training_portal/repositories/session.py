"""Training-session and enrollment repositories."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from sqlalchemy import func, or_, select
from sqlalchemy.orm import selectinload

from training_portal.domain.enums import EnrollmentStatus
from training_portal.domain.nomination import Nomination, NominationBatch
from training_portal.domain.session import Enrollment, TrainingSession
from training_portal.repositories.base import BaseRepository


class TrainingSessionRepository(BaseRepository[TrainingSession]):
    model = TrainingSession

    async def get_with_details(self, session_id: str) -> TrainingSession | None:
        """Session with its batch (and the batch's nominations + employees) and enrollments."""
        return await self.get_by_id(
            session_id,
            selectinload(TrainingSession.batch)
            .selectinload(NominationBatch.nominations)
            .selectinload(Nomination.employee),
            selectinload(TrainingSession.enrollments),
        )

    async def get_with_batch(self, session_id: str) -> TrainingSession | None:
        return await self.get_by_id(session_id, selectinload(TrainingSession.batch))

    async def find_duplicate(
        self, program_name: str, start_date: datetime, end_date: datetime
    ) -> TrainingSession | None:
        return await self.get_by(program_name=program_name, start_date=start_date, end_date=end_date)

    async def list_all(self) -> list[TrainingSession]:
        result = await self._session.execute(
            select(TrainingSession)
            .options(selectinload(TrainingSession.batch))
            .order_by(TrainingSession.start_date.desc())
        )
        return list(result.scalars().all())

    async def list_starting_from(self, moment: datetime) -> list[TrainingSession]:
        result = await self._session.execute(
            select(TrainingSession)
            .where(TrainingSession.start_date >= moment)
            .options(selectinload(TrainingSession.batch))
            .order_by(TrainingSession.start_date.asc())
        )
        return list(result.scalars().all())

    async def list_for_trainer(self, trainer_name: str | None) -> list[TrainingSession]:
        q = select(TrainingSession)
        if trainer_name:
            q = q.where(TrainingSession.trainer_name == trainer_name)
        result = await self._session.execute(q.order_by(TrainingSession.start_date.desc()))
        return list(result.scalars().all())

    async def list_touching_window(
        self, start: datetime, end: datetime, trainer_name: str | None = None
    ) -> list[TrainingSession]:
        """Sessions whose end date or feedback date falls inside [start, end]."""
        q = select(TrainingSession).where(
            or_(
                TrainingSession.end_date.between(start, end),
                TrainingSession.feedback_creation_date.between(start, end),
            )
        )
        if trainer_name:
            q = q.where(TrainingSession.trainer_name == trainer_name)
        result = await self._session.execute(
            q.options(selectinload(TrainingSession.batch), selectinload(TrainingSession.enrollments))
            .order_by(TrainingSession.start_date.desc())
        )
        return list(result.scalars().all())

    async def list_due_for_automated_feedback(self, now: datetime) -> list[TrainingSession]:
        result = await self._session.execute(
            select(TrainingSession)
            .where(TrainingSession.send_feedback_automatically.is_(True))
            .where(TrainingSession.emails_sent.is_(False))
            .where(TrainingSession.feedback_creation_date.is_not(None))
            .where(TrainingSession.feedback_creation_date <= now)
        )
        return list(result.scalars().all())

    async def list_due_for_reminder(self, now: datetime) -> list[TrainingSession]:
        result = await self._session.execute(
            select(TrainingSession)
            .where(TrainingSession.feedback_reminder_sent.is_(False))
            .where(TrainingSession.trainer_name.is_not(None))
            .where(TrainingSession.feedback_creation_date.is_not(None))
            .where(TrainingSession.feedback_creation_date <= now)
        )
        return list(result.scalars().all())


class EnrollmentRepository(BaseRepository[Enrollment]):
    model = Enrollment

    async def get_with_session(self, enrollment_id: str) -> Enrollment | None:
        return await self.get_by_id(enrollment_id, selectinload(Enrollment.session))

    async def find_for_session(self, session_id: str, email: str) -> Enrollment | None:
        """Case-insensitive on the e-mail, like every other enrollment lookup."""
        result = await self._session.execute(
            select(Enrollment)
            .where(Enrollment.session_id == session_id)
            .where(func.lower(Enrollment.employee_email) == email.strip().lower())
            .limit(1)
        )
        return result.scalars().first()

    async def emails_for_session(self, session_id: str) -> set[str]:
        result = await self._session.execute(
            select(func.lower(Enrollment.employee_email)).where(Enrollment.session_id == session_id)
        )
        return set(result.scalars().all())

    async def list_for_session(
        self, session_id: str, status: EnrollmentStatus | None = None
    ) -> list[Enrollment]:
        q = select(Enrollment).where(Enrollment.session_id == session_id)
        if status is not None:
            q = q.where(Enrollment.status == status)
        result = await self._session.execute(q.order_by(Enrollment.employee_name.asc()))
        return list(result.scalars().all())

    async def count_with_status(
        self, status: EnrollmentStatus, trainer_name: str | None = None
    ) -> int:
        """Enrollments in *status*, optionally only in sessions run by *trainer_name*."""
        q = select(func.count()).select_from(Enrollment).where(Enrollment.status == status)
        if trainer_name:
            q = q.join(TrainingSession, Enrollment.session_id == TrainingSession.id).where(
                TrainingSession.trainer_name == trainer_name
            )
        return (await self._session.execute(q)).scalar_one()

    async def add_all(self, rows: Iterable[dict]) -> list[Enrollment]:
        enrollments = [Enrollment(**row) for row in rows]
        self._session.add_all(enrollments)
        await self._session.flush()
        return enrollments
