"""Post-training feedback: employee ratings, manager validation and the cron jobs.

Enrollment status flow::

    Pending ──employee submits──▶ Pending Manager ──manager agrees──▶ Completed
                                                  └─manager disagrees─▶ Manager Disagrees
"""

from __future__ import annotations

import logging
from statistics import mean

from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.config import settings
from training_portal.core.dates import utcnow
from training_portal.core.exceptions import (
    AppException,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from training_portal.core.security import (
    employee_feedback_scope,
    generate_secure_token,
    manager_feedback_scope,
    sanitize_input,
    verify_secure_token,
)
from training_portal.domain.enums import EnrollmentStatus
from training_portal.domain.session import Enrollment
from training_portal.domain.workflow import ensure_transition
from training_portal.repositories.session import EnrollmentRepository, TrainingSessionRepository
from training_portal.repositories.trainer import TrainerRepository
from training_portal.schemas.feedback import EmployeeFeedbackIn, ManagerReviewIn
from training_portal.services import notifications
from training_portal.services.notifications import Mailer, get_mailer

logger = logging.getLogger(__name__)

RATING_FIELDS = ("q1_relevance", "q2_application", "q3_performance", "q4_influence", "q5_efficiency")


def _token_for(scope: str) -> str:
    try:
        return generate_secure_token(scope)
    except RuntimeError as exc:
        raise AppException(str(exc), status_code=500, code="CONFIG_ERROR") from exc


class FeedbackService:
    def __init__(self, session: AsyncSession, mailer: Mailer | None = None):
        self._session = session
        self._sessions = TrainingSessionRepository(session)
        self._enrollments = EnrollmentRepository(session)
        self._trainers = TrainerRepository(session)
        self._mailer = mailer or get_mailer()

    async def _get_enrollment(self, enrollment_id: str) -> Enrollment:
        enrollment = await self._enrollments.get_with_session(enrollment_id)
        if not enrollment:
            raise NotFoundError("Enrollment", enrollment_id)
        return enrollment

    async def get_enrollment(self, enrollment_id: str, token: str | None, *, manager: bool = False) -> Enrollment:
        """Enrollment shown on the tokenised feedback page."""
        scope = manager_feedback_scope(enrollment_id) if manager else employee_feedback_scope(enrollment_id)
        if not verify_secure_token(token, scope):
            raise UnauthorizedError("This feedback link is invalid or has expired.")
        return await self._get_enrollment(enrollment_id)

    # ------------------------------------------------------------------
    # Employee feedback
    # ------------------------------------------------------------------

    async def send_feedback_emails(self, session_id: str) -> int:
        """E-mail every Pending enrollment its feedback link. Returns the number sent."""
        training_session = await self._sessions.get_by_id(session_id)
        if not training_session:
            raise NotFoundError("Session", session_id)

        pending = await self._enrollments.list_for_session(session_id, EnrollmentStatus.PENDING)
        sent = 0
        for enrollment in pending:
            email = notifications.feedback_request(
                employee_email=enrollment.employee_email,
                employee_name=enrollment.employee_name,
                program_name=training_session.program_name,
                enrollment_id=enrollment.id,
                token=_token_for(employee_feedback_scope(enrollment.id)),
            )
            result = await self._mailer.deliver(email)
            if result.success:
                sent += 1
            else:
                logger.warning(
                    "Feedback request to %s failed: %s", enrollment.employee_email, result.error
                )

        await self._sessions.update_where({"id": session_id}, emails_sent=True)
        logger.info("Feedback emails for session %s: %d of %d sent", session_id, sent, len(pending))
        return sent

    async def resend_feedback_link(self, enrollment_id: str) -> None:
        """Mail one enrollment its feedback link again, whatever the session's emails_sent flag."""
        enrollment = await self._get_enrollment(enrollment_id)
        if enrollment.status != EnrollmentStatus.PENDING:
            raise ConflictError("Feedback has already been submitted.", code="ALREADY_SUBMITTED")

        email = notifications.feedback_request(
            employee_email=enrollment.employee_email,
            employee_name=enrollment.employee_name,
            program_name=enrollment.session.program_name if enrollment.session else "",
            enrollment_id=enrollment.id,
            token=_token_for(employee_feedback_scope(enrollment.id)),
        )
        result = await self._mailer.deliver(email)
        if not result.success:
            raise AppException(
                f"Failed to send the feedback link: {result.error}",
                status_code=502,
                code="MAIL_FAILED",
            )
        logger.info("Feedback link re-sent for enrollment %s", enrollment_id)

    async def submit_employee_feedback(self, enrollment_id: str, data: EmployeeFeedbackIn) -> Enrollment:
        if not verify_secure_token(data.token, employee_feedback_scope(enrollment_id)):
            raise UnauthorizedError("This feedback link is invalid or has expired.")

        ratings = [data.q1, data.q2, data.q3, data.q4, data.q5]
        if any(r < 1 or r > 5 for r in ratings):
            raise ValidationError("All ratings must be between 1 and 5.")

        enrollment = await self._get_enrollment(enrollment_id)
        if enrollment.status != EnrollmentStatus.PENDING:
            raise ConflictError("Feedback has already been submitted.", code="ALREADY_SUBMITTED")

        average = round(mean(ratings), 2)
        updated = await self._enrollments.update_where(
            {"id": enrollment_id, "status": EnrollmentStatus.PENDING},
            **dict(zip(RATING_FIELDS, ratings)),
            average_rating=average,
            status=EnrollmentStatus.PENDING_MANAGER,
        )
        if not updated:
            raise ConflictError("Feedback has already been submitted.", code="ALREADY_SUBMITTED")

        program_name = enrollment.session.program_name if enrollment.session else ""
        if enrollment.manager_email:
            review = notifications.feedback_review_request(
                manager_email=enrollment.manager_email,
                manager_name=enrollment.manager_name,
                employee_name=enrollment.employee_name,
                program_name=program_name,
                enrollment_id=enrollment_id,
                token=_token_for(manager_feedback_scope(enrollment_id)),
            )
            result = await self._mailer.deliver(review)
            if not result.success:
                logger.error("Review request for enrollment %s failed: %s", enrollment_id, result.error)
        else:
            logger.warning("Enrollment %s has no manager email; review request not sent", enrollment_id)

        await self._mailer.deliver(
            notifications.feedback_acknowledgment(
                email=enrollment.employee_email,
                employee_name=enrollment.employee_name,
                program_name=program_name,
                average_rating=average,
            )
        )
        return await self._get_enrollment(enrollment_id)

    # ------------------------------------------------------------------
    # Manager validation
    # ------------------------------------------------------------------

    async def submit_manager_review(self, enrollment_id: str, data: ManagerReviewIn) -> Enrollment:
        if not verify_secure_token(data.token, manager_feedback_scope(enrollment_id)):
            raise UnauthorizedError("This review link is invalid or has expired.")

        agree = (data.agree or "").strip().capitalize()
        if agree not in ("Yes", "No"):
            raise ValidationError("Please answer Yes or No.")

        enrollment = await self._get_enrollment(enrollment_id)
        target = EnrollmentStatus.MANAGER_DISAGREES if agree == "No" else EnrollmentStatus.COMPLETED
        if enrollment.status != EnrollmentStatus.PENDING_MANAGER:
            raise ConflictError("This feedback is not awaiting manager review.", code="NOT_AWAITING_REVIEW")
        ensure_transition(enrollment.status, target)

        comments = sanitize_input(data.comments) or None
        updated = await self._enrollments.update_where(
            {"id": enrollment_id, "status": EnrollmentStatus.PENDING_MANAGER},
            manager_agrees=agree,
            manager_comment=comments,
            status=target,
        )
        if not updated:
            raise ConflictError("This feedback is not awaiting manager review.", code="NOT_AWAITING_REVIEW")

        if target is EnrollmentStatus.MANAGER_DISAGREES:
            await self._notify_disagreement(enrollment, comments)
        return await self._get_enrollment(enrollment_id)

    async def _notify_disagreement(self, enrollment: Enrollment, comments: str | None) -> None:
        training_session = enrollment.session
        program_name = training_session.program_name if training_session else ""
        recipients = []
        if training_session and training_session.trainer_name:
            trainer = await self._trainers.get_by_name(training_session.trainer_name)
            if trainer and trainer.email:
                recipients.append(trainer.email)
        if settings.admin_notification_email:
            recipients.append(settings.admin_notification_email)

        for to in recipients:
            result = await self._mailer.deliver(
                notifications.manager_disagreement_notice(
                    to=to,
                    manager_name=enrollment.manager_name or "The manager",
                    employee_name=enrollment.employee_name,
                    program_name=program_name,
                    comments=comments,
                )
            )
            if not result.success:
                logger.error("Disagreement notice to %s failed: %s", to, result.error)

    # ------------------------------------------------------------------
    # Cron jobs
    # ------------------------------------------------------------------

    async def run_automated_feedback(self) -> int:
        """Send feedback e-mails for every session whose feedback date has passed."""
        due = await self._sessions.list_due_for_automated_feedback(utcnow())
        total = 0
        for training_session in due:
            total += await self.send_feedback_emails(training_session.id)
        logger.info("Automated feedback: %d sessions processed, %d emails sent", len(due), total)
        return total

    async def run_feedback_reminders(self) -> int:
        """Remind trainers whose sessions reached the feedback date. Returns reminders sent."""
        due = await self._sessions.list_due_for_reminder(utcnow())
        sent = 0
        for training_session in due:
            trainer = await self._trainers.get_by_name(training_session.trainer_name)
            if not trainer or not trainer.email:
                logger.warning(
                    "No email for trainer '%s'; reminder for session %s skipped",
                    training_session.trainer_name, training_session.id,
                )
                continue
            result = await self._mailer.deliver(
                notifications.trainer_reminder(
                    trainer_email=trainer.email,
                    trainer_name=trainer.name,
                    program_name=training_session.program_name,
                )
            )
            if not result.success:
                logger.error("Reminder for session %s failed: %s", training_session.id, result.error)
                continue
            await self._sessions.update_where({"id": training_session.id}, feedback_reminder_sent=True)
            sent += 1
        return sent
