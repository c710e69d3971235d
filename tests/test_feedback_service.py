from __future__ import annotations

from datetime import timedelta

import pytest

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
)
from training_portal.domain.enums import EnrollmentStatus
from training_portal.repositories.session import EnrollmentRepository, TrainingSessionRepository
from training_portal.schemas.feedback import EmployeeFeedbackIn, ManagerReviewIn
from training_portal.schemas.session import ParticipantIn
from training_portal.services.feedback import FeedbackService
from training_portal.services.session import SessionService
from tests.factories import make_program, make_trainer, session_payload


@pytest.fixture
def service(session, mailer):
    return FeedbackService(session, mailer=mailer)


async def _session_with_participant(session, mailer, **overrides):
    await make_program(session)
    sessions = SessionService(session, mailer=mailer)
    training_session = await sessions.create_session(session_payload(**overrides))
    await sessions.add_participants(
        training_session.id,
        [
            ParticipantIn(
                name="Asha Rao",
                email="asha@example.com",
                emp_id="E100",
                manager_name="Vikram Shah",
                manager_email="manager@example.com",
            )
        ],
    )
    [enrollment] = await EnrollmentRepository(session).list_for_session(training_session.id)
    return training_session, enrollment


def _feedback(enrollment_id, *ratings):
    return EmployeeFeedbackIn(
        token=generate_secure_token(employee_feedback_scope(enrollment_id)),
        **{f"q{i}": r for i, r in enumerate(ratings, start=1)},
    )


def _review(enrollment_id, agree, comments=None):
    return ManagerReviewIn(
        token=generate_secure_token(manager_feedback_scope(enrollment_id)),
        agree=agree,
        comments=comments,
    )


async def test_send_feedback_emails(session, service, mailer):
    training_session, enrollment = await _session_with_participant(session, mailer)

    assert await service.send_feedback_emails(training_session.id) == 1
    [email] = mailer.to("asha@example.com")
    assert f"/feedback/employee/{enrollment.id}?token=" in email.html

    refreshed = await TrainingSessionRepository(session).get_by_id(training_session.id)
    assert refreshed.emails_sent is True


async def test_failed_feedback_emails_are_not_counted(session, service, mailer):
    training_session, _ = await _session_with_participant(session, mailer)
    mailer.fail = True
    assert await service.send_feedback_emails(training_session.id) == 0


async def test_resend_feedback_link_after_bulk_send(session, service, mailer):
    training_session, enrollment = await _session_with_participant(session, mailer)
    await service.send_feedback_emails(training_session.id)

    await service.resend_feedback_link(enrollment.id)

    first, second = mailer.to("asha@example.com")
    assert second.subject == first.subject
    assert f"/feedback/employee/{enrollment.id}?token=" in second.html


async def test_resend_feedback_link_refusals(session, service, mailer):
    _, enrollment = await _session_with_participant(session, mailer)

    with pytest.raises(NotFoundError):
        await service.resend_feedback_link("missing")

    mailer.fail = True
    with pytest.raises(AppException) as exc_info:
        await service.resend_feedback_link(enrollment.id)
    assert exc_info.value.code == "MAIL_FAILED"

    mailer.fail = False
    await service.submit_employee_feedback(enrollment.id, _feedback(enrollment.id, 4, 4, 4, 4, 4))
    with pytest.raises(ConflictError) as exc_info:
        await service.resend_feedback_link(enrollment.id)
    assert exc_info.value.code == "ALREADY_SUBMITTED"


async def test_employee_feedback_moves_to_manager(session, service, mailer):
    _, enrollment = await _session_with_participant(session, mailer)

    updated = await service.submit_employee_feedback(enrollment.id, _feedback(enrollment.id, 5, 4, 4, 3, 5))

    assert updated.status is EnrollmentStatus.PENDING_MANAGER
    assert updated.average_rating == 4.2
    assert updated.q1_relevance == 5
    assert updated.q5_efficiency == 5
    [review] = mailer.to("manager@example.com")
    assert f"/feedback/manager/{enrollment.id}?token=" in review.html
    assert len(mailer.to("asha@example.com")) == 1


@pytest.mark.parametrize("ratings", [(0, 4, 4, 4, 4), (5, 5, 5, 5, 6)])
async def test_ratings_must_be_in_range(session, service, mailer, ratings):
    _, enrollment = await _session_with_participant(session, mailer)
    with pytest.raises(ValidationError, match="All ratings must be between 1 and 5."):
        await service.submit_employee_feedback(enrollment.id, _feedback(enrollment.id, *ratings))


async def test_feedback_only_once(session, service, mailer):
    _, enrollment = await _session_with_participant(session, mailer)
    await service.submit_employee_feedback(enrollment.id, _feedback(enrollment.id, 3, 3, 3, 3, 3))
    with pytest.raises(ConflictError) as exc_info:
        await service.submit_employee_feedback(enrollment.id, _feedback(enrollment.id, 3, 3, 3, 3, 3))
    assert exc_info.value.code == "ALREADY_SUBMITTED"


async def test_manager_token_cannot_submit_employee_feedback(session, service, mailer):
    _, enrollment = await _session_with_participant(session, mailer)
    data = _feedback(enrollment.id, 3, 3, 3, 3, 3)
    data.token = generate_secure_token(manager_feedback_scope(enrollment.id))
    with pytest.raises(UnauthorizedError):
        await service.submit_employee_feedback(enrollment.id, data)


async def test_get_enrollment_checks_token_kind(session, service, mailer):
    _, enrollment = await _session_with_participant(session, mailer)
    token = generate_secure_token(employee_feedback_scope(enrollment.id))
    assert (await service.get_enrollment(enrollment.id, token)).id == enrollment.id
    with pytest.raises(UnauthorizedError):
        await service.get_enrollment(enrollment.id, token, manager=True)


async def test_manager_agrees(session, service, mailer):
    _, enrollment = await _session_with_participant(session, mailer)
    await service.submit_employee_feedback(enrollment.id, _feedback(enrollment.id, 4, 4, 4, 4, 4))

    reviewed = await service.submit_manager_review(enrollment.id, _review(enrollment.id, "yes", "Good"))

    assert reviewed.status is EnrollmentStatus.COMPLETED
    assert reviewed.manager_agrees == "Yes"
    assert reviewed.manager_comment == "Good"


async def test_manager_disagrees_notifies_trainer_and_admin(session, service, mailer, monkeypatch):
    monkeypatch.setattr(settings, "admin_notification_email", "admin@example.com")
    await make_trainer(session)
    _, enrollment = await _session_with_participant(session, mailer)
    await service.submit_employee_feedback(enrollment.id, _feedback(enrollment.id, 5, 5, 5, 5, 5))

    reviewed = await service.submit_manager_review(
        enrollment.id, _review(enrollment.id, "No", "Not what I observe")
    )

    assert reviewed.status is EnrollmentStatus.MANAGER_DISAGREES
    assert len(mailer.to("trainer@example.com")) == 1
    assert len(mailer.to("admin@example.com")) == 1
    assert "Not what I observe" in mailer.to("trainer@example.com")[0].html


async def test_manager_review_requires_submitted_feedback(session, service, mailer):
    _, enrollment = await _session_with_participant(session, mailer)
    with pytest.raises(ConflictError) as exc_info:
        await service.submit_manager_review(enrollment.id, _review(enrollment.id, "Yes"))
    assert exc_info.value.code == "NOT_AWAITING_REVIEW"


async def test_manager_answer_must_be_yes_or_no(session, service, mailer):
    _, enrollment = await _session_with_participant(session, mailer)
    with pytest.raises(ValidationError):
        await service.submit_manager_review(enrollment.id, _review(enrollment.id, "maybe"))


async def test_automated_feedback_sends_due_sessions_only(session, service, mailer):
    await _session_with_participant(
        session,
        mailer,
        feedback_creation_date=utcnow() - timedelta(hours=1),
        send_feedback_automatically=True,
    )

    assert await service.run_automated_feedback() == 1
    # Flag is set, so a second run has nothing to do
    assert await service.run_automated_feedback() == 0


async def test_feedback_reminders(session, service, mailer):
    await make_trainer(session)
    await _session_with_participant(session, mailer, feedback_creation_date=utcnow() - timedelta(hours=1))

    assert await service.run_feedback_reminders() == 1
    assert len(mailer.to("trainer@example.com")) == 1
    assert await service.run_feedback_reminders() == 0


async def test_reminder_skipped_without_trainer_email(session, service, mailer):
    await make_trainer(session, email=None)
    await _session_with_participant(session, mailer, feedback_creation_date=utcnow() - timedelta(hours=1))
    assert await service.run_feedback_reminders() == 0
