"""Outgoing e-mail: SMTP transport plus one builder per notification.

Builders return an ``OutgoingEmail``; callers hand it to ``Mailer.deliver``.
The mailer never raises. Delivery failures come back as
``SendResult(success=False, error=...)`` so a failed notification cannot
undo the state change that triggered it.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from html import escape
from typing import NamedTuple
from urllib.parse import quote

from training_portal.core.config import Settings, settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    html: str


class SendResult(NamedTuple):
    success: bool
    error: str | None = None


class Mailer:
    """SMTP sender. Runs the blocking smtplib exchange in a worker thread.

    With no SMTP host configured the mailer is in dry-run mode: messages are
    logged and reported as sent.
    """

    def __init__(self, config: Settings = settings):
        self._config = config

    @property
    def dry_run(self) -> bool:
        return not self._config.mail_enabled

    async def send(self, to: str | None, subject: str, html: str) -> SendResult:
        if not to:
            logger.warning("[Mailer] Skipping '%s': no recipient", subject)
            return SendResult(False, "No recipient address")

        if self.dry_run:
            logger.info("[Mailer] (dry-run) to=%s subject=%s", to, subject)
            return SendResult(True)

        message = self._build_message(to, subject, html)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("[Mailer] Failed to send '%s' to %s: %s", subject, to, exc)
            return SendResult(False, str(exc))

        logger.info("[Mailer] Sent '%s' to %s", subject, to)
        return SendResult(True)

    async def deliver(self, email: OutgoingEmail) -> SendResult:
        return await self.send(email.to, email.subject, email.html)

    def _build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self._config.mail_from_name, self._config.mail_from))
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML-capable mail client.")
        message.add_alternative(html, subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        cfg = self._config
        with smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=cfg.smtp_timeout) as smtp:
            if cfg.smtp_starttls:
                smtp.starttls()
            if cfg.smtp_username and cfg.smtp_password:
                smtp.login(cfg.smtp_username, cfg.smtp_password)
            smtp.send_message(message)


_default_mailer: Mailer | None = None


def get_mailer() -> Mailer:
    """FastAPI dependency / service default; tests override it with a recording fake."""
    global _default_mailer
    if _default_mailer is None:
        _default_mailer = Mailer()
    return _default_mailer


# ---------------------------------------------------------------------------
# Link helpers
# ---------------------------------------------------------------------------

def nomination_approval_link(nomination_id: str, token: str, action: str) -> str:
    """Signed decision link; *action* is ``approve`` or ``reject``."""
    return (
        f"{settings.portal_base_url.rstrip('/')}/api/v1/approvals/nominations/"
        f"{quote(nomination_id)}?token={quote(token)}&action={quote(action)}"
    )


def employee_feedback_link(enrollment_id: str, token: str) -> str:
    return f"{settings.frontend_url.rstrip('/')}/feedback/employee/{quote(enrollment_id)}?token={quote(token)}"


def manager_feedback_link(enrollment_id: str, token: str) -> str:
    return f"{settings.frontend_url.rstrip('/')}/feedback/manager/{quote(enrollment_id)}?token={quote(token)}"


def _button(href: str, label: str, color: str) -> str:
    return (
        f'<p><a href="{escape(href)}" style="background: {color}; color: white; '
        f'padding: 12px 25px; text-decoration: none; display: inline-block; '
        f'border-radius: 4px; font-weight: bold;">{escape(label)}</a></p>'
    )


def _decision_buttons(nomination_id: str, token: str, approve_label: str, reject_label: str) -> str:
    approve = nomination_approval_link(nomination_id, token, "approve")
    reject = nomination_approval_link(nomination_id, token, "reject")
    return _button(approve, approve_label, "#166534") + _button(reject, reject_label, "#dc2626")


def _wrap(body: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; color: #333;">'
        f"{body}"
        '<p style="color: #888; font-size: 12px;">This is an automated message from the Training Portal.</p>'
        "</div>"
    )


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def nomination_approval_request(
    *,
    manager_email: str,
    manager_name: str | None,
    employee_name: str,
    program_name: str,
    nomination_id: str,
    token: str,
    justification: str | None = None,
) -> OutgoingEmail:
    reason = (
        f"<p><strong>Justification:</strong> {escape(justification)}</p>" if justification else ""
    )
    html = _wrap(
        f"<p>Dear {escape(manager_name or 'Manager')},</p>"
        f"<p><strong>{escape(employee_name)}</strong> has been nominated for "
        f"<strong>{escape(program_name)}</strong>.</p>"
        f"{reason}"
        "<p>Please review the nomination and approve or reject it.</p>"
        f"{_decision_buttons(nomination_id, token, 'Approve', 'Reject')}"
    )
    return OutgoingEmail(manager_email, f"Action Required: Nomination for {employee_name}", html)


def session_approval_request(
    *,
    manager_email: str,
    manager_name: str | None,
    employee_name: str,
    program_name: str,
    session_dates: str,
    nomination_id: str,
    token: str,
) -> OutgoingEmail:
    html = _wrap(
        f"<p>Dear {escape(manager_name or 'Manager')},</p>"
        f"<p><strong>{escape(employee_name)}</strong> has joined the session "
        f"<strong>{escape(program_name)}</strong> ({escape(session_dates)}).</p>"
        "<p>Please confirm their attendance or release the seat.</p>"
        f"{_decision_buttons(nomination_id, token, 'Confirm Attendance', 'Release Seat')}"
    )
    return OutgoingEmail(
        manager_email, f"Action Required: Session enrollment for {employee_name}", html
    )


def feedback_request(
    *,
    employee_email: str,
    employee_name: str,
    program_name: str,
    enrollment_id: str,
    token: str,
) -> OutgoingEmail:
    link = employee_feedback_link(enrollment_id, token)
    html = _wrap(
        f"<p>Dear {escape(employee_name)},</p>"
        f"<p>It has been a while since you attended <strong>{escape(program_name)}</strong>. "
        "Please tell us how the training has helped your work.</p>"
        f"{_button(link, 'Submit Feedback', '#2e7d32')}"
    )
    return OutgoingEmail(
        employee_email,
        f"Action Required: Post training (30 days) performance feedback for {program_name}",
        html,
    )


def feedback_review_request(
    *,
    manager_email: str,
    manager_name: str | None,
    employee_name: str,
    program_name: str,
    enrollment_id: str,
    token: str,
) -> OutgoingEmail:
    link = manager_feedback_link(enrollment_id, token)
    html = _wrap(
        f"<p>Dear {escape(manager_name or 'Manager')},</p>"
        f"<p><strong>{escape(employee_name)}</strong> has submitted post-training feedback for "
        f"<strong>{escape(program_name)}</strong>.</p>"
        "<p>Please review it and confirm whether you agree with the assessment.</p>"
        f"{_button(link, 'Review Feedback', '#6a1b9a')}"
    )
    return OutgoingEmail(manager_email, f"Feedback Review Required: {employee_name}", html)


def manager_disagreement_notice(
    *,
    to: str,
    manager_name: str,
    employee_name: str,
    program_name: str,
    comments: str | None,
) -> OutgoingEmail:
    html = _wrap(
        f"<p><strong>{escape(manager_name)}</strong> does not agree with the post-training "
        f"feedback submitted by <strong>{escape(employee_name)}</strong> for "
        f"<strong>{escape(program_name)}</strong>.</p>"
        f"<p><strong>Manager comments:</strong> {escape(comments or 'No comments provided.')}</p>"
    )
    return OutgoingEmail(to, f"Manager Disagreement: {employee_name} - {program_name}", html)


def trainer_reminder(*, trainer_email: str, trainer_name: str, program_name: str) -> OutgoingEmail:
    html = _wrap(
        f"<p>Dear {escape(trainer_name)},</p>"
        f"<p>The post-training feedback window for <strong>{escape(program_name)}</strong> "
        "has been reached. Please initiate feedback collection from the dashboard.</p>"
        f"{_button(settings.frontend_url.rstrip('/') + '/admin/dashboard', 'Initiate Feedback Collection', '#d32f2f')}"
    )
    return OutgoingEmail(
        trainer_email, f"Reminder: Post-Training Feedback Deadline - {program_name}", html
    )


def feedback_acknowledgment(
    *, email: str, employee_name: str, program_name: str, average_rating: float
) -> OutgoingEmail:
    html = _wrap(
        f"<p>Dear {escape(employee_name)},</p>"
        f"<p>Thank you for your feedback on <strong>{escape(program_name)}</strong>. "
        f"Your average rating was <strong>{average_rating:.1f} / 5</strong>.</p>"
        "<p>Your manager has been asked to review it.</p>"
    )
    return OutgoingEmail(email, f"Feedback Received: {program_name}", html)


def user_credentials(*, email: str, name: str, password: str) -> OutgoingEmail:
    login_url = settings.frontend_url.rstrip("/") + "/login"
    html = _wrap(
        f"<p>Dear {escape(name)},</p>"
        "<p>A trainer account has been created for you on the Training Portal.</p>"
        f"<p><strong>Email:</strong> {escape(email)}<br>"
        f"<strong>Temporary password:</strong> {escape(password)}</p>"
        "<p>Please sign in and change your password.</p>"
        f"{_button(login_url, 'Sign In', '#0056b3')}"
    )
    return OutgoingEmail(email, "Your Training Portal account", html)


CREDENTIALS_SUBJECT = "Your Login Credentials - Training Portal"


def login_credentials(
    *,
    email: str,
    name: str,
    emp_id: str,
    password: str,
    subject: str | None = None,
    template: str | None = None,
) -> OutgoingEmail:
    """Portal login details for one user.

    *template* replaces the default body; ``{name}``, ``{empId}`` and
    ``{password}`` in it are filled in (HTML-escaped) for the recipient.
    """
    if template:
        html = (
            template.replace("{name}", escape(name))
            .replace("{empId}", escape(emp_id))
            .replace("{password}", escape(password))
        )
    else:
        portal_url = settings.frontend_url.rstrip("/") + "/"
        html = _wrap(
            f"<p>Dear {escape(name)},</p>"
            "<p>You have been registered on the Training Portal. "
            "Please find your login credentials below.</p>"
            f'<p><strong>Portal URL:</strong> <a href="{escape(portal_url)}">{escape(portal_url)}</a><br>'
            f"<strong>User ID:</strong> {escape(emp_id)}<br>"
            f"<strong>Password:</strong> {escape(password)}</p>"
            "<p>Please log in and change your password if prompted.</p>"
        )
    return OutgoingEmail(email, (subject or "").strip() or CREDENTIALS_SUBJECT, html)
