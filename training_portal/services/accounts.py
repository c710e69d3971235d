"""Portal account mail-outs."""

from __future__ import annotations

import logging

from training_portal.schemas.account import CredentialRecipient, CredentialResult
from training_portal.services import notifications
from training_portal.services.notifications import Mailer, get_mailer

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, mailer: Mailer | None = None):
        self._mailer = mailer or get_mailer()

    async def send_bulk_credentials(
        self,
        recipients: list[CredentialRecipient],
        subject: str | None = None,
        template: str | None = None,
    ) -> list[CredentialResult]:
        """Mail each recipient their login; one result per recipient, in order."""
        results = []
        for recipient in recipients:
            email = recipient.email.strip()
            emp_id = recipient.emp_id.strip()
            if not email or not emp_id or not recipient.password:
                results.append(CredentialResult(email=email, success=False, error="Missing required fields"))
                continue
            if "@" not in email:
                results.append(CredentialResult(email=email, success=False, error="Invalid email address"))
                continue

            sent = await self._mailer.deliver(
                notifications.login_credentials(
                    email=email,
                    name=recipient.name.strip(),
                    emp_id=emp_id,
                    password=recipient.password,
                    subject=subject,
                    template=template,
                )
            )
            results.append(
                CredentialResult(
                    email=email,
                    success=sent.success,
                    error=None if sent.success else sent.error or "Failed to send email",
                )
            )

        delivered = sum(1 for r in results if r.success)
        logger.info("Credential mail-out: %d of %d delivered", delivered, len(results))
        return results
