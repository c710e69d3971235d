"""Bulk login-credential mail schemas."""

from __future__ import annotations

from pydantic import Field

from training_portal.schemas.common import CamelModel


class CredentialRecipient(CamelModel):
    emp_id: str = ""
    name: str = ""
    email: str = ""
    password: str = ""


class BulkCredentialsIn(CamelModel):
    recipients: list[CredentialRecipient] = Field(min_length=1)
    subject: str | None = None
    # HTML body with {name}, {empId} and {password} placeholders
    template: str | None = None


class CredentialResult(CamelModel):
    email: str
    success: bool
    error: str | None = None
