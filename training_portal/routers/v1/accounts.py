"""Portal account router (bulk credential mail-out)."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from training_portal.core.response import DataResponse
from training_portal.schemas.account import BulkCredentialsIn, CredentialResult
from training_portal.services.accounts import AccountService
from training_portal.services.notifications import Mailer, get_mailer

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.post("/credentials", response_model=DataResponse[list[CredentialResult]])
async def send_bulk_credentials(
    body: BulkCredentialsIn,
    mailer: Mailer = Depends(get_mailer),
):
    """Mail login credentials to every recipient. Failures are reported per row."""
    results = await AccountService(mailer=mailer).send_bulk_credentials(
        body.recipients, body.subject, body.template
    )
    return {"data": results}
