"""Scheduled jobs, called by an external scheduler with ``Authorization: Bearer <CRON_SECRET>``."""

from __future__ import annotations

import hmac

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.config import settings
from training_portal.core.exceptions import UnauthorizedError
from training_portal.core.response import DataResponse
from training_portal.db.base import get_db
from training_portal.schemas.common import OperationResult
from training_portal.services.feedback import FeedbackService
from training_portal.services.notifications import Mailer, get_mailer


async def require_cron_secret(authorization: str | None = Header(default=None)) -> None:
    expected = f"Bearer {settings.cron_secret}" if settings.cron_secret else None
    if not expected or not authorization or not hmac.compare_digest(authorization, expected):
        raise UnauthorizedError("Unauthorized")


router = APIRouter(prefix="/cron", tags=["Cron"], dependencies=[Depends(require_cron_secret)])


@router.post("/automated-feedback", response_model=DataResponse[OperationResult])
@router.get("/automated-feedback", response_model=DataResponse[OperationResult], include_in_schema=False)
async def automated_feedback(
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    sent = await FeedbackService(session, mailer=mailer).run_automated_feedback()
    return {"data": OperationResult(message=f"Automated feedback sent to {sent} employees.", count=sent)}


@router.post("/feedback-reminder", response_model=DataResponse[OperationResult])
@router.get("/feedback-reminder", response_model=DataResponse[OperationResult], include_in_schema=False)
async def feedback_reminder(
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    sent = await FeedbackService(session, mailer=mailer).run_feedback_reminders()
    return {"data": OperationResult(message=f"Reminders sent to {sent} trainers.", count=sent)}
