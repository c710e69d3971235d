"""Post-training feedback router (tokenised employee and manager forms)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.response import DataResponse
from training_portal.db.base import get_db
from training_portal.schemas.common import OperationResult
from training_portal.schemas.feedback import EmployeeFeedbackIn, ManagerReviewIn
from training_portal.schemas.session import EnrollmentOut
from training_portal.services.feedback import FeedbackService
from training_portal.services.notifications import Mailer, get_mailer

router = APIRouter(prefix="/feedback", tags=["Feedback"])


@router.get("/employee/{enrollment_id}", response_model=DataResponse[EnrollmentOut])
async def employee_form(
    enrollment_id: str,
    token: str | None = Query(default=None),
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    enrollment = await FeedbackService(session, mailer=mailer).get_enrollment(enrollment_id, token)
    return {"data": EnrollmentOut.model_validate(enrollment)}


@router.post("/employee/{enrollment_id}", response_model=DataResponse[EnrollmentOut])
async def submit_employee_feedback(
    enrollment_id: str,
    body: EmployeeFeedbackIn,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    enrollment = await FeedbackService(session, mailer=mailer).submit_employee_feedback(enrollment_id, body)
    return {"data": EnrollmentOut.model_validate(enrollment)}


@router.post("/employee/{enrollment_id}/resend", response_model=DataResponse[OperationResult])
async def resend_feedback_link(
    enrollment_id: str,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    await FeedbackService(session, mailer=mailer).resend_feedback_link(enrollment_id)
    return {"data": OperationResult(message="Feedback link sent.", count=1)}


@router.get("/manager/{enrollment_id}", response_model=DataResponse[EnrollmentOut])
async def manager_form(
    enrollment_id: str,
    token: str | None = Query(default=None),
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    enrollment = await FeedbackService(session, mailer=mailer).get_enrollment(
        enrollment_id, token, manager=True
    )
    return {"data": EnrollmentOut.model_validate(enrollment)}


@router.post("/manager/{enrollment_id}", response_model=DataResponse[EnrollmentOut])
async def submit_manager_review(
    enrollment_id: str,
    body: ManagerReviewIn,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    enrollment = await FeedbackService(session, mailer=mailer).submit_manager_review(enrollment_id, body)
    return {"data": EnrollmentOut.model_validate(enrollment)}
