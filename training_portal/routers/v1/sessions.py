"""Training-session router: scheduling, roster lifecycle and enrollments."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.response import DataResponse
from training_portal.db.base import get_db
from training_portal.schemas.common import OperationResult
from training_portal.schemas.session import (
    AddParticipantsIn,
    BatchOut,
    EnrollmentOut,
    FeedbackAutomationIn,
    SelfEnrollIn,
    SessionCalendarItem,
    SessionCreate,
    SessionDetailOut,
    SessionOut,
    SessionsForDate,
)
from training_portal.services.feedback import FeedbackService
from training_portal.services.notifications import Mailer, get_mailer
from training_portal.services.session import SessionService

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def _svc(session: AsyncSession, mailer: Mailer) -> SessionService:
    return SessionService(session, mailer=mailer)


@router.get("", response_model=DataResponse[list[SessionOut]])
async def list_sessions(
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    items = await _svc(session, mailer).list_sessions()
    return {"data": [SessionOut.model_validate(s) for s in items]}


@router.post("", response_model=DataResponse[SessionDetailOut], status_code=status.HTTP_201_CREATED)
async def create_session(
    body: SessionCreate,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """Schedule a session; its batch starts out Forming."""
    training_session = await _svc(session, mailer).create_session(body)
    return {"data": SessionDetailOut.model_validate(training_session)}


@router.get("/upcoming", response_model=DataResponse[list[SessionOut]])
async def upcoming_sessions(
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    items = await _svc(session, mailer).get_upcoming_sessions()
    return {"data": [SessionOut.model_validate(s) for s in items]}


@router.get("/calendar", response_model=DataResponse[list[SessionCalendarItem]])
async def calendar_metadata(
    trainer: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    items = await _svc(session, mailer).get_calendar_metadata(trainer)
    return {"data": [SessionCalendarItem.model_validate(s) for s in items]}


@router.get("/by-date", response_model=DataResponse[SessionsForDate])
async def sessions_for_date(
    date: str = Query(..., description="Local calendar day, YYYY-MM-DD"),
    trainer: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    result = await _svc(session, mailer).get_sessions_for_date(date, trainer)
    return {"data": SessionsForDate.model_validate(result, from_attributes=True)}


@router.post("/enroll", response_model=DataResponse[EnrollmentOut], status_code=status.HTTP_201_CREATED)
async def self_enroll(
    body: SelfEnrollIn,
    response: Response,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """End-of-session form. Answers 200 with the existing enrollment if already enrolled."""
    enrollment, created = await _svc(session, mailer).self_enroll(body)
    if not created:
        response.status_code = status.HTTP_200_OK
    return {"data": EnrollmentOut.model_validate(enrollment)}


@router.get("/{session_id}", response_model=DataResponse[SessionDetailOut])
async def get_session(
    session_id: str,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    training_session = await _svc(session, mailer).get_session(session_id)
    return {"data": SessionDetailOut.model_validate(training_session)}


@router.post("/{session_id}/lock", response_model=DataResponse[BatchOut])
async def lock_batch(
    session_id: str,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    batch = await _svc(session, mailer).lock_session_batch(session_id)
    return {"data": BatchOut.model_validate(batch)}


@router.post("/{session_id}/complete", response_model=DataResponse[SessionDetailOut])
async def complete_session(
    session_id: str,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    training_session = await _svc(session, mailer).complete_session(session_id)
    return {"data": SessionDetailOut.model_validate(training_session)}


@router.put("/{session_id}/feedback-automation", response_model=DataResponse[SessionOut])
async def toggle_feedback_automation(
    session_id: str,
    body: FeedbackAutomationIn,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    training_session = await _svc(session, mailer).toggle_feedback_automation(session_id, body.enabled)
    return {"data": SessionOut.model_validate(training_session)}


@router.post("/{session_id}/participants", response_model=DataResponse[OperationResult])
async def add_participants(
    session_id: str,
    body: AddParticipantsIn,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    added = await _svc(session, mailer).add_participants(session_id, body.participants)
    return {"data": OperationResult(message=f"{added} participants added.", count=added)}


@router.post("/{session_id}/feedback-emails", response_model=DataResponse[OperationResult])
async def send_feedback_emails(
    session_id: str,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    sent = await FeedbackService(session, mailer=mailer).send_feedback_emails(session_id)
    return {"data": OperationResult(message=f"Emails sent to {sent} employees.", count=sent)}
