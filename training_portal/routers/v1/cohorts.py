"""Cohort router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.response import DataResponse
from training_portal.db.base import get_db
from training_portal.schemas.cohort import (
    CohortCreate,
    CohortFeedbackIn,
    CohortFeedbackOut,
    CohortMembersIn,
    CohortOut,
    CohortSessionCreate,
    CohortUpdate,
)
from training_portal.schemas.session import SessionDetailOut
from training_portal.services.cohort import CohortService
from training_portal.services.notifications import Mailer, get_mailer

router = APIRouter(prefix="/cohorts", tags=["Cohorts"])


def _svc(session: AsyncSession, mailer: Mailer) -> CohortService:
    return CohortService(session, mailer=mailer)


@router.get("", response_model=DataResponse[list[CohortOut]])
async def list_cohorts(
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    cohorts = await _svc(session, mailer).list_cohorts()
    return {"data": [CohortOut.model_validate(c) for c in cohorts]}


@router.post("", response_model=DataResponse[CohortOut], status_code=status.HTTP_201_CREATED)
async def create_cohort(
    body: CohortCreate,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    cohort = await _svc(session, mailer).create_cohort(body)
    return {"data": CohortOut.model_validate(cohort)}


@router.get("/{cohort_id}", response_model=DataResponse[CohortOut])
async def get_cohort(
    cohort_id: str,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    cohort = await _svc(session, mailer).get_cohort(cohort_id)
    return {"data": CohortOut.model_validate(cohort)}


@router.put("/{cohort_id}", response_model=DataResponse[CohortOut])
async def update_cohort(
    cohort_id: str,
    body: CohortUpdate,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    cohort = await _svc(session, mailer).update_cohort(cohort_id, body)
    return {"data": CohortOut.model_validate(cohort)}


@router.delete("/{cohort_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cohort(
    cohort_id: str,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    await _svc(session, mailer).delete_cohort(cohort_id)


@router.post("/{cohort_id}/members", response_model=DataResponse[CohortOut])
async def add_members(
    cohort_id: str,
    body: CohortMembersIn,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    cohort = await _svc(session, mailer).add_members(cohort_id, body.employee_ids)
    return {"data": CohortOut.model_validate(cohort)}


@router.delete("/{cohort_id}/members/{employee_id}", response_model=DataResponse[CohortOut])
async def remove_member(
    cohort_id: str,
    employee_id: str,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    cohort = await _svc(session, mailer).remove_member(cohort_id, employee_id)
    return {"data": CohortOut.model_validate(cohort)}


@router.post(
    "/programs/{cohort_program_id}/session",
    response_model=DataResponse[SessionDetailOut],
    status_code=status.HTTP_201_CREATED,
)
async def schedule_session(
    cohort_program_id: str,
    body: CohortSessionCreate,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    training_session = await _svc(session, mailer).schedule_cohort_session(cohort_program_id, body)
    return {"data": SessionDetailOut.model_validate(training_session)}


@router.post("/programs/{cohort_program_id}/complete", response_model=DataResponse[CohortOut])
async def complete_program(
    cohort_program_id: str,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    cohort = await _svc(session, mailer).mark_cohort_program_complete(cohort_program_id)
    return {"data": CohortOut.model_validate(cohort)}


@router.post("/{cohort_id}/feedback", response_model=DataResponse[CohortFeedbackOut])
async def submit_feedback(
    cohort_id: str,
    body: CohortFeedbackIn,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    feedback = await _svc(session, mailer).submit_cohort_feedback(cohort_id, body)
    return {"data": CohortFeedbackOut.model_validate(feedback)}
