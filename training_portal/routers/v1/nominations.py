"""Nomination router: admin listing, nominator intake and manager decisions."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.pagination import PaginationParams
from training_portal.core.response import DataResponse, ListResponse, paginated
from training_portal.db.base import get_db
from training_portal.domain.enums import NominationStatus
from training_portal.schemas.common import OperationResult
from training_portal.schemas.nomination import (
    ManagerDecisionIn,
    NominationCreate,
    NominationOut,
    NominationUpdate,
)
from training_portal.services.nomination import NominationService
from training_portal.services.notifications import Mailer, get_mailer

router = APIRouter(prefix="/nominations", tags=["Nominations"])


def _svc(session: AsyncSession, mailer: Mailer) -> NominationService:
    return NominationService(session, mailer=mailer)


@router.get("", response_model=ListResponse[NominationOut])
async def list_nominations(
    filter_status: Optional[NominationStatus] = Query(default=None, alias="status"),
    program_id: Optional[str] = Query(default=None, alias="programId"),
    emp_id: Optional[str] = Query(default=None, alias="empId"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """List nominations (paginated), newest first. Filter by ?status=&programId=&empId=."""
    items, total = await _svc(session, mailer).list_nominations(
        pagination,
        filters={"status": filter_status, "program_id": program_id, "emp_id": emp_id},
    )
    return paginated(
        [NominationOut.model_validate(n) for n in items],
        total, pagination,
    )


@router.get("/mine", response_model=DataResponse[list[NominationOut]])
async def my_nominations(
    email: str = Query(..., description="Nominee or manager email"),
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    items = await _svc(session, mailer).get_my_nominations(email)
    return {"data": [NominationOut.model_validate(n) for n in items]}


@router.post("", response_model=DataResponse[NominationOut], status_code=status.HTTP_201_CREATED)
async def create_nomination(
    body: NominationCreate,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    nomination = await _svc(session, mailer).submit_nomination(body)
    return {"data": NominationOut.model_validate(nomination)}


@router.get("/{nomination_id}", response_model=DataResponse[NominationOut])
async def get_nomination(
    nomination_id: str,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    nomination = await _svc(session, mailer).get_nomination(nomination_id)
    return {"data": NominationOut.model_validate(nomination)}


@router.put("/{nomination_id}", response_model=DataResponse[NominationOut])
async def update_nomination(
    nomination_id: str,
    body: NominationUpdate,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    nomination = await _svc(session, mailer).update_nomination(nomination_id, body)
    return {"data": NominationOut.model_validate(nomination)}


@router.post("/{nomination_id}/decision", response_model=DataResponse[NominationOut])
async def record_decision(
    nomination_id: str,
    body: ManagerDecisionIn,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """Record a manager decision on the manager's behalf (admin dashboard)."""
    nomination = await _svc(session, mailer).submit_manager_decision(
        nomination_id, body.decision, body.reason
    )
    return {"data": NominationOut.model_validate(nomination)}


@router.post("/{nomination_id}/notify-manager", response_model=DataResponse[OperationResult])
async def notify_manager(
    nomination_id: str,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    await _svc(session, mailer).notify_manager(nomination_id)
    return {"data": OperationResult(message="Approval request sent to the manager.")}
