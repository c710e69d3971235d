"""Batch router: admin roster edits and the QR self-join flow."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.response import DataResponse
from training_portal.db.base import get_db
from training_portal.schemas.common import OperationResult
from training_portal.schemas.nomination import NominationOut
from training_portal.schemas.session import (
    AddNominationsIn,
    JoinBatchIn,
    JoinBatchResult,
    RegisterAndJoinIn,
)
from training_portal.services.notifications import Mailer, get_mailer
from training_portal.services.session import SessionService

router = APIRouter(prefix="/batches", tags=["Batches"])


@router.get("/programs/{program_id}/pending", response_model=DataResponse[list[NominationOut]])
async def pending_for_program(
    program_id: str,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """Nominations still waiting for a seat in some batch of this program."""
    items = await SessionService(session, mailer=mailer).get_pending_nominations_for_program(program_id)
    return {"data": [NominationOut.model_validate(n) for n in items]}


@router.post("/{batch_id}/nominations", response_model=DataResponse[OperationResult])
async def add_nominations(
    batch_id: str,
    body: AddNominationsIn,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    added = await SessionService(session, mailer=mailer).add_nominations_to_batch(
        batch_id, body.nomination_ids
    )
    return {"data": OperationResult(message=f"{added} nominations added to the batch.", count=added)}


@router.delete("/nominations/{nomination_id}", response_model=DataResponse[NominationOut])
async def remove_nomination(
    nomination_id: str,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    nomination = await SessionService(session, mailer=mailer).remove_nomination_from_batch(nomination_id)
    return {"data": NominationOut.model_validate(nomination)}


@router.post("/{batch_id}/join", response_model=DataResponse[JoinBatchResult])
async def join_batch(
    batch_id: str,
    body: JoinBatchIn,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """QR join. ``employeeNotFound`` in the result means: show the registration form."""
    result = await SessionService(session, mailer=mailer).join_batch(batch_id, body.emp_id)
    return {"data": result}


@router.post("/{batch_id}/register", response_model=DataResponse[JoinBatchResult])
async def register_and_join(
    batch_id: str,
    body: RegisterAndJoinIn,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    result = await SessionService(session, mailer=mailer).register_and_join_batch(batch_id, body)
    return {"data": result}
