"""Trainer router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.response import DataResponse
from training_portal.db.base import get_db
from training_portal.schemas.trainer import TrainerCreate, TrainerOut
from training_portal.services.notifications import Mailer, get_mailer
from training_portal.services.trainer import TrainerService

router = APIRouter(prefix="/trainers", tags=["Trainers"])


@router.get("", response_model=DataResponse[list[TrainerOut]])
async def list_trainers(
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    trainers = await TrainerService(session, mailer=mailer).list_trainers()
    return {"data": [TrainerOut.model_validate(t) for t in trainers]}


@router.post("", response_model=DataResponse[TrainerOut], status_code=status.HTTP_201_CREATED)
async def add_trainer(
    body: TrainerCreate,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """Add a trainer. With an email, a TRAINER login is created and its password mailed."""
    trainer = await TrainerService(session, mailer=mailer).add_trainer(body)
    return {"data": TrainerOut.model_validate(trainer)}


@router.delete("/{trainer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trainer(
    trainer_id: str,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    await TrainerService(session, mailer=mailer).delete_trainer(trainer_id)
