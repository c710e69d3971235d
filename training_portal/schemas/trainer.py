"""Trainer schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from training_portal.schemas.common import CamelModel


class TrainerCreate(CamelModel):
    name: str = Field(min_length=1)
    email: str | None = None
    expertise: str | None = None


class TrainerOut(CamelModel):
    id: str
    name: str
    email: str | None = None
    expertise: str | None = None
    user_id: str | None = None
    created_at: datetime
