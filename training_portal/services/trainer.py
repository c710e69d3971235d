"""Trainer register and trainer login accounts."""

from __future__ import annotations

import asyncio
import logging
import secrets

import bcrypt
from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from training_portal.core.security import sanitize_input
from training_portal.domain.enums import UserRole
from training_portal.domain.trainer import Trainer
from training_portal.repositories.trainer import TrainerRepository, UserRepository
from training_portal.schemas.trainer import TrainerCreate
from training_portal.services import notifications
from training_portal.services.notifications import Mailer, get_mailer

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    return bcrypt.hashpw(password.encode("utf-8")[:72], bcrypt.gensalt(rounds=12)).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))


class TrainerService:
    def __init__(self, session: AsyncSession, mailer: Mailer | None = None):
        self._trainers = TrainerRepository(session)
        self._users = UserRepository(session)
        self._mailer = mailer or get_mailer()

    async def list_trainers(self) -> list[Trainer]:
        return await self._trainers.all()

    async def add_trainer(self, data: TrainerCreate) -> Trainer:
        """Register a trainer; with an e-mail, also open a TRAINER login and mail the credentials."""
        name = sanitize_input(data.name)
        if not name:
            raise ValidationError("Trainer name is required.")
        if await self._trainers.get_by_name(name):
            raise ConflictError(f"Trainer '{name}' already exists.")

        email = (data.email or "").strip().lower() or None
        user = None
        password = None
        if email:
            if await self._users.get_by_email(email):
                raise ConflictError(f"A user with email '{email}' already exists.")
            password = secrets.token_urlsafe(9)
            # hashpw blocks for the whole cost factor
            password_hash = await asyncio.to_thread(hash_password, password)
            user = await self._users.create(
                email=email,
                name=name,
                password_hash=password_hash,
                role=UserRole.TRAINER,
            )

        trainer = await self._trainers.create(
            name=name,
            email=email,
            expertise=sanitize_input(data.expertise) or None,
            user_id=user.id if user else None,
        )
        logger.info("Trainer %s added%s", trainer.id, " with login" if user else "")

        if user and password:
            result = await self._mailer.deliver(
                notifications.user_credentials(email=email, name=name, password=password)
            )
            if not result.success:
                logger.error("Credentials email to %s failed: %s", email, result.error)
        return trainer

    async def delete_trainer(self, trainer_id: str) -> None:
        if not await self._trainers.delete(trainer_id):
            raise NotFoundError("Trainer", trainer_id)
