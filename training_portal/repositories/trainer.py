"""Trainer and user-account repositories."""

from training_portal.domain.trainer import Trainer, User
from training_portal.repositories.base import BaseRepository


class TrainerRepository(BaseRepository[Trainer]):
    model = Trainer

    async def get_by_name(self, name: str) -> Trainer | None:
        return await self.get_by(name=name)


class UserRepository(BaseRepository[User]):
    model = User

    async def get_by_email(self, email: str) -> User | None:
        return await self.get_by(email=email)
