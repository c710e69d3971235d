"""Program repository."""

from training_portal.domain.program import Program
from training_portal.repositories.base import BaseRepository


class ProgramRepository(BaseRepository[Program]):
    model = Program

    async def get_by_name(self, name: str) -> Program | None:
        return await self.get_by(name=name)
