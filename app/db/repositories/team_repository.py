"""Репозиторий для работы с командами."""

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import NotFoundException, TeamExistsException
from app.db.models import Team, User, utcnow
from app.db.repositories.base import BaseRepository
from app.db.repositories.interfaces import TeamStore
from app.schemas.team import TeamMemberInput, TeamSchema


class TeamRepository(BaseRepository[Team], TeamStore):
    """Репозиторий команд."""

    def __init__(self, session: AsyncSession):
        super().__init__(Team, session)

    async def get_team(self, team_name: str) -> TeamSchema:
        """Получить команду с актуальным составом."""
        query = (
            select(Team)
            .where(Team.team_name == team_name)
            .options(selectinload(Team.members))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        team = result.scalar_one_or_none()
        if team is None:
            raise NotFoundException("Team")
        return TeamSchema.model_validate(team)

    async def create_team(self, team_name: str, members: list[TeamMemberInput]) -> TeamSchema:
        """Создать команду и upsert-нуть участников."""
        try:
            async with self.session.begin_nested():
                await self.session.execute(
                    insert(Team).values(team_name=team_name, created_at=utcnow())
                )
        except IntegrityError as exc:
            raise TeamExistsException() from exc

        for member in members:
            user = await self.session.get(User, member.user_id, populate_existing=True)
            if user is None:
                self.session.add(
                    User(
                        user_id=member.user_id,
                        username=member.username,
                        team_name=team_name,
                        is_active=True if member.is_active is None else member.is_active,
                    )
                )
                continue

            user.username = member.username
            user.team_name = team_name
            if member.is_active is not None:
                user.is_active = member.is_active

        await self.session.flush()
        return await self.get_team(team_name)
