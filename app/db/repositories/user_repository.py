"""Репозиторий для работы с пользователями."""

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.db.models import User
from app.db.repositories.base import BaseRepository
from app.db.repositories.interfaces import UserStore
from app.schemas.user import UserSchema


class UserRepository(BaseRepository[User], UserStore):
    """Репозиторий пользователей."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_user(self, user_id: str) -> UserSchema:
        """Получить пользователя по ID."""
        user = await self._get(user_id)
        if user is None:
            raise NotFoundException("User")
        return UserSchema.model_validate(user)

    async def set_user_active(self, user_id: str, is_active: bool) -> UserSchema:
        """Обновить флаг активности."""
        result = await self.session.execute(
            update(User)
            .where(User.user_id == user_id)
            .values(is_active=is_active)
        )
        if not result.rowcount:
            raise NotFoundException("User")
        return await self.get_user(user_id)

    async def deactivate_team_members(self, team_name: str) -> int:
        """Массово деактивировать участников команды."""
        result = await self.session.execute(
            update(User)
            .where(User.team_name == team_name)
            .values(is_active=False)
        )
        return result.rowcount or 0
