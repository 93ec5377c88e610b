"""Сервис для работы с пользователями."""

from app.domain.base_service import BaseService
from app.schemas.user import UserSchema


class UserService(BaseService):
    """Сервис для работы с пользователями."""

    async def set_is_active(self, user_id: str, is_active: bool) -> UserSchema:
        """Установить флаг активности пользователя."""
        user = await self.user_store.set_user_active(user_id, is_active)
        self.logger.info("user_activity_changed", user_id=user_id, is_active=is_active)
        return user

    async def get_user(self, user_id: str) -> UserSchema:
        """Получить пользователя по ID."""
        return await self.user_store.get_user(user_id)
