"""Базовый репозиторий."""

from typing import Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Базовый репозиторий для работы с БД."""

    def __init__(self, model: type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def _get(self, key: str) -> ModelType | None:
        """Получить запись по первичному ключу, минуя кэш identity map.

        Массовые UPDATE/DELETE идут мимо ORM, поэтому объекты в сессии
        могут быть устаревшими.
        """
        return await self.session.get(self.model, key, populate_existing=True)
