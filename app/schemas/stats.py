"""Схемы для статистики."""

from typing import Optional

from pydantic import BaseModel, Field


class UserStatsSchema(BaseModel):
    """Статистика по пользователю: сколько PR и какие он ревьюит."""

    user_id: str
    team_name: Optional[str] = None
    username: str
    assignment_count: int
    assigned_prs: list[str] = Field(default_factory=list)


class StatsResponse(BaseModel):
    """Ответ со статистикой."""

    users: list[UserStatsSchema]
