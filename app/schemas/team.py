"""Схемы для команд."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TeamMemberSchema(BaseModel):
    """Схема участника команды."""

    user_id: str = Field(min_length=1)
    username: str = Field(min_length=1)
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)


class TeamMemberInput(BaseModel):
    """Участник в запросе на создание команды.

    is_active можно не передавать: тогда у существующего пользователя флаг
    сохраняется, а новый создаётся активным.
    """

    user_id: str = Field(min_length=1)
    username: str = Field(min_length=1)
    is_active: Optional[bool] = None


class TeamSchema(BaseModel):
    """Схема команды."""

    team_name: str
    members: list[TeamMemberSchema] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class TeamResponse(BaseModel):
    """Ответ с командой."""

    team: TeamSchema


class CreateTeamRequest(BaseModel):
    """Запрос на создание команды."""

    team_name: str = Field(min_length=1)
    members: list[TeamMemberInput]


class DeactivateTeamRequest(BaseModel):
    """Запрос на деактивацию команды."""

    team_name: str = Field(min_length=1)


class DeactivateTeamResponse(BaseModel):
    """Итог каскадной деактивации команды."""

    deactivated_users: int
    reassigned_prs: int
