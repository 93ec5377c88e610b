"""API эндпоинты для команд."""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_team_service
from app.domain.teams.service import TeamService
from app.schemas.team import (
    CreateTeamRequest,
    DeactivateTeamRequest,
    DeactivateTeamResponse,
    TeamResponse,
)

router = APIRouter(prefix="/team", tags=["Teams"])


@router.post("/add", response_model=TeamResponse, status_code=201)
async def create_team(
    request: CreateTeamRequest,
    service: TeamService = Depends(get_team_service),
):
    """Создать команду с участниками."""
    return TeamResponse(team=await service.create_team(request.team_name, request.members))


@router.get("/get", response_model=TeamResponse)
async def get_team(
    team_name: str,
    service: TeamService = Depends(get_team_service),
):
    """Получить команду с участниками."""
    return TeamResponse(team=await service.get_team(team_name))


@router.post("/deactivate", response_model=DeactivateTeamResponse)
async def deactivate_team(
    request: DeactivateTeamRequest,
    service: TeamService = Depends(get_team_service),
):
    """Деактивировать всех участников команды и переназначить их открытые ревью.

    Для несуществующей команды возвращает 404 NOT_FOUND, а не нулевые счётчики.
    """
    return await service.deactivate_team(request.team_name)
