"""API эндпоинты для статистики."""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_pr_service
from app.domain.pull_requests.service import PullRequestService
from app.schemas.stats import StatsResponse

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("", response_model=StatsResponse)
async def get_stats(
    service: PullRequestService = Depends(get_pr_service),
) -> StatsResponse:
    """Получить статистику назначений по пользователям."""
    return StatsResponse(users=await service.get_user_stats())
