"""API эндпоинты для пользователей."""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_pr_service, get_user_service
from app.domain.pull_requests.service import PullRequestService
from app.domain.users.service import UserService
from app.schemas.pr import PullRequestShortSchema
from app.schemas.user import GetReviewsResponse, SetIsActiveRequest, UserResponse

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/setIsActive", response_model=UserResponse)
async def set_is_active(
    request: SetIsActiveRequest,
    service: UserService = Depends(get_user_service),
):
    """Установить флаг активности пользователя."""
    return UserResponse(user=await service.set_is_active(request.user_id, request.is_active))


@router.get("/getReview", response_model=GetReviewsResponse)
async def get_reviews(
    user_id: str,
    service: PullRequestService = Depends(get_pr_service),
):
    """Получить PR'ы, где пользователь назначен ревьювером."""
    prs = await service.get_prs_by_reviewer(user_id)
    return GetReviewsResponse(
        user_id=user_id,
        pull_requests=[PullRequestShortSchema.model_validate(pr.model_dump()) for pr in prs],
    )
