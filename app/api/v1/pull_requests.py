"""API эндпоинты для Pull Request'ов."""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_pr_service
from app.domain.pull_requests.service import PullRequestService
from app.schemas.pr import (
    CreatePRRequest,
    MergePRRequest,
    PullRequestResponse,
    ReassignRequest,
    ReassignResponse,
)

router = APIRouter(prefix="/pullRequest", tags=["PullRequests"])


@router.post("/create", response_model=PullRequestResponse, status_code=201)
async def create_pr(
    request: CreatePRRequest,
    service: PullRequestService = Depends(get_pr_service),
):
    """Создать PR и автоматически назначить до 2 ревьюверов из команды автора."""
    pr = await service.create_pr(
        request.pull_request_id, request.pull_request_name, request.author_id
    )
    return PullRequestResponse(pr=pr)


@router.post("/merge", response_model=PullRequestResponse)
async def merge_pr(
    request: MergePRRequest,
    service: PullRequestService = Depends(get_pr_service),
):
    """Пометить PR как MERGED (идемпотентная операция)."""
    return PullRequestResponse(pr=await service.merge_pr(request.pull_request_id))


@router.post("/reassign", response_model=ReassignResponse)
async def reassign_reviewer(
    request: ReassignRequest,
    service: PullRequestService = Depends(get_pr_service),
):
    """Переназначить конкретного ревьювера на другого из его команды."""
    pr, replaced_by = await service.reassign_reviewer(request.pull_request_id, request.old_user_id)
    return ReassignResponse(pr=pr, replaced_by=replaced_by)


@router.get("/get", response_model=PullRequestResponse)
async def get_pr(
    pull_request_id: str,
    service: PullRequestService = Depends(get_pr_service),
):
    """Получить PR по идентификатору."""
    return PullRequestResponse(pr=await service.get_pr(pull_request_id))
