"""Зависимости для API."""

import random

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.db.repositories.pr_repository import PRRepository
from app.db.repositories.team_repository import TeamRepository
from app.db.repositories.user_repository import UserRepository
from app.domain.pull_requests.service import PullRequestService
from app.domain.reviewers.selection import default_rng
from app.domain.teams.service import TeamService
from app.domain.users.service import UserService


async def get_session():
    """Получить сессию БД."""
    async for session in get_db():
        yield session


def get_rng() -> random.Random:
    """Источник случайности для выбора ревьюверов."""
    return default_rng


def get_pr_service(
    session: AsyncSession = Depends(get_session),
    rng: random.Random = Depends(get_rng),
) -> PullRequestService:
    return PullRequestService(
        TeamRepository(session), UserRepository(session), PRRepository(session), rng=rng
    )


def get_team_service(
    session: AsyncSession = Depends(get_session),
    pr_service: PullRequestService = Depends(get_pr_service),
) -> TeamService:
    return TeamService(
        TeamRepository(session), UserRepository(session), PRRepository(session), pr_service=pr_service
    )


def get_user_service(session: AsyncSession = Depends(get_session)) -> UserService:
    return UserService(TeamRepository(session), UserRepository(session), PRRepository(session))
