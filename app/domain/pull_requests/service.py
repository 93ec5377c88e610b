"""Сервис для работы с Pull Request'ами."""

import random
from typing import Optional

from app.core.config import settings
from app.core.exceptions import (
    InvalidStatusException,
    NoCandidateException,
    NotAssignedException,
    NotFoundException,
    PRMergedException,
)
from app.db.models import STATUS_MERGED, STATUS_OPEN, utcnow
from app.db.repositories.interfaces import PRStore, TeamStore, UserStore
from app.domain.base_service import BaseService
from app.domain.reviewers.selection import (
    creation_pool,
    default_rng,
    reassignment_pool,
    select_reviewers,
)
from app.schemas.pr import PullRequestSchema
from app.schemas.stats import UserStatsSchema


class PullRequestService(BaseService):
    """Сервис для работы с Pull Request'ами."""

    def __init__(
        self,
        team_store: TeamStore,
        user_store: UserStore,
        pr_store: PRStore,
        rng: Optional[random.Random] = None,
        reviewers_per_pr: int = settings.REVIEWERS_PER_PR,
    ):
        super().__init__(team_store, user_store, pr_store)
        self.rng = rng or default_rng
        self.reviewers_per_pr = reviewers_per_pr

    async def create_pr(self, pr_id: str, pr_name: str, author_id: str) -> PullRequestSchema:
        """Создать PR и автоматически назначить ревьюверов из команды автора."""
        author = await self.user_store.get_user(author_id)
        if not author.team_name:
            raise NotFoundException("Team")
        team = await self.team_store.get_team(author.team_name)

        reviewer_ids = select_reviewers(
            creation_pool(team, author_id), self.reviewers_per_pr, self.rng
        )
        pr = await self.pr_store.create_pr(
            PullRequestSchema(
                pull_request_id=pr_id,
                pull_request_name=pr_name,
                author_id=author_id,
                status=STATUS_OPEN,
                assigned_reviewers=reviewer_ids,
                created_at=utcnow(),
            )
        )

        self.logger.info(
            "pr_created", pr_id=pr_id, author_id=author_id, reviewers=pr.assigned_reviewers
        )
        return pr

    async def get_pr(self, pr_id: str) -> PullRequestSchema:
        """Получить PR по идентификатору."""
        return await self.pr_store.get_pr(pr_id)

    async def merge_pr(self, pr_id: str) -> PullRequestSchema:
        """Пометить PR как MERGED (идемпотентная операция)."""
        pr = await self.pr_store.get_pr(pr_id)
        if pr.status == STATUS_MERGED:
            return pr
        if pr.status != STATUS_OPEN:
            raise InvalidStatusException(pr.status)

        try:
            await self.pr_store.merge_pr(pr_id)
        except PRMergedException:
            # конкурентный merge успел раньше, отдаём его результат
            self.logger.info("pr_merge_lost_race", pr_id=pr_id)
        else:
            self.logger.info("pr_merged", pr_id=pr_id)

        return await self.pr_store.get_pr(pr_id)

    async def reassign_reviewer(
        self, pr_id: str, old_reviewer_id: str
    ) -> tuple[PullRequestSchema, str]:
        """Переназначить ревьювера на другого из его команды.

        Возвращает обновлённый PR и ID нового ревьювера.
        """
        pr = await self.pr_store.get_pr(pr_id)
        if pr.status != STATUS_OPEN:
            raise PRMergedException()
        if old_reviewer_id not in pr.assigned_reviewers:
            raise NotAssignedException()

        old_reviewer = await self.user_store.get_user(old_reviewer_id)
        if not old_reviewer.team_name:
            raise NotFoundException("Team")
        team = await self.team_store.get_team(old_reviewer.team_name)

        candidates = reassignment_pool(team, pr, old_reviewer_id)
        if not candidates:
            raise NoCandidateException()
        new_reviewer_id = select_reviewers(candidates, 1, self.rng)[0]

        await self.pr_store.reassign_reviewer(pr_id, old_reviewer_id, new_reviewer_id)

        self.logger.info(
            "reviewer_reassigned",
            pr_id=pr_id,
            old_reviewer_id=old_reviewer_id,
            new_reviewer_id=new_reviewer_id,
        )
        return await self.pr_store.get_pr(pr_id), new_reviewer_id

    async def get_prs_by_reviewer(self, user_id: str) -> list[PullRequestSchema]:
        """Получить PR'ы любого статуса, где пользователь назначен ревьювером."""
        await self.user_store.get_user(user_id)
        return await self.pr_store.get_prs_by_reviewer(user_id)

    async def get_user_stats(self) -> list[UserStatsSchema]:
        """Статистика назначений по всем пользователям."""
        return await self.pr_store.get_user_stats()
