"""Репозиторий для работы с Pull Request'ами."""

from collections import defaultdict
from datetime import datetime

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AlreadyAssignedException,
    InvalidStatusException,
    NotAssignedException,
    NotFoundException,
    PRExistsException,
    PRMergedException,
)
from app.db.models import STATUS_MERGED, STATUS_OPEN, PullRequest, User, pr_reviewers, utcnow
from app.db.repositories.base import BaseRepository
from app.db.repositories.interfaces import PRStore
from app.schemas.pr import PullRequestSchema
from app.schemas.stats import UserStatsSchema


class PRRepository(BaseRepository[PullRequest], PRStore):
    """Репозиторий Pull Request'ов."""

    def __init__(self, session: AsyncSession):
        super().__init__(PullRequest, session)

    async def create_pr(self, pr: PullRequestSchema) -> PullRequestSchema:
        """Создать PR с ревьюверами.

        Уникальность ID проверяет первичный ключ, а не предварительный SELECT.
        """
        try:
            async with self.session.begin_nested():
                await self.session.execute(
                    insert(PullRequest).values(
                        pull_request_id=pr.pull_request_id,
                        pull_request_name=pr.pull_request_name,
                        author_id=pr.author_id,
                        status=STATUS_OPEN,
                        created_at=pr.created_at or utcnow(),
                    )
                )
        except IntegrityError as exc:
            raise PRExistsException() from exc

        if pr.assigned_reviewers:
            assigned_at = utcnow()
            await self.session.execute(
                insert(pr_reviewers).values(
                    [
                        {"pr_id": pr.pull_request_id, "reviewer_id": reviewer_id, "assigned_at": assigned_at}
                        for reviewer_id in pr.assigned_reviewers
                    ]
                )
            )

        return await self.get_pr(pr.pull_request_id)

    async def get_pr(self, pr_id: str) -> PullRequestSchema:
        """Получить PR по ID."""
        pr = await self._get(pr_id)
        if pr is None:
            raise NotFoundException("PR")
        reviewers = await self._load_reviewers([pr_id])
        return self._pr_to_schema(pr, reviewers[pr_id])

    async def merge_pr(self, pr_id: str) -> datetime:
        """Пометить PR как MERGED условным UPDATE.

        Из двух конкурентных вызовов строку обновит только один, второй
        увидит MERGED и получит PRMergedException.
        """
        merged_at = utcnow()
        result = await self.session.execute(
            update(PullRequest)
            .where(PullRequest.pull_request_id == pr_id, PullRequest.status == STATUS_OPEN)
            .values(status=STATUS_MERGED, merged_at=merged_at)
        )
        if result.rowcount:
            return merged_at

        status = await self.session.scalar(
            select(PullRequest.status).where(PullRequest.pull_request_id == pr_id)
        )
        if status is None:
            raise NotFoundException("PR")
        if status == STATUS_MERGED:
            raise PRMergedException()
        raise InvalidStatusException(status)

    async def reassign_reviewer(self, pr_id: str, old_reviewer_id: str, new_reviewer_id: str) -> None:
        """Переназначить ревьювера.

        Удаление и вставка идут в одном savepoint: при ошибке вставки старый
        ревьювер остаётся на месте.
        """
        try:
            async with self.session.begin_nested():
                deleted = await self.session.execute(
                    delete(pr_reviewers).where(
                        pr_reviewers.c.pr_id == pr_id,
                        pr_reviewers.c.reviewer_id == old_reviewer_id,
                    )
                )
                # слот уже освободил конкурентный запрос
                if not deleted.rowcount:
                    raise NotAssignedException()
                await self.session.execute(
                    insert(pr_reviewers).values(
                        pr_id=pr_id, reviewer_id=new_reviewer_id, assigned_at=utcnow()
                    )
                )
        except IntegrityError as exc:
            raise AlreadyAssignedException() from exc

    async def get_prs_by_reviewer(self, user_id: str) -> list[PullRequestSchema]:
        """Получить PR'ы любого статуса, где пользователь ревьювер."""
        query = (
            select(PullRequest)
            .join(pr_reviewers, PullRequest.pull_request_id == pr_reviewers.c.pr_id)
            .where(pr_reviewers.c.reviewer_id == user_id)
            .order_by(PullRequest.created_at, PullRequest.pull_request_id)
            .execution_options(populate_existing=True)
        )
        return await self._fetch(query)

    async def get_open_prs_for_team_reviewers(self, team_name: str) -> list[PullRequestSchema]:
        """Получить открытые PR, где хотя бы один ревьювер из команды."""
        team_reviews = (
            select(pr_reviewers.c.pr_id)
            .join(User, User.user_id == pr_reviewers.c.reviewer_id)
            .where(User.team_name == team_name)
        )
        query = (
            select(PullRequest)
            .where(
                PullRequest.status == STATUS_OPEN,
                PullRequest.pull_request_id.in_(team_reviews),
            )
            .order_by(PullRequest.created_at, PullRequest.pull_request_id)
            .execution_options(populate_existing=True)
        )
        return await self._fetch(query)

    async def get_user_stats(self) -> list[UserStatsSchema]:
        """Получить всех пользователей со списком назначенных им PR."""
        assignment_count = func.count(pr_reviewers.c.pr_id).label("assignment_count")
        stats_query = (
            select(User.user_id, User.team_name, User.username, assignment_count)
            .outerjoin(pr_reviewers, User.user_id == pr_reviewers.c.reviewer_id)
            .group_by(User.user_id, User.team_name, User.username)
            .order_by(assignment_count.desc(), User.user_id)
        )
        rows = (await self.session.execute(stats_query)).all()

        assignments = await self.session.execute(
            select(pr_reviewers.c.reviewer_id, pr_reviewers.c.pr_id).order_by(pr_reviewers.c.pr_id)
        )
        prs_by_user: dict[str, list[str]] = defaultdict(list)
        for reviewer_id, pr_id in assignments.all():
            prs_by_user[reviewer_id].append(pr_id)

        return [
            UserStatsSchema(
                user_id=row.user_id,
                team_name=row.team_name,
                username=row.username,
                assignment_count=int(row.assignment_count or 0),
                assigned_prs=prs_by_user.get(row.user_id, []),
            )
            for row in rows
        ]

    async def _fetch(self, query) -> list[PullRequestSchema]:
        result = await self.session.execute(query)
        prs = list(result.scalars().unique().all())
        reviewers = await self._load_reviewers([pr.pull_request_id for pr in prs])
        return [self._pr_to_schema(pr, reviewers[pr.pull_request_id]) for pr in prs]

    async def _load_reviewers(self, pr_ids: list[str]) -> dict[str, list[str]]:
        """Ревьюверы для набора PR в порядке назначения."""
        reviewers: dict[str, list[str]] = defaultdict(list)
        if not pr_ids:
            return reviewers
        result = await self.session.execute(
            select(pr_reviewers.c.pr_id, pr_reviewers.c.reviewer_id)
            .where(pr_reviewers.c.pr_id.in_(pr_ids))
            .order_by(pr_reviewers.c.assigned_at, pr_reviewers.c.reviewer_id)
        )
        for pr_id, reviewer_id in result.all():
            reviewers[pr_id].append(reviewer_id)
        return reviewers

    @staticmethod
    def _pr_to_schema(pr: PullRequest, reviewers: list[str]) -> PullRequestSchema:
        """Преобразовать модель в схему."""
        return PullRequestSchema(
            pull_request_id=pr.pull_request_id,
            pull_request_name=pr.pull_request_name,
            author_id=pr.author_id,
            status=pr.status,
            assigned_reviewers=list(reviewers),
            created_at=pr.created_at,
            merged_at=pr.merged_at,
        )
