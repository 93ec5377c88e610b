"""Хранилища в памяти: та же семантика, что у SQL-репозиториев, без БД.

Все три хранилища работают поверх общего InMemoryStorage. Наружу
отдаются копии, чтобы вызывающий код не мог менять состояние в обход
хранилища.
"""

from datetime import datetime

from app.core.exceptions import (
    AlreadyAssignedException,
    InvalidStatusException,
    NotAssignedException,
    NotFoundException,
    PRExistsException,
    PRMergedException,
    TeamExistsException,
)
from app.db.models import STATUS_MERGED, STATUS_OPEN, utcnow
from app.db.repositories.interfaces import PRStore, TeamStore, UserStore
from app.schemas.pr import PullRequestSchema
from app.schemas.stats import UserStatsSchema
from app.schemas.team import TeamMemberInput, TeamMemberSchema, TeamSchema
from app.schemas.user import UserSchema


class InMemoryStorage:
    """Общее состояние хранилищ."""

    def __init__(self):
        self.teams: set[str] = set()
        self.users: dict[str, UserSchema] = {}
        # dict сохраняет порядок вставки, он же порядок создания PR
        self.prs: dict[str, PullRequestSchema] = {}


class InMemoryUserStore(UserStore):
    def __init__(self, storage: InMemoryStorage):
        self.storage = storage

    async def get_user(self, user_id: str) -> UserSchema:
        user = self.storage.users.get(user_id)
        if user is None:
            raise NotFoundException("User")
        return user.model_copy()

    async def set_user_active(self, user_id: str, is_active: bool) -> UserSchema:
        user = self.storage.users.get(user_id)
        if user is None:
            raise NotFoundException("User")
        user.is_active = is_active
        return user.model_copy()

    async def deactivate_team_members(self, team_name: str) -> int:
        count = 0
        for user in self.storage.users.values():
            if user.team_name == team_name:
                user.is_active = False
                count += 1
        return count


class InMemoryTeamStore(TeamStore):
    def __init__(self, storage: InMemoryStorage):
        self.storage = storage

    async def get_team(self, team_name: str) -> TeamSchema:
        if team_name not in self.storage.teams:
            raise NotFoundException("Team")
        members = sorted(
            (u for u in self.storage.users.values() if u.team_name == team_name),
            key=lambda u: u.user_id,
        )
        return TeamSchema(
            team_name=team_name,
            members=[
                TeamMemberSchema(user_id=u.user_id, username=u.username, is_active=u.is_active)
                for u in members
            ],
        )

    async def create_team(self, team_name: str, members: list[TeamMemberInput]) -> TeamSchema:
        if team_name in self.storage.teams:
            raise TeamExistsException()
        self.storage.teams.add(team_name)

        for member in members:
            user = self.storage.users.get(member.user_id)
            if user is None:
                self.storage.users[member.user_id] = UserSchema(
                    user_id=member.user_id,
                    username=member.username,
                    team_name=team_name,
                    is_active=True if member.is_active is None else member.is_active,
                )
                continue

            user.username = member.username
            user.team_name = team_name
            if member.is_active is not None:
                user.is_active = member.is_active

        return await self.get_team(team_name)


class InMemoryPRStore(PRStore):
    def __init__(self, storage: InMemoryStorage):
        self.storage = storage

    async def create_pr(self, pr: PullRequestSchema) -> PullRequestSchema:
        if pr.pull_request_id in self.storage.prs:
            raise PRExistsException()
        if len(set(pr.assigned_reviewers)) != len(pr.assigned_reviewers):
            raise AlreadyAssignedException()
        stored = pr.model_copy(deep=True)
        stored.status = STATUS_OPEN
        stored.created_at = pr.created_at or utcnow()
        stored.merged_at = None
        self.storage.prs[pr.pull_request_id] = stored
        return stored.model_copy(deep=True)

    async def get_pr(self, pr_id: str) -> PullRequestSchema:
        return self._get(pr_id).model_copy(deep=True)

    async def merge_pr(self, pr_id: str) -> datetime:
        pr = self._get(pr_id)
        if pr.status == STATUS_MERGED:
            raise PRMergedException()
        if pr.status != STATUS_OPEN:
            raise InvalidStatusException(pr.status)
        pr.status = STATUS_MERGED
        pr.merged_at = utcnow()
        return pr.merged_at

    async def reassign_reviewer(self, pr_id: str, old_reviewer_id: str, new_reviewer_id: str) -> None:
        pr = self._get(pr_id)
        if old_reviewer_id not in pr.assigned_reviewers:
            raise NotAssignedException()
        if new_reviewer_id in pr.assigned_reviewers:
            raise AlreadyAssignedException()
        pr.assigned_reviewers.remove(old_reviewer_id)
        pr.assigned_reviewers.append(new_reviewer_id)

    async def get_prs_by_reviewer(self, user_id: str) -> list[PullRequestSchema]:
        return [
            pr.model_copy(deep=True)
            for pr in self.storage.prs.values()
            if user_id in pr.assigned_reviewers
        ]

    async def get_open_prs_for_team_reviewers(self, team_name: str) -> list[PullRequestSchema]:
        members = {u.user_id for u in self.storage.users.values() if u.team_name == team_name}
        return [
            pr.model_copy(deep=True)
            for pr in self.storage.prs.values()
            if pr.status == STATUS_OPEN and members.intersection(pr.assigned_reviewers)
        ]

    async def get_user_stats(self) -> list[UserStatsSchema]:
        stats = []
        for user in self.storage.users.values():
            assigned = sorted(
                pr_id
                for pr_id, pr in self.storage.prs.items()
                if user.user_id in pr.assigned_reviewers
            )
            stats.append(
                UserStatsSchema(
                    user_id=user.user_id,
                    team_name=user.team_name,
                    username=user.username,
                    assignment_count=len(assigned),
                    assigned_prs=assigned,
                )
            )
        stats.sort(key=lambda s: (-s.assignment_count, s.user_id))
        return stats

    def _get(self, pr_id: str) -> PullRequestSchema:
        pr = self.storage.prs.get(pr_id)
        if pr is None:
            raise NotFoundException("PR")
        return pr


def create_memory_stores() -> tuple[InMemoryTeamStore, InMemoryUserStore, InMemoryPRStore]:
    """Создать согласованный набор хранилищ поверх одного состояния."""
    storage = InMemoryStorage()
    return InMemoryTeamStore(storage), InMemoryUserStore(storage), InMemoryPRStore(storage)
