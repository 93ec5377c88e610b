"""Интерфейсы хранилищ, которыми пользуется доменный слой.

Две реализации: SQLAlchemy-репозитории (app.db.repositories.*_repository)
и хранилища в памяти (app.db.repositories.memory).

Отсутствующие записи - NotFoundException, нарушение уникальности -
TeamExistsException/PRExistsException, коллизия ревьюверов -
AlreadyAssignedException.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from app.schemas.pr import PullRequestSchema
from app.schemas.stats import UserStatsSchema
from app.schemas.team import TeamMemberInput, TeamSchema
from app.schemas.user import UserSchema


class UserStore(ABC):
    """Хранилище пользователей."""

    @abstractmethod
    async def get_user(self, user_id: str) -> UserSchema:
        ...

    @abstractmethod
    async def set_user_active(self, user_id: str, is_active: bool) -> UserSchema:
        ...

    @abstractmethod
    async def deactivate_team_members(self, team_name: str) -> int:
        """Деактивировать всех участников команды, вернуть их число."""


class TeamStore(ABC):
    """Хранилище команд."""

    @abstractmethod
    async def get_team(self, team_name: str) -> TeamSchema:
        ...

    @abstractmethod
    async def create_team(self, team_name: str, members: list[TeamMemberInput]) -> TeamSchema:
        """Создать команду и upsert-нуть её участников одной операцией."""


class PRStore(ABC):
    """Хранилище Pull Request'ов."""

    @abstractmethod
    async def create_pr(self, pr: PullRequestSchema) -> PullRequestSchema:
        ...

    @abstractmethod
    async def get_pr(self, pr_id: str) -> PullRequestSchema:
        ...

    @abstractmethod
    async def merge_pr(self, pr_id: str) -> datetime:
        """Атомарно перевести OPEN -> MERGED.

        PRMergedException, если PR уже смержен; InvalidStatusException
        при любом другом статусе.
        """

    @abstractmethod
    async def reassign_reviewer(self, pr_id: str, old_reviewer_id: str, new_reviewer_id: str) -> None:
        """Заменить ревьювера атомарно.

        NotAssignedException, если старого ревьювера на PR уже нет;
        AlreadyAssignedException, если новый уже назначен.
        """

    @abstractmethod
    async def get_prs_by_reviewer(self, user_id: str) -> list[PullRequestSchema]:
        ...

    @abstractmethod
    async def get_open_prs_for_team_reviewers(self, team_name: str) -> list[PullRequestSchema]:
        """Открытые PR, где хотя бы один ревьювер из команды team_name."""

    @abstractmethod
    async def get_user_stats(self) -> list[UserStatsSchema]:
        ...
