"""Сервис для работы с командами."""

from typing import Optional

from app.core.config import settings
from app.core.exceptions import (
    DuplicateUserIDException,
    EmptyTeamException,
    NoCandidateException,
    NotFoundException,
    ServiceException,
    TeamExistsException,
    UserInAnotherTeamException,
)
from app.db.repositories.interfaces import PRStore, TeamStore, UserStore
from app.domain.base_service import BaseService
from app.domain.pull_requests.service import PullRequestService
from app.schemas.team import DeactivateTeamResponse, TeamMemberInput, TeamSchema


class TeamService(BaseService):
    """Сервис для работы с командами."""

    def __init__(
        self,
        team_store: TeamStore,
        user_store: UserStore,
        pr_store: PRStore,
        pr_service: Optional[PullRequestService] = None,
        reject_empty: bool = settings.REJECT_EMPTY_TEAMS,
    ):
        super().__init__(team_store, user_store, pr_store)
        self.pr_service = pr_service or PullRequestService(team_store, user_store, pr_store)
        self.reject_empty = reject_empty

    async def create_team(self, team_name: str, members: list[TeamMemberInput]) -> TeamSchema:
        """Создать команду с участниками."""
        if not members and self.reject_empty:
            raise EmptyTeamException()

        seen = set()
        for member in members:
            if member.user_id in seen:
                raise DuplicateUserIDException(member.user_id)
            seen.add(member.user_id)

        for member in members:
            try:
                user = await self.user_store.get_user(member.user_id)
            except NotFoundException:
                continue
            if user.team_name and user.team_name != team_name:
                raise UserInAnotherTeamException(member.user_id, user.team_name)

        try:
            await self.team_store.get_team(team_name)
        except NotFoundException:
            pass
        else:
            self.logger.warning("team_already_exists", team_name=team_name)
            raise TeamExistsException()

        team = await self.team_store.create_team(team_name, members)
        self.logger.info("team_created", team_name=team_name, members=len(team.members))
        return team

    async def get_team(self, team_name: str) -> TeamSchema:
        """Получить команду с участниками."""
        return await self.team_store.get_team(team_name)

    async def deactivate_team(self, team_name: str) -> DeactivateTeamResponse:
        """Деактивировать команду с переназначением её открытых ревью.

        Пакетная операция без отката: отсутствие кандидата пропускается,
        прочие ошибки переназначения логируются, итог отдаётся счётчиками.
        """
        team = await self.team_store.get_team(team_name)
        member_ids = {m.user_id for m in team.members}

        prs = await self.pr_store.get_open_prs_for_team_reviewers(team_name)
        reassigned = skipped = failed = 0

        for pr in prs:
            for reviewer_id in [r for r in pr.assigned_reviewers if r in member_ids]:
                try:
                    await self.pr_service.reassign_reviewer(pr.pull_request_id, reviewer_id)
                except NoCandidateException:
                    skipped += 1
                except ServiceException as exc:
                    failed += 1
                    self.logger.warning(
                        "reassign_failed",
                        pr_id=pr.pull_request_id,
                        reviewer_id=reviewer_id,
                        code=exc.code,
                    )
                except Exception:
                    failed += 1
                    self.logger.exception(
                        "reassign_failed", pr_id=pr.pull_request_id, reviewer_id=reviewer_id
                    )
                else:
                    reassigned += 1

        deactivated = await self.user_store.deactivate_team_members(team_name)

        self.logger.info(
            "team_deactivated",
            team_name=team_name,
            users=deactivated,
            prs=len(prs),
            reassigned=reassigned,
            skipped=skipped,
            failed=failed,
        )
        return DeactivateTeamResponse(deactivated_users=deactivated, reassigned_prs=reassigned)
