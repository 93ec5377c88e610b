"""Базовый класс для сервисов."""

from app.core.logging import get_logger
from app.db.repositories.interfaces import PRStore, TeamStore, UserStore


class BaseService:
    """Базовый класс для всех сервисов: доступ к хранилищам и логгер."""

    def __init__(self, team_store: TeamStore, user_store: UserStore, pr_store: PRStore):
        self.team_store = team_store
        self.user_store = user_store
        self.pr_store = pr_store
        self.logger = get_logger(type(self).__module__).bind(service=type(self).__name__)
