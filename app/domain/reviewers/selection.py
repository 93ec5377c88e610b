"""Политика выбора ревьюверов.

Чистые функции: пул кандидатов строится по свежему состоянию команды,
источник случайности передаётся явно.
"""

import random
from collections.abc import Iterable

from app.core.config import settings
from app.schemas.pr import PullRequestSchema
from app.schemas.team import TeamSchema

# Общий генератор для сервисов; RANDOM_SEED делает выбор воспроизводимым
default_rng = random.Random(settings.RANDOM_SEED)


def select_reviewers(candidates: Iterable[str], count: int, rng: random.Random) -> list[str]:
    """Выбрать до count ревьюверов из пула случайно и без повторов."""
    pool = list(dict.fromkeys(candidates))
    if count <= 0 or not pool:
        return []
    return rng.sample(pool, min(count, len(pool)))


def creation_pool(team: TeamSchema, author_id: str) -> list[str]:
    """Кандидаты при создании PR: активные участники команды автора, кроме автора."""
    return [m.user_id for m in team.members if m.is_active and m.user_id != author_id]


def reassignment_pool(team: TeamSchema, pr: PullRequestSchema, old_reviewer_id: str) -> list[str]:
    """Кандидаты на замену ревьювера.

    Активные участники команды уходящего ревьювера, кроме автора PR,
    уже назначенных ревьюверов и самого уходящего.
    """
    excluded = {pr.author_id, old_reviewer_id, *pr.assigned_reviewers}
    return [m.user_id for m in team.members if m.is_active and m.user_id not in excluded]
