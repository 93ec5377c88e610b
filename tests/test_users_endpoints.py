"""Тесты для сервиса пользователей."""

import pytest

from app.core.exceptions import NotFoundException
from app.domain.pull_requests.service import PullRequestService
from app.domain.users.service import UserService


@pytest.mark.asyncio
async def test_set_user_active(sql_stores, sample_team):
    """Тест установки флага активности пользователя."""
    service = UserService(*sql_stores)
    user = await service.set_is_active("u1", False)
    assert user.is_active is False
    assert user.team_name == "backend"

    user = await service.get_user("u1")
    assert user.is_active is False


@pytest.mark.asyncio
async def test_set_nonexistent_user_active(sql_stores):
    """Тест установки флага активности несуществующего пользователя."""
    service = UserService(*sql_stores)
    with pytest.raises(NotFoundException):
        await service.set_is_active("nonexistent", False)


@pytest.mark.asyncio
async def test_inactive_user_not_assigned(sql_stores, rng, sample_team):
    """Деактивированный пользователь не попадает в ревьюверы."""
    await UserService(*sql_stores).set_is_active("u2", False)

    pr_service = PullRequestService(*sql_stores, rng=rng)
    pr = await pr_service.create_pr("pr-1", "Test PR", "u1")
    assert sorted(pr.assigned_reviewers) == ["u3", "u4"]


@pytest.mark.asyncio
async def test_user_stats_sql(sql_stores, rng, sample_team):
    """Статистика считается по PR любого статуса."""
    pr_service = PullRequestService(*sql_stores, rng=rng)
    await pr_service.create_pr("pr-1", "First", "u1")
    await pr_service.create_pr("pr-2", "Second", "u1")
    await pr_service.merge_pr("pr-1")

    stats = await pr_service.get_user_stats()
    assert len(stats) == 4
    by_user = {s.user_id: s for s in stats}
    assert by_user["u1"].assignment_count == 0
    assert sum(s.assignment_count for s in stats) == 4
    for stat in stats:
        assert stat.assignment_count == len(stat.assigned_prs)
    counts = [s.assignment_count for s in stats]
    assert counts == sorted(counts, reverse=True)
