"""Тесты для сервиса Pull Request'ов."""

import random

import pytest
from sqlalchemy import update

from app.core.exceptions import (
    AlreadyAssignedException,
    InvalidStatusException,
    NoCandidateException,
    NotAssignedException,
    NotFoundException,
    PRExistsException,
    PRMergedException,
)
from app.db.models import STATUS_MERGED, STATUS_OPEN, PullRequest
from app.db.repositories.memory import InMemoryPRStore, InMemoryStorage, InMemoryTeamStore, InMemoryUserStore
from app.domain.pull_requests.service import PullRequestService
from app.schemas.pr import PullRequestSchema
from conftest import add_members


@pytest.fixture
def pr_service(memory_stores, rng):
    return PullRequestService(*memory_stores, rng=rng)


@pytest.fixture
async def backend(memory_stores):
    """Команда backend: u1, u2, u3 активны."""
    team_store, _, _ = memory_stores
    return await add_members(team_store, "backend", ("u1", True), ("u2", True), ("u3", True))


# --- хранилища в памяти ---


@pytest.mark.asyncio
async def test_create_pr_assigns_teammates(pr_service, backend):
    """Автор u1, в команде u2 и u3: назначены ровно они."""
    pr = await pr_service.create_pr("pr-1", "Add feature", "u1")
    assert pr.status == "OPEN"
    assert sorted(pr.assigned_reviewers) == ["u2", "u3"]
    assert pr.created_at is not None
    assert pr.merged_at is None


@pytest.mark.asyncio
async def test_create_pr_skips_inactive_members(memory_stores, pr_service):
    team_store, _, _ = memory_stores
    await add_members(team_store, "backend", ("u1", True), ("u2", False), ("u3", True))
    pr = await pr_service.create_pr("pr-1", "Add feature", "u1")
    assert pr.assigned_reviewers == ["u3"]


@pytest.mark.asyncio
async def test_create_pr_without_candidates(memory_stores, pr_service):
    """Пустой пул - PR без ревьюверов, а не ошибка."""
    team_store, _, _ = memory_stores
    await add_members(team_store, "solo", ("u1", True))
    pr = await pr_service.create_pr("pr-1", "Add feature", "u1")
    assert pr.assigned_reviewers == []


@pytest.mark.asyncio
async def test_create_pr_unknown_author(pr_service, backend):
    with pytest.raises(NotFoundException):
        await pr_service.create_pr("pr-1", "Add feature", "ghost")


@pytest.mark.asyncio
async def test_create_pr_duplicate_id(pr_service, backend):
    await pr_service.create_pr("pr-1", "Add feature", "u1")
    with pytest.raises(PRExistsException):
        await pr_service.create_pr("pr-1", "Another", "u2")


@pytest.mark.asyncio
async def test_create_pr_respects_reviewer_count(memory_stores, rng):
    team_store, _, _ = memory_stores
    await add_members(team_store, "big", *[(f"u{i}", True) for i in range(1, 8)])
    service = PullRequestService(*memory_stores, rng=rng, reviewers_per_pr=3)
    pr = await service.create_pr("pr-1", "Add feature", "u1")
    assert len(pr.assigned_reviewers) == 3


@pytest.mark.asyncio
async def test_author_never_reviews_and_no_duplicates(memory_stores):
    team_store, _, _ = memory_stores
    await add_members(team_store, "big", *[(f"u{i}", True) for i in range(1, 6)])
    for seed in range(20):
        service = PullRequestService(*memory_stores, rng=random.Random(seed))
        author = f"u{seed % 5 + 1}"
        pr = await service.create_pr(f"pr-{seed}", "PR", author)
        assert author not in pr.assigned_reviewers
        assert len(pr.assigned_reviewers) == len(set(pr.assigned_reviewers)) == 2


@pytest.mark.asyncio
async def test_merge_pr_idempotent(pr_service, backend):
    await pr_service.create_pr("pr-1", "Add feature", "u1")
    first = await pr_service.merge_pr("pr-1")
    second = await pr_service.merge_pr("pr-1")
    assert first.status == second.status == "MERGED"
    assert first.merged_at is not None
    assert first.merged_at == second.merged_at


@pytest.mark.asyncio
async def test_merge_unknown_pr(pr_service):
    with pytest.raises(NotFoundException):
        await pr_service.merge_pr("missing")


@pytest.mark.asyncio
async def test_merge_lost_race_returns_merged_state(rng):
    """Проигравший конкурентный merge получает уже смерженный PR без ошибки."""

    class RacingPRStore(InMemoryPRStore):
        async def merge_pr(self, pr_id):
            await super().merge_pr(pr_id)
            raise PRMergedException()

    storage = InMemoryStorage()
    team_store = InMemoryTeamStore(storage)
    service = PullRequestService(
        team_store, InMemoryUserStore(storage), RacingPRStore(storage), rng=rng
    )
    await add_members(team_store, "backend", ("u1", True), ("u2", True))
    await service.create_pr("pr-1", "Add feature", "u1")

    pr = await service.merge_pr("pr-1")
    assert pr.status == "MERGED"
    assert pr.merged_at is not None


@pytest.mark.asyncio
async def test_unknown_status_is_rejected(memory_stores, pr_service, backend):
    _, _, pr_store = memory_stores
    await pr_service.create_pr("pr-1", "Add feature", "u1")
    pr_store.storage.prs["pr-1"].status = "CLOSED"

    with pytest.raises(InvalidStatusException):
        await pr_service.merge_pr("pr-1")
    with pytest.raises(PRMergedException):
        await pr_service.reassign_reviewer("pr-1", "u2")


@pytest.mark.asyncio
async def test_reassign_picks_remaining_candidate(memory_stores, pr_service):
    """pr-1 с ревьюверами [u2, u3], в команде появился u4: u2 меняется на u4."""
    team_store, user_store, _ = memory_stores
    await add_members(
        team_store, "backend", ("u1", True), ("u2", True), ("u3", True), ("u4", False)
    )
    created = await pr_service.create_pr("pr-1", "Add feature", "u1")
    assert sorted(created.assigned_reviewers) == ["u2", "u3"]
    await user_store.set_user_active("u4", True)

    pr, new_reviewer = await pr_service.reassign_reviewer("pr-1", "u2")
    assert new_reviewer == "u4"
    assert sorted(pr.assigned_reviewers) == ["u3", "u4"]
    assert pr.assigned_reviewers[-1] == "u4"


@pytest.mark.asyncio
async def test_reassign_no_candidate(pr_service, backend):
    await pr_service.create_pr("pr-1", "Add feature", "u1")
    with pytest.raises(NoCandidateException):
        await pr_service.reassign_reviewer("pr-1", "u2")


@pytest.mark.asyncio
async def test_reassign_not_assigned(pr_service, backend):
    await pr_service.create_pr("pr-1", "Add feature", "u1")
    with pytest.raises(NotAssignedException):
        await pr_service.reassign_reviewer("pr-1", "u1")


@pytest.mark.asyncio
async def test_reassign_on_merged_pr(pr_service, backend):
    await pr_service.create_pr("pr-1", "Add feature", "u1")
    await pr_service.merge_pr("pr-1")
    with pytest.raises(PRMergedException):
        await pr_service.reassign_reviewer("pr-1", "u2")


@pytest.mark.asyncio
async def test_reassign_unknown_pr(pr_service):
    with pytest.raises(NotFoundException):
        await pr_service.reassign_reviewer("missing", "u2")


@pytest.mark.asyncio
async def test_store_rejects_duplicate_reviewer(memory_stores, pr_service, backend):
    _, _, pr_store = memory_stores
    await pr_service.create_pr("pr-1", "Add feature", "u1")
    with pytest.raises(AlreadyAssignedException):
        await pr_store.reassign_reviewer("pr-1", "u2", "u3")
    pr = await pr_store.get_pr("pr-1")
    assert sorted(pr.assigned_reviewers) == ["u2", "u3"]


@pytest.mark.asyncio
async def test_get_prs_by_reviewer_all_statuses(pr_service, backend):
    await pr_service.create_pr("pr-1", "First", "u1")
    await pr_service.create_pr("pr-2", "Second", "u1")
    await pr_service.merge_pr("pr-1")

    prs = await pr_service.get_prs_by_reviewer("u2")
    assert [pr.pull_request_id for pr in prs] == ["pr-1", "pr-2"]
    assert [pr.status for pr in prs] == ["MERGED", "OPEN"]


@pytest.mark.asyncio
async def test_get_prs_by_unknown_reviewer(pr_service):
    with pytest.raises(NotFoundException):
        await pr_service.get_prs_by_reviewer("ghost")


@pytest.mark.asyncio
async def test_user_stats(pr_service, backend):
    await pr_service.create_pr("pr-1", "First", "u1")
    await pr_service.create_pr("pr-2", "Second", "u1")

    stats = {s.user_id: s for s in await pr_service.get_user_stats()}
    assert stats["u1"].assignment_count == 0
    assert stats["u1"].assigned_prs == []
    assert stats["u2"].assignment_count == 2
    assert stats["u2"].assigned_prs == ["pr-1", "pr-2"]
    assert stats["u3"].team_name == "backend"


# --- SQLAlchemy ---


@pytest.mark.asyncio
async def test_create_pr(sql_stores, rng, sample_team):
    """Тест создания PR с автоматическим назначением ревьюверов."""
    service = PullRequestService(*sql_stores, rng=rng)
    pr = await service.create_pr("pr-1", "Test PR", "u1")
    assert pr.pull_request_id == "pr-1"
    assert pr.status == "OPEN"
    assert len(pr.assigned_reviewers) == 2
    # Автор не должен быть в списке ревьюверов
    assert "u1" not in pr.assigned_reviewers


@pytest.mark.asyncio
async def test_create_pr_with_duplicate_id(sql_stores, rng, sample_team):
    """Тест создания PR с дублирующимся ID."""
    service = PullRequestService(*sql_stores, rng=rng)
    await service.create_pr("pr-1", "Test PR", "u1")

    with pytest.raises(PRExistsException):
        await service.create_pr("pr-1", "Another PR", "u2")

    # savepoint откатился, сессия жива
    pr = await service.get_pr("pr-1")
    assert pr.pull_request_name == "Test PR"


@pytest.mark.asyncio
async def test_merge_pr(sql_stores, rng, sample_team):
    """Тест merge PR."""
    service = PullRequestService(*sql_stores, rng=rng)
    await service.create_pr("pr-1", "Test PR", "u1")
    pr = await service.merge_pr("pr-1")
    assert pr.status == "MERGED"
    assert pr.merged_at is not None


@pytest.mark.asyncio
async def test_merge_pr_idempotent_sql(sql_stores, rng, sample_team):
    """Тест идемпотентности merge PR."""
    service = PullRequestService(*sql_stores, rng=rng)
    await service.create_pr("pr-1", "Test PR", "u1")
    first = await service.merge_pr("pr-1")
    second = await service.merge_pr("pr-1")  # Повторный вызов
    assert first.status == second.status == "MERGED"
    assert first.merged_at == second.merged_at


@pytest.mark.asyncio
async def test_reassign_reviewer(sql_stores, rng, sample_team):
    """Тест переназначения ревьювера."""
    service = PullRequestService(*sql_stores, rng=rng)
    created = await service.create_pr("pr-1", "Test PR", "u1")
    old_reviewer = created.assigned_reviewers[0]

    pr, replaced_by = await service.reassign_reviewer("pr-1", old_reviewer)
    assert replaced_by != old_reviewer
    assert replaced_by != "u1"
    assert replaced_by in pr.assigned_reviewers
    assert old_reviewer not in pr.assigned_reviewers
    assert len(pr.assigned_reviewers) == 2


@pytest.mark.asyncio
async def test_reassign_on_merged_pr_sql(sql_stores, rng, sample_team):
    """Тест переназначения на merged PR."""
    service = PullRequestService(*sql_stores, rng=rng)
    created = await service.create_pr("pr-1", "Test PR", "u1")
    await service.merge_pr("pr-1")
    with pytest.raises(PRMergedException):
        await service.reassign_reviewer("pr-1", created.assigned_reviewers[0])


@pytest.mark.asyncio
async def test_get_prs_by_reviewer_sql(sql_stores, rng, sample_team):
    service = PullRequestService(*sql_stores, rng=rng)
    created = await service.create_pr("pr-1", "Test PR", "u1")
    reviewer = created.assigned_reviewers[0]

    prs = await service.get_prs_by_reviewer(reviewer)
    assert [pr.pull_request_id for pr in prs] == ["pr-1"]
    assert await service.get_prs_by_reviewer("u1") == []


async def create_sql_pr(pr_store, pr_id: str, author_id: str, *reviewers: str):
    """Создать PR в SQL-хранилище с заданными ревьюверами."""
    return await pr_store.create_pr(
        PullRequestSchema(
            pull_request_id=pr_id,
            pull_request_name=f"PR {pr_id}",
            author_id=author_id,
            status=STATUS_OPEN,
            assigned_reviewers=list(reviewers),
        )
    )


@pytest.mark.asyncio
async def test_sql_store_rejects_duplicate_reviewer(sql_stores, sample_team):
    """Повторное назначение упирается в первичный ключ, старый ревьювер остаётся."""
    _, _, pr_store = sql_stores
    await create_sql_pr(pr_store, "pr-1", "u1", "u2", "u4")

    with pytest.raises(AlreadyAssignedException):
        await pr_store.reassign_reviewer("pr-1", "u2", "u4")

    pr = await pr_store.get_pr("pr-1")
    assert pr.assigned_reviewers == ["u2", "u4"]


@pytest.mark.asyncio
async def test_sql_store_reassign_not_assigned(sql_stores, sample_team):
    """Слот, которого нет (или который уже освободили), даёт NotAssigned."""
    _, _, pr_store = sql_stores
    await create_sql_pr(pr_store, "pr-1", "u1", "u2", "u4")

    with pytest.raises(NotAssignedException):
        await pr_store.reassign_reviewer("pr-1", "u1", "u3")

    pr = await pr_store.get_pr("pr-1")
    assert pr.assigned_reviewers == ["u2", "u4"]


@pytest.mark.asyncio
async def test_sql_store_second_merge_rejected(sql_stores, sample_team):
    """Условный UPDATE срабатывает один раз, второй merge видит MERGED."""
    _, _, pr_store = sql_stores
    await create_sql_pr(pr_store, "pr-1", "u1", "u2")

    merged_at = await pr_store.merge_pr("pr-1")
    with pytest.raises(PRMergedException):
        await pr_store.merge_pr("pr-1")

    pr = await pr_store.get_pr("pr-1")
    assert pr.status == STATUS_MERGED
    assert pr.merged_at == merged_at


@pytest.mark.asyncio
async def test_sql_store_merge_unknown_status(session, sql_stores, sample_team):
    _, _, pr_store = sql_stores
    await create_sql_pr(pr_store, "pr-1", "u1", "u2")
    await session.execute(
        update(PullRequest).where(PullRequest.pull_request_id == "pr-1").values(status="CLOSED")
    )

    with pytest.raises(InvalidStatusException):
        await pr_store.merge_pr("pr-1")
    with pytest.raises(NotFoundException):
        await pr_store.merge_pr("pr-404")
