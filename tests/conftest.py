"""Конфигурация тестов."""

import random

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import Base
from app.db.models import Team, User
from app.db.repositories.memory import create_memory_stores
from app.db.repositories.pr_repository import PRRepository
from app.db.repositories.team_repository import TeamRepository
from app.db.repositories.user_repository import UserRepository
from app.schemas.team import TeamMemberInput


@pytest.fixture(scope="function")
async def test_db():
    """Создать тестовую БД в памяти."""

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SAVEPOINT в sqlite работает только если BEGIN выдаём сами
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_session_maker

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def session(test_db):
    """Создать сессию БД для теста."""
    async with test_db() as session:
        yield session


@pytest.fixture
def sql_stores(session):
    """SQL-хранилища поверх тестовой сессии."""
    return TeamRepository(session), UserRepository(session), PRRepository(session)


@pytest.fixture
def memory_stores():
    """Хранилища в памяти с общим состоянием."""
    return create_memory_stores()


@pytest.fixture
def rng():
    """Детерминированный источник случайности."""
    return random.Random(42)


@pytest.fixture
async def sample_team(session):
    """Создать тестовую команду."""
    team = Team(team_name="backend")
    session.add(team)
    await session.flush()

    users = [
        User(user_id="u1", username="Alice", team_name="backend", is_active=True),
        User(user_id="u2", username="Bob", team_name="backend", is_active=True),
        User(user_id="u3", username="Charlie", team_name="backend", is_active=True),
        User(user_id="u4", username="Dave", team_name="backend", is_active=True),
    ]
    for user in users:
        session.add(user)

    await session.commit()
    return team


async def add_members(team_store, team_name: str, *members: tuple[str, bool]):
    """Создать команду из пар (user_id, is_active)."""
    return await team_store.create_team(
        team_name,
        [
            TeamMemberInput(user_id=user_id, username=user_id.upper(), is_active=is_active)
            for user_id, is_active in members
        ],
    )


@pytest.fixture
async def client(session, rng):
    """HTTP клиент приложения поверх тестовой сессии."""
    from app.api.dependencies import get_rng, get_session
    from app.main import app

    async def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_rng] = lambda: rng

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
