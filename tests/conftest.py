"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Generator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from learnplay.auth.jwt import create_access_token
from learnplay.catalog.seed import seed_catalog
from learnplay.config import Settings, get_settings
from learnplay.database import close_db, get_engine, get_session_factory, init_db
from learnplay.db import models  # noqa: F401
from learnplay.db.base import Base
from learnplay.games.schemas import Game
from learnplay.main import create_app
from learnplay.store import SqlTableStore
from learnplay.users.service import UserService

TEST_USER_ID = "user-1"


@pytest.fixture(autouse=True)
def test_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[Settings, None, None]:
    """Point the app at a per-test SQLite file and disable Redis."""
    monkeypatch.setenv("LP_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'learnplay.db'}")
    monkeypatch.setenv("LP_REDIS_URL", "")
    monkeypatch.setenv("LP_JWT_SECRET", "test-secret")
    monkeypatch.setenv("LP_SEED_CATALOG_ON_STARTUP", "false")
    monkeypatch.setenv("LP_LOG_FORMAT", "console")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def session_factory(test_settings: Settings) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Initialized engine with the full schema created."""
    await init_db(test_settings.database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield get_session_factory()
    await close_db()


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> SqlTableStore:
    return SqlTableStore(session_factory)


@pytest_asyncio.fixture
async def user_id(store: SqlTableStore) -> str:
    """A registered user (profile and stats row)."""
    await UserService(store).register_profile(TEST_USER_ID, full_name="Ada Lovelace", email="ada@example.com")
    return TEST_USER_ID


@pytest_asyncio.fixture
async def game(store: SqlTableStore) -> Game:
    row = await store.insert(
        "games",
        {
            "title": "Math Quiz Challenge",
            "description": "Test your mathematical skills with rapid-fire questions",
            "category": "Mathematics",
            "difficulty": "Medium",
            "points_reward": 150,
        },
    )
    return Game.model_validate(row)


@pytest_asyncio.fixture
async def achievements(store: SqlTableStore) -> dict[str, str]:
    """Three thresholds: 0, 100 and 1000 points. Returns name -> id."""
    ids = {}
    for name, required in [("Welcome Aboard", 0), ("Century Club", 100), ("Rising Scholar", 1000)]:
        row = await store.insert(
            "achievement_definitions",
            {
                "name": name,
                "description": f"Reach {required} points",
                "category": "points",
                "points_required": required,
            },
        )
        ids[name] = row["id"]
    return ids


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    def _headers(user_id: str = TEST_USER_ID) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers


@pytest_asyncio.fixture
async def client(store: SqlTableStore) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client over the app with the catalog seeded."""
    await seed_catalog(store)
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
