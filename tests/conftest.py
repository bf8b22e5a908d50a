"""
Shared pytest fixtures.

Each test gets its own app wired to a fresh SQLite file and a disabled Redis
client, so rate limiting fails open and no external services are needed.
"""
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from api.main import create_app
from core.auth import create_access_token
from core.config import Settings
from core.redis import RedisClient, RedisOptions
from models import Base
from models.user import User
from services import user_service

TEST_EMAIL = "user@example.com"
TEST_PASSWORD = "correct horse battery staple"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment's .env file."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        redis_enabled=False,
        jwt_secret="test-secret",
        jwt_issuer="https://bookmarks.test/",
        jwt_audience="bookmarks-api",
    )


@pytest.fixture
async def app(settings: Settings) -> AsyncGenerator[FastAPI]:
    """Application with its schema created."""
    application = create_app(settings)
    async with application.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield application
    await application.state.engine.dispose()


@pytest.fixture
async def db_session(app: FastAPI) -> AsyncGenerator[AsyncSession]:
    """Session on the app's database, for arranging and inspecting state directly."""
    async with app.state.session_factory() as session:
        yield session


@pytest.fixture
def credentials() -> dict[str, str]:
    """Login body for the `user` fixture."""
    return {"email": TEST_EMAIL, "password": TEST_PASSWORD}


@pytest.fixture
async def user(db_session: AsyncSession) -> User:
    """A committed user with TEST_EMAIL / TEST_PASSWORD."""
    created = await user_service.create_user(db_session, TEST_EMAIL, TEST_PASSWORD)
    await db_session.commit()
    return created


@pytest.fixture
def auth_headers(user: User, settings: Settings) -> dict[str, str]:
    token = create_access_token(user.id, user.email, settings.jwt)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def anon_client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Client without credentials."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def client(app: FastAPI, auth_headers: dict[str, str]) -> AsyncGenerator[AsyncClient]:
    """Client authenticated as the `user` fixture."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=auth_headers,
    ) as ac:
        yield ac


@pytest.fixture
async def redis_client() -> AsyncGenerator[RedisClient]:
    """Connected client against a local Redis; tests using it skip when none is running."""
    client = RedisClient(RedisOptions(db=15))
    await client.connect()
    if not client.is_connected:
        pytest.skip("Redis server not available")
    yield client
    await client._client.flushdb()
    await client.close()
