"""Pytest configuration and fixtures."""

import socket
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from shorturl.api.endpoints import get_url_validator
from shorturl.core.lock_manager import reset_assignment_lock
from shorturl.core.validators import UrlValidator
from shorturl.db.session import get_session, init_db
from shorturl.db.sqlite_adapter import SQLiteAdapter
from shorturl.main import app

UNRESOLVABLE_SUFFIX = ".invalid"


async def fake_resolver(hostname: str):
    """Resolve everything except the reserved .invalid TLD, without network."""
    if hostname.endswith(UNRESOLVABLE_SUFFIX):
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")
    return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("192.0.2.10", 0))]


def make_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture(autouse=True)
def assignment_lock():
    """Fresh assignment lock per test; each test runs on its own event loop."""
    return reset_assignment_lock()


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'shorturl-test.db'}"


@pytest.fixture
async def engine(database_url) -> AsyncGenerator[AsyncEngine, None]:
    """Engine on a temporary SQLite file with the schema created."""
    engine = SQLiteAdapter().create_engine(database_url)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine) -> async_sessionmaker:
    return make_session_maker(engine)


@pytest.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest.fixture
async def broken_session_maker(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Sessions whose database file can never be opened."""
    engine = SQLiteAdapter().create_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'missing-dir' / 'shorturl.db'}"
    )
    yield make_session_maker(engine)
    await engine.dispose()


@pytest.fixture
def validator() -> UrlValidator:
    return UrlValidator(timeout=1.0, resolver=fake_resolver)


def override_session_with(maker: async_sessionmaker):
    """Build a get_session replacement bound to the given session factory."""
    async def override_get_session():
        async with maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return override_get_session


@pytest.fixture
async def client(session_maker, validator) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client talking to the app in-process, on the test database."""
    app.dependency_overrides[get_session] = override_session_with(session_maker)
    app.dependency_overrides[get_url_validator] = lambda: validator

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]
