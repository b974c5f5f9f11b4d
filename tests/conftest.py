"""
Shared test fixtures for the Tricycle API test suite.

Each test gets its own in-memory SQLite database (aiosqlite + AsyncSession)
injected through the ``get_db`` dependency override.
"""

import os
import sys
from collections.abc import AsyncGenerator
from datetime import timedelta

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-the-suite"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["LOG_DIR"] = ""

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.v1.deps import get_db
from app.core.config import settings
from app.core.security import create_access_token, get_password_hash
from app.db.base import Base
from app.db.session import build_session_factory
from app.main import app
from app.models.user import User

PASSWORD = "pw123456"
# Hash once; bcrypt is deliberately slow
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database with all tables created."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield build_session_factory(test_engine)

    await test_engine.dispose()


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app and the test database."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    """Insert a user directly and return it; keyword args override defaults."""
    counter = {"n": 0}

    async def _make_user(**overrides) -> User:
        counter["n"] += 1
        values = {
            "first_name": "Test",
            "last_name": f"User{counter['n']}",
            "email": f"user{counter['n']}@example.com",
            "password": PASSWORD_HASH,
            "role": "passenger",
            "status": "active",
        }
        values.update(overrides)
        user = User(**values)
        async with session_factory() as session:
            session.add(user)
            await session.commit()
            await session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def load_user(session_factory):
    """Read a user straight from the database, bypassing every API filter."""

    async def _load_user(user_id: str) -> User | None:
        async with session_factory() as session:
            return await session.get(User, user_id)

    return _load_user


def auth_headers(user_id: str, expires_delta: timedelta | None = None) -> dict:
    token = create_access_token(user_id, settings, expires_delta=expires_delta)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin(make_user) -> User:
    return await make_user(first_name="Ada", last_name="Admin", email="admin@example.com", role="admin")


@pytest.fixture
async def admin_headers(admin) -> dict:
    return auth_headers(admin.id)


@pytest.fixture
def headers_for():
    """``headers_for(user_id)`` -> Authorization header for that user."""
    return auth_headers
