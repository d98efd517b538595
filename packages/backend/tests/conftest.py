"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own SQLite in-memory engine (StaticPool keeps the
   single connection alive, so every session sees the same database).
2. Tables come from Base.metadata.create_all — the same models Alembic
   migrates in production.
3. get_db is overridden to open a session on that engine per request,
   so commits behave exactly as they do against Postgres.

Settings are read at import time, so test overrides go into the
environment before anything from ghub is imported.
"""

import os

os.environ.setdefault("GHUB_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("GHUB_PASSWORD_HASH_ROUNDS", "4")

import uuid

import pytest
import pytest_asyncio
import structlog
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ghub.config import backend_usable
from ghub.db.engine import get_db
from ghub.db.models import Base
from ghub.main import app


@pytest_asyncio.fixture()
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client against the app with get_db pointed at the test engine."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def sign_up_and_in(client):
    """Register + sign in a fresh user. Returns (auth headers, session body)."""

    async def _sign_up_and_in(email=None, password="secret123"):
        email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
        r = await client.post("/auth/v1/signup", json={"email": email, "password": password})
        assert r.status_code == 201, r.text
        r = await client.post("/auth/v1/token", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        session = r.json()
        return {"Authorization": f"Bearer {session['access_token']}"}, session

    return _sign_up_and_in


@pytest.fixture(autouse=True)
def _fresh_backend_verdict():
    """backend_usable() is cached per process; tests change settings freely."""
    backend_usable.cache_clear()
    yield
    backend_usable.cache_clear()


@pytest.fixture(autouse=True)
def _default_logging():
    """The CLI reconfigures structlog onto CliRunner's stderr; undo that."""
    yield
    structlog.reset_defaults()
