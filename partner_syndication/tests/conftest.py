"""
Test setup: a throw-away SQLite database (aiosqlite) and test Facebook credentials.
Environment must be set before anything imports app.config / app.db.
"""
import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="partner_syndication_tests_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["APP_ENV"] = "test"
os.environ["FACEBOOK_APP_ID"] = "test-app-id"
os.environ["FACEBOOK_APP_SECRET"] = "test-app-secret"
os.environ.pop("FACEBOOK_OAUTH_REDIRECT_URI", None)
os.environ.pop("PUBLIC_BASE_URL", None)
os.environ.pop("REDIS_URL", None)

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

import app.models  # noqa: E402,F401
from app.db import Base, async_session_factory, engine  # noqa: E402


@pytest_asyncio.fixture
async def db_schema():
    """Fresh schema for every test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


@pytest_asyncio.fixture
async def client(db_schema):
    from app.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def seed(db_schema):
    """seed(*rows): add and commit rows in their own session, return them refreshed."""

    async def _seed(*rows):
        async with async_session_factory() as session:
            session.add_all(rows)
            await session.commit()
            for row in rows:
                await session.refresh(row)
        return rows if len(rows) > 1 else rows[0]

    return _seed
