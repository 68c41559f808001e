"""
Test configuration for Coffee Tracker tests.

sys.path is configured so 'from coffee_tracker...' resolves whether pytest is
run from the repository root or from inside coffee_tracker/.

API tests run against an in-memory SQLite database (aiosqlite + StaticPool,
tables from Base.metadata) by overriding get_db; no Postgres needed.
The lifespan hook is never entered by ASGITransport, so no migrations run.
"""
import os
import sys
from pathlib import Path

_package_dir = Path(__file__).parent.parent      # .../coffee_tracker/
_project_root = _package_dir.parent               # repository root

if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

os.environ.setdefault("RUN_MIGRATIONS", "false")
os.environ.setdefault("DEBUG", "false")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from coffee_tracker.database import Base, get_db
from coffee_tracker.main import app
import coffee_tracker.models  # noqa: F401  (registers tables on Base.metadata)


@pytest_asyncio.fixture
async def db_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_engine):
    """Async httpx client using ASGI transport, get_db bound to the test database."""
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def _override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
