from __future__ import annotations

import os

# settings are read at import time; make the package importable without a .env
os.environ.setdefault("DATABASE_URL_ASYNC", "sqlite+aiosqlite://")
os.environ.setdefault("DATABASE_URL_SYNC", "sqlite://")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from payroll_recon.db.session import engine_options, get_db
from payroll_recon.db.store import RecordStore

# Ensure Base + models are registered before create_all
from payroll_recon.db.base import Base  # noqa: F401
import payroll_recon.models  # noqa: F401


# ---------------------------------------------------------
# Database config
# ---------------------------------------------------------
@pytest.fixture(scope="session")
def database_url_async() -> str:
    """
    TEST_DATABASE_URL points the suite at a real server (e.g. postgresql+asyncpg://...).
    Default is a private in-memory SQLite database per test.
    """
    return os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite://")


# ---------------------------------------------------------
# Engine + schema lifecycle (fresh schema per test)
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def engine(database_url_async: str):
    if database_url_async.startswith("sqlite"):
        kwargs = engine_options(database_url_async)
    else:
        # no pooled connections leaking across per-test event loops
        kwargs = {"poolclass": NullPool}

    engine = create_async_engine(database_url_async, future=True, echo=False, **kwargs)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture()
def sessionmaker(engine):
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )


# ---------------------------------------------------------
# DB session + record store for setup / assertions
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def db(sessionmaker):
    async with sessionmaker() as session:
        yield session
        await session.rollback()


@pytest.fixture()
def store(db) -> RecordStore:
    return RecordStore(db)


# ---------------------------------------------------------
# FastAPI app + dependency override
# ---------------------------------------------------------
@pytest.fixture()
def app(sessionmaker):
    from payroll_recon.main import app as fastapi_app

    async def _override_get_db():
        async with sessionmaker() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


# ---------------------------------------------------------
# HTTP client
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as ac:
        yield ac
