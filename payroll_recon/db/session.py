from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from payroll_recon.core.config import settings


def engine_options(url: str) -> dict[str, Any]:
    """
    Pool settings per backend.

    SQLite (tests, local runs) shares one connection so an in-memory database
    survives between sessions. Server databases get liveness checks.
    """
    if url.startswith("sqlite"):
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # detects dead connections before using them
        "pool_recycle": 300,    # seconds
    }


# sslmode/channel_binding stripped; asyncpg rejects them
DATABASE_URL_ASYNC = settings.DATABASE_URL_ASYNC_CLEAN

engine: AsyncEngine = create_async_engine(
    DATABASE_URL_ASYNC,
    echo=False,
    future=True,
    **engine_options(DATABASE_URL_ASYNC),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One AsyncSession per request. RecordStore commits each write itself."""
    async with AsyncSessionLocal() as session:
        yield session
