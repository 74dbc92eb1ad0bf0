"""
Database Engine and Session Management

This module builds async SQLAlchemy engines and session factories for the
SQL event log.

Key Features:
- SQLite by default (aiosqlite driver, NullPool, check_same_thread=False)
- Any other async URL (e.g. postgresql+asyncpg) uses SQLAlchemy's default pool
- Sessions from SQLModel's AsyncSession, expire_on_commit disabled

Engines are built per call instead of at import time, so each
application or test gets its own database.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.db import models  # noqa: F401  registers tables on SQLModel.metadata


def is_sqlite_url(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def create_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    """
    Create an async engine configured for the database type.

    SQLite is file based and handles one writer at a time, so it gets a
    NullPool and check_same_thread=False (required for async access).

    Args:
        database_url: Async connection string
        **kwargs: Additional engine options (override the defaults)

    Returns:
        Configured AsyncEngine
    """
    engine_kwargs: dict[str, Any] = {"echo": False}
    if is_sqlite_url(database_url):
        engine_kwargs["poolclass"] = NullPool
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    engine_kwargs.update(kwargs)

    return create_async_engine(database_url, **engine_kwargs)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to `engine`."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # rows stay readable after commit
        autoflush=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """
    Create the event log tables if they don't exist.

    Development and tests only; deployments run the alembic migrations.
    """
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
