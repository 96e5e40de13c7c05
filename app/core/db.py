"""
Database connection and session management.

Provides the async SQLAlchemy engine and session factory used by FastAPI
endpoints and the unit of work.

PostgreSQL (asyncpg) is the production target. SQLite (aiosqlite) is
supported for local development and tests.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.core.config import settings

logger = logging.getLogger(__name__)

_async_engine: AsyncEngine | None = None
_async_sessionmaker: async_sessionmaker | None = None
_telemetry_instrumented: bool = False


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores foreign keys unless enabled per connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection: Any, _connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_fresh_async_engine(url: str | None = None) -> AsyncEngine:
    """Create a fresh async engine without caching.

    Used for tests and scripts so each caller gets its own engine bound to
    its event loop. In-memory SQLite URLs share a single connection so every
    session sees the same database.
    """
    url = url or settings.async_url
    if not url:
        raise RuntimeError("DATABASE_URL_APP is required")

    if _is_sqlite(url):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
            kwargs["poolclass"] = StaticPool
        engine = create_async_engine(url, echo=False, **kwargs)
        _enable_sqlite_foreign_keys(engine)
        return engine

    return create_async_engine(
        url,
        pool_size=5,
        max_overflow=5,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=False,
        connect_args={
            "server_settings": {"timezone": "UTC"},
            "timeout": 30,
        },
    )


def get_async_engine() -> AsyncEngine:
    """
    Create and configure the async SQLAlchemy engine.

    Production-ready configuration for PostgreSQL includes:
    - Connection pooling with appropriate limits
    - Connection recycling to prevent stale connections
    - Health checks via pool_pre_ping

    Returns:
        Configured async SQLAlchemy engine
    """
    global _async_engine

    if _async_engine is not None:
        return _async_engine

    url = settings.async_url
    if not url:
        raise RuntimeError("DATABASE_URL_APP is required")

    if _is_sqlite(url):
        _async_engine = create_fresh_async_engine(url)
    else:
        _async_engine = create_async_engine(
            url,
            pool_size=20,
            max_overflow=10,
            pool_timeout=30,
            pool_recycle=3600,
            pool_pre_ping=True,
            echo=False,
            connect_args={
                "server_settings": {"timezone": "UTC"},
                "timeout": 30,
            },
        )

    _instrument_sqlalchemy(_async_engine)

    return _async_engine


def _instrument_sqlalchemy(engine: AsyncEngine) -> None:
    """
    Instrument the engine with OpenTelemetry (only once per process).

    Args:
        engine: Async SQLAlchemy engine instance
    """
    global _telemetry_instrumented

    if _telemetry_instrumented:
        return

    from app.core.telemetry import instrument_sqlalchemy

    instrument_sqlalchemy(engine.sync_engine)
    _telemetry_instrumented = True


def get_async_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """
    Get or create the async sessionmaker.

    Returns:
        Async sessionmaker factory
    """
    global _async_sessionmaker
    if _async_sessionmaker is not None:
        return _async_sessionmaker

    engine = get_async_engine()
    _async_sessionmaker = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )
    return _async_sessionmaker


async def reset_async_engine() -> None:
    """Reset the async database engine and sessionmaker.

    Useful for tests to ensure fresh connections on new event loops.
    """
    global _async_engine, _async_sessionmaker

    if _async_engine is not None:
        await _async_engine.dispose()
    _async_engine = None
    _async_sessionmaker = None


async def create_all_tables(engine: AsyncEngine | None = None) -> None:
    """Create any missing tables for the ORM metadata."""
    from app.db.models import Base

    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured", extra={"tables": sorted(Base.metadata.tables)})


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Standalone session for scripts and background tasks.

    Usage:
        async with session_scope() as session:
            uow = UnitOfWork(session)
            ...
    """
    session_maker = get_async_sessionmaker()
    async with session_maker() as session:
        yield session
