"""
Unit tests for engine and session management in app.core.db.

Tests cover:
- Engine and sessionmaker caching
- Isolation of the cached engine between tests
- Fresh engines for in-memory SQLite with foreign keys enforced
"""

import pytest
from sqlalchemy import text
from sqlalchemy.pool import StaticPool

from app.core import db


class TestCachedEngine:
    def test_starts_without_cached_engine(self):
        assert db._async_engine is None
        assert db._async_sessionmaker is None

    def test_engine_is_cached(self):
        engine = db.get_async_engine()

        assert db.get_async_engine() is engine
        assert db.get_async_sessionmaker().kw["bind"] is engine

    def test_cached_engine_does_not_leak_into_next_test(self):
        assert db._async_engine is None
        db.get_async_engine()
        assert db._async_engine is not None

    @pytest.mark.anyio
    async def test_reset_disposes_cached_engine(self):
        db.get_async_engine()

        await db.reset_async_engine()

        assert db._async_engine is None
        assert db._async_sessionmaker is None


class TestFreshEngine:
    @pytest.mark.anyio
    async def test_in_memory_sqlite_shares_one_connection(self):
        engine = db.create_fresh_async_engine("sqlite+aiosqlite://")
        try:
            assert isinstance(engine.pool, StaticPool)
            async with engine.connect() as conn:
                enabled = (await conn.execute(text("PRAGMA foreign_keys"))).scalar_one()
            assert enabled == 1
        finally:
            await engine.dispose()
