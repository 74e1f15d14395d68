"""Tests for the asyncpg pool wrapper."""

from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg
import pytest

from news_mirror.storage.database import Database


def _mock_pool() -> MagicMock:
    pool = MagicMock()
    pool.close = AsyncMock()
    pool.execute = AsyncMock(return_value="INSERT 0 1")
    pool.fetch = AsyncMock(return_value=[])
    pool.fetchrow = AsyncMock(return_value=None)
    pool.fetchval = AsyncMock(return_value=1)
    return pool


class TestDatabase:
    """Tests for Database."""

    def test_pool_requires_connect(self):
        db = Database(database_url="postgresql://localhost/test")

        with pytest.raises(RuntimeError, match="not connected"):
            _ = db.pool

    @pytest.mark.asyncio
    async def test_context_manager_opens_and_closes_pool(self):
        pool = _mock_pool()

        with patch(
            "news_mirror.storage.database.asyncpg.create_pool",
            new=AsyncMock(return_value=pool),
        ) as create_pool:
            async with Database(
                database_url="postgresql://localhost/test", min_size=1, max_size=3
            ) as db:
                status = await db.execute("UPDATE sources SET error_count = 0")

        assert status == "INSERT 0 1"
        create_pool.assert_awaited_once_with(
            "postgresql://localhost/test", min_size=1, max_size=3
        )
        pool.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connect_failure_propagates(self):
        with patch(
            "news_mirror.storage.database.asyncpg.create_pool",
            new=AsyncMock(side_effect=OSError("connection refused")),
        ):
            with pytest.raises(OSError):
                await Database(database_url="postgresql://localhost/test").connect()

    @pytest.mark.asyncio
    async def test_query_errors_propagate(self):
        pool = _mock_pool()
        pool.fetchrow.side_effect = asyncpg.PostgresError("relation does not exist")

        with patch(
            "news_mirror.storage.database.asyncpg.create_pool",
            new=AsyncMock(return_value=pool),
        ):
            async with Database(database_url="postgresql://localhost/test") as db:
                with pytest.raises(asyncpg.PostgresError):
                    await db.fetchrow("SELECT * FROM missing")

    @pytest.mark.asyncio
    async def test_health_check(self):
        pool = _mock_pool()

        with patch(
            "news_mirror.storage.database.asyncpg.create_pool",
            new=AsyncMock(return_value=pool),
        ):
            async with Database(database_url="postgresql://localhost/test") as db:
                assert await db.health_check() is True

                pool.fetchval.side_effect = OSError("connection reset")
                assert await db.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_when_not_connected(self):
        assert await Database(database_url="postgresql://localhost/test").health_check() is False
