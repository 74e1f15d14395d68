"""
PostgreSQL connection pool.

Every repository write is an independent statement; nothing in the sync
path spans a transaction, so an interrupted run keeps whatever it already
committed. Queries carry no timeout of their own and failures propagate
to the caller unchanged.
"""

import logging
from types import TracebackType
from typing import Any

import asyncpg

from news_mirror.config.settings import get_settings

logger = logging.getLogger(__name__)


class Database:
    """
    Thin asyncpg pool wrapper shared by all repositories.

    Usage:
        async with Database() as db:
            rows = await db.fetch("SELECT * FROM sources")
    """

    def __init__(
        self,
        database_url: str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
    ):
        settings = get_settings()

        self._database_url = database_url or str(settings.database_url)
        self._min_size = min_size or settings.db_pool_min_size
        self._max_size = max_size or settings.db_pool_max_size

        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        """Open the connection pool."""
        try:
            self._pool = await asyncpg.create_pool(
                self._database_url,
                min_size=self._min_size,
                max_size=self._max_size,
            )
        except Exception as e:
            logger.error(f"Failed to connect to database: {e}")
            raise

        logger.info(f"Database connected (pool: {self._min_size}-{self._max_size})")

    async def close(self) -> None:
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Database connection closed")

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def pool(self) -> asyncpg.Pool:
        """Connection pool, raising if not connected."""
        if self._pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._pool

    async def execute(self, query: str, *args: Any) -> str:
        """Run a statement and return its status string."""
        return await self.pool.execute(query, *args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        return await self.pool.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        return await self.pool.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        return await self.pool.fetchval(query, *args)

    async def health_check(self) -> bool:
        """Check if the database answers a trivial query."""
        try:
            return await self.fetchval("SELECT 1") == 1
        except (asyncpg.PostgresError, OSError, RuntimeError) as e:
            logger.warning(f"Database health check failed: {e}")
            return False
