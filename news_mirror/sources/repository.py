"""Database repository for the sources table."""

import logging
from datetime import datetime

from news_mirror.sources.schemas import Source
from news_mirror.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS sources (
    id                      UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name                    TEXT NOT NULL,
    domain                  TEXT NOT NULL UNIQUE,
    base_url                TEXT NOT NULL,
    api_type                TEXT NOT NULL,
    is_active               BOOLEAN NOT NULL DEFAULT TRUE,
    last_seen_published_at  TIMESTAMPTZ,
    last_fetched_at         TIMESTAMPTZ,
    error_count             INTEGER NOT NULL DEFAULT 0,
    last_error              TEXT,
    avg_articles_per_run    DOUBLE PRECISION,
    avg_time_per_run_ms     DOUBLE PRECISION,
    created_at              TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at              TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_sources_active
    ON sources(is_active) WHERE is_active = TRUE;
"""

# GREATEST ignores NULL, so the first commit seeds the cursor and later
# commits can never move it backwards.
_UPDATE_PROGRESS_SQL = """
UPDATE sources SET
    last_seen_published_at = GREATEST(last_seen_published_at, $2),
    last_fetched_at = $3,
    avg_articles_per_run = $4,
    avg_time_per_run_ms = $5,
    updated_at = NOW()
WHERE id = $1
"""

_RECORD_SUCCESS_SQL = """
UPDATE sources SET error_count = 0, last_error = NULL, updated_at = NOW()
WHERE id = $1
"""

_RECORD_FAILURE_SQL = """
UPDATE sources SET
    error_count = $2,
    last_error = $3,
    is_active = $4,
    last_fetched_at = $5,
    updated_at = NOW()
WHERE id = $1
"""


def _record_to_source(record) -> Source:
    """Convert an asyncpg Record to a Source dataclass."""
    return Source(
        id=str(record["id"]),
        name=record["name"],
        domain=record["domain"],
        base_url=record["base_url"],
        api_type=record["api_type"],
        is_active=record["is_active"],
        last_seen_published_at=record["last_seen_published_at"],
        last_fetched_at=record["last_fetched_at"],
        error_count=record["error_count"],
        last_error=record["last_error"],
        avg_articles_per_run=record["avg_articles_per_run"],
        avg_time_per_run_ms=record["avg_time_per_run_ms"],
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


class SourcesRepository:
    """Reads and progress/health updates for the sources table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the sources table and indexes (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Sources table ensured")

    async def get_active(self) -> list[Source]:
        """Fetch all active sources in a stable order."""
        rows = await self._db.fetch(
            "SELECT * FROM sources WHERE is_active = TRUE ORDER BY name"
        )
        return [_record_to_source(r) for r in rows]

    async def get_by_id(self, source_id: str) -> Source | None:
        """Fetch a single source by id."""
        row = await self._db.fetchrow("SELECT * FROM sources WHERE id = $1", source_id)
        return _record_to_source(row) if row else None

    async def get_by_domain(self, domain: str) -> Source | None:
        """Fetch a single source by its domain."""
        row = await self._db.fetchrow("SELECT * FROM sources WHERE domain = $1", domain)
        return _record_to_source(row) if row else None

    async def update_progress(
        self,
        source_id: str,
        last_seen_published_at: datetime | None,
        last_fetched_at: datetime,
        avg_articles_per_run: float,
        avg_time_per_run_ms: float,
    ) -> None:
        """Persist the outcome of a completed sync run."""
        await self._db.execute(
            _UPDATE_PROGRESS_SQL,
            source_id,
            last_seen_published_at,
            last_fetched_at,
            avg_articles_per_run,
            avg_time_per_run_ms,
        )

    async def record_success(self, source_id: str) -> None:
        """Reset the consecutive failure counter after a clean run."""
        await self._db.execute(_RECORD_SUCCESS_SQL, source_id)

    async def record_failure(
        self,
        source_id: str,
        error_count: int,
        last_error: str,
        is_active: bool,
        last_fetched_at: datetime,
    ) -> None:
        """Record a run-level failure and the resulting active flag."""
        await self._db.execute(
            _RECORD_FAILURE_SQL,
            source_id,
            error_count,
            last_error,
            is_active,
            last_fetched_at,
        )
