"""Shared fixtures for sync tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from news_mirror.articles.versioning import IngestOutcome, IngestResult
from news_mirror.ingestion.base_adapter import SourceAdapter
from news_mirror.sync.config import SyncConfig


def make_adapter(*pages) -> MagicMock:
    """Adapter mock returning the given pages in order."""
    adapter = MagicMock(spec=SourceAdapter)
    adapter.fetch_page = AsyncMock(side_effect=list(pages))
    adapter.has_more = MagicMock(side_effect=lambda page, size: size > 0)
    return adapter


def make_ingestor(*outcomes: IngestOutcome, default: IngestOutcome = IngestOutcome.CREATED) -> AsyncMock:
    """
    Ingestor mock returning `outcomes` in order, then `default`.

    An Exception instance in `outcomes` is raised instead.
    """
    queue = list(outcomes)

    async def ingest(remote, source):
        outcome = queue.pop(0) if queue else default
        if isinstance(outcome, Exception):
            raise outcome
        return IngestResult(article=MagicMock(id=f"article-{remote.external_id}"), outcome=outcome)

    ingestor = AsyncMock()
    ingestor.ingest = AsyncMock(side_effect=ingest)
    return ingestor


@pytest.fixture
def sync_config() -> SyncConfig:
    """Defaults pinned so environment variables cannot leak in."""
    return SyncConfig(
        page_size=10,
        max_pages_per_run=5,
        max_consecutive_skipped=10,
        ema_smoothing=0.2,
        max_consecutive_errors=5,
        poll_interval_seconds=600,
    )


@pytest.fixture
def sources_repo() -> AsyncMock:
    repo = AsyncMock()
    repo.get_active = AsyncMock(return_value=[])
    repo.get_by_domain = AsyncMock(return_value=None)
    return repo
