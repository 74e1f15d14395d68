"""
Scheduler - runs every active source, once or on a fixed interval.

Sources in a cycle run one after another. A run-level failure is recorded
on the source and never stops the cycle; after max_consecutive_errors
failures in a row the source is deactivated and stays off until someone
re-enables it.

Usage:
    scheduler = Scheduler.from_database(db, http_client)
    await scheduler.run(continuous=True)  # until stop() is called
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Callable

import structlog

from news_mirror.articles.ingestor import ArticleIngestor
from news_mirror.articles.repository import (
    ArticleRepository,
    JournalistRepository,
    TaxonomyRepository,
)
from news_mirror.ingestion.base_adapter import SourceAdapter
from news_mirror.ingestion.http_client import HTTPClient
from news_mirror.ingestion.registry import create_adapter
from news_mirror.observability.metrics import MetricsCollector, get_metrics
from news_mirror.sources.repository import SourcesRepository
from news_mirror.sources.schemas import Source
from news_mirror.storage.database import Database
from news_mirror.sync.config import SyncConfig
from news_mirror.sync.runner import SourceSyncRunner
from news_mirror.sync.schemas import (
    CycleResult,
    SourceInactiveError,
    SourceNotFoundError,
    SyncRunResult,
)

AdapterFactory = Callable[..., SourceAdapter]


class Scheduler:
    """
    Drives source runs and owns the per-source circuit breaker.

    The breaker state lives on the Source row (error_count, last_error,
    is_active) so it survives restarts.
    """

    def __init__(
        self,
        sources_repo: SourcesRepository,
        ingestor: ArticleIngestor,
        http_client: HTTPClient,
        config: SyncConfig | None = None,
        adapter_factory: AdapterFactory = create_adapter,
        logger=None,
        metrics: MetricsCollector | None = None,
    ):
        self._sources = sources_repo
        self._ingestor = ingestor
        self._http = http_client
        self._config = config or SyncConfig()
        self._adapter_factory = adapter_factory
        self._logger = logger or structlog.get_logger(__name__)
        self._metrics = metrics or get_metrics()
        self._stop_event = asyncio.Event()

    @classmethod
    def from_database(
        cls,
        database: Database,
        http_client: HTTPClient,
        config: SyncConfig | None = None,
        **kwargs,
    ) -> "Scheduler":
        """Wire the asyncpg-backed repositories around one database."""
        articles = ArticleRepository(database)
        ingestor = ArticleIngestor(
            articles=articles,
            journalists=JournalistRepository(database),
            taxonomy=TaxonomyRepository(database),
        )
        return cls(
            sources_repo=SourcesRepository(database),
            ingestor=ingestor,
            http_client=http_client,
            config=config,
            **kwargs,
        )

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Request shutdown. The current cycle is allowed to finish."""
        if not self._stop_event.is_set():
            self._logger.info("Scheduler stop requested")
        self._stop_event.set()

    async def run(self, continuous: bool = False) -> CycleResult | None:
        """
        Run one cycle, or keep cycling until stop() is called.

        Returns the result of the last completed cycle.
        """
        if not continuous:
            return await self._run_cycle_safely()

        interval = self._config.poll_interval_seconds
        self._logger.info("Starting continuous scheduler", poll_interval=interval)

        last_result = None
        while not self._stop_event.is_set():
            last_result = await self._run_cycle_safely()

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

        self._logger.info("Scheduler stopped")
        return last_result

    async def run_cycle(self) -> CycleResult:
        """Run every active source once, sequentially."""
        started = time.monotonic()
        sources = await self._sources.get_active()
        self._metrics.record_active_sources(len(sources))
        result = CycleResult(sources_total=len(sources))

        self._logger.info("Starting cycle", active_sources=len(sources))

        for source in sources:
            if await self.run_source(source):
                result.sources_succeeded += 1
            else:
                result.sources_failed += 1
                result.failed_sources.append(source.name)

        result.duration_seconds = time.monotonic() - started
        self._metrics.record_cycle(result.duration_seconds)
        self._logger.info(
            "Cycle finished",
            succeeded=result.sources_succeeded,
            failed=result.sources_failed,
            duration_seconds=round(result.duration_seconds, 2),
        )
        return result

    async def run_source(self, source: Source) -> bool:
        """
        Run one source and update its breaker state.

        Returns True on success. Run-level exceptions are recorded on the
        source, not raised.
        """
        try:
            await self._run_and_record(source)
        except Exception as e:
            self._logger.error(
                "Source run did not complete",
                source_id=source.id,
                source=source.name,
                error=str(e),
                exc_info=True,
            )
            return False
        return True

    async def run_source_by_domain(self, domain: str) -> SyncRunResult:
        """
        Run a single source immediately.

        Raises:
            SourceNotFoundError: No source has this domain
            SourceInactiveError: The source is deactivated
        """
        source = await self._sources.get_by_domain(domain)
        if source is None:
            raise SourceNotFoundError(domain)
        if not source.is_active:
            raise SourceInactiveError(domain)

        return await self._run_and_record(source)

    async def _run_and_record(self, source: Source) -> SyncRunResult:
        log = self._logger.bind(source_id=source.id, source=source.name)
        started = time.monotonic()

        try:
            adapter = self._adapter_factory(
                source,
                self._http,
                page_size=self._config.page_size,
            )
            runner = SourceSyncRunner(
                source=source,
                adapter=adapter,
                ingestor=self._ingestor,
                sources_repo=self._sources,
                config=self._config,
                logger=log,
                metrics=self._metrics,
            )
            run_result = await runner.run()
        except Exception as e:
            self._metrics.record_source_run(source.name, success=False)
            await self._record_failure(source, e, log)
            raise

        await self._sources.record_success(source.id)
        source.error_count = 0
        source.last_error = None
        self._metrics.record_source_run(
            source.name,
            success=True,
            latency=time.monotonic() - started,
        )
        return run_result

    async def _record_failure(self, source: Source, error: Exception, log) -> None:
        error_count = source.error_count + 1
        still_active = error_count < self._config.max_consecutive_errors
        now = datetime.now(timezone.utc)

        log.error(
            "Source run failed",
            error=str(error),
            error_type=type(error).__name__,
            error_count=error_count,
        )

        await self._sources.record_failure(
            source_id=source.id,
            error_count=error_count,
            last_error=str(error),
            is_active=still_active,
            last_fetched_at=now,
        )
        source.error_count = error_count
        source.last_error = str(error)
        source.is_active = still_active
        source.last_fetched_at = now

        if not still_active:
            self._metrics.record_source_disabled(source.name)
            log.warning(
                "Source deactivated after consecutive failures",
                error_count=error_count,
            )

    async def _run_cycle_safely(self) -> CycleResult:
        try:
            return await self.run_cycle()
        except Exception as e:
            self._logger.error("Scheduler cycle failed", error=str(e), exc_info=True)
            return CycleResult(error=str(e))
