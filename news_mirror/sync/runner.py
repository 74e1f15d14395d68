"""
Per-source sync run with a hybrid stop strategy.

Pages are fetched newest first and articles processed in page order.
A run stops at the first of:

- WATERMARK: an article published at or before the source cursor
- SKIP_THRESHOLD: too many UNCHANGED ingests in a row
- PAGE_CAP: max_pages_per_run pages fully processed
- EXHAUSTED: an empty page
- NO_MORE: the adapter reports no further pages

Per-article failures are logged and counted; they never abort the run.
Anything raised outside the per-article boundary (adapter construction,
page fetches, the final progress write) escapes to the scheduler.
"""

import time
from datetime import datetime, timezone

import structlog

from news_mirror.articles.ingestor import ArticleIngestor
from news_mirror.articles.versioning import IngestOutcome
from news_mirror.ingestion.base_adapter import SourceAdapter
from news_mirror.ingestion.schemas import RemoteArticle
from news_mirror.observability.metrics import MetricsCollector, get_metrics
from news_mirror.sources.repository import SourcesRepository
from news_mirror.sources.schemas import Source
from news_mirror.sync.config import SyncConfig
from news_mirror.sync.schemas import RunState, StopReason, SyncRunResult


def compute_ema(previous: float | None, observed: float, smoothing: float = 0.2) -> float:
    """
    Exponential moving average update.

    A missing or zero previous value is treated as a cold start and the
    observation is taken as-is.
    """
    if not previous:
        return float(observed)
    return previous * (1 - smoothing) + observed * smoothing


class SourceSyncRunner:
    """
    Runs one incremental sync for one source.

    Instances are single-use: create one per source per cycle.
    """

    def __init__(
        self,
        source: Source,
        adapter: SourceAdapter,
        ingestor: ArticleIngestor,
        sources_repo: SourcesRepository,
        config: SyncConfig | None = None,
        logger=None,
        metrics: MetricsCollector | None = None,
    ):
        self._source = source
        self._adapter = adapter
        self._ingestor = ingestor
        self._sources = sources_repo
        self._config = config or SyncConfig()
        self._metrics = metrics or get_metrics()
        self._log = (logger or structlog.get_logger(__name__)).bind(
            source_id=source.id,
            source=source.name,
        )

        self.state = RunState.FETCH_PAGE

    async def run(self) -> SyncRunResult:
        """Page through the source until a stop condition holds, then commit progress."""
        source = self._source
        cursor = source.last_seen_published_at
        started = time.monotonic()

        result = SyncRunResult(
            source_id=source.id,
            source_name=source.name,
            stop_reason=StopReason.EXHAUSTED,
        )
        max_published_at: datetime | None = None
        consecutive_skipped = 0
        page = 1

        self._log.info("Starting source run", cursor=cursor)

        while self.state is not RunState.STOPPED:
            batch = await self._adapter.fetch_page(page)
            result.pages_fetched += 1

            if not batch:
                self._log.info("No articles returned", page=page)
                self._stop(result, StopReason.EXHAUSTED)
                break

            self.state = RunState.PROCESS_ARTICLES

            for remote in batch:
                if cursor is not None and remote.published_at <= cursor:
                    self._log.info(
                        "Reached previously seen article",
                        external_id=remote.external_id,
                        published_at=remote.published_at,
                    )
                    self._stop(result, StopReason.WATERMARK)
                    break

                result.articles_seen += 1
                if max_published_at is None or remote.published_at > max_published_at:
                    max_published_at = remote.published_at

                outcome = await self._ingest(remote)
                if outcome is None:
                    result.articles_failed += 1
                    continue

                if outcome.is_new_content:
                    result.articles_processed += 1
                    consecutive_skipped = 0
                else:
                    result.articles_skipped += 1
                    consecutive_skipped += 1

                if consecutive_skipped >= self._config.max_consecutive_skipped:
                    self._log.info(
                        "Too many unchanged articles in a row",
                        consecutive_skipped=consecutive_skipped,
                    )
                    self._stop(result, StopReason.SKIP_THRESHOLD)
                    break

            if self.state is RunState.STOPPED:
                break

            if page >= self._config.max_pages_per_run:
                self._log.info("Page cap reached", pages=page)
                self._stop(result, StopReason.PAGE_CAP)
            elif not self._adapter.has_more(page, len(batch)):
                self._stop(result, StopReason.NO_MORE)
            else:
                page += 1
                self.state = RunState.FETCH_PAGE

        duration_ms = (time.monotonic() - started) * 1000
        result.duration_ms = duration_ms

        if max_published_at is not None and (cursor is None or max_published_at > cursor):
            result.new_cursor = max_published_at

        await self._commit(result)

        self._metrics.record_stop_reason(source.name, result.stop_reason.value)
        self._log.info(
            "Source run finished",
            stop_reason=result.stop_reason.value,
            pages=result.pages_fetched,
            processed=result.articles_processed,
            skipped=result.articles_skipped,
            failed=result.articles_failed,
            new_cursor=result.new_cursor,
            duration_ms=round(duration_ms, 1),
        )
        return result

    def _stop(self, result: SyncRunResult, reason: StopReason) -> None:
        result.stop_reason = reason
        self.state = RunState.STOPPED

    async def _ingest(self, remote: RemoteArticle) -> IngestOutcome | None:
        """Ingest one article. Returns None when it failed."""
        try:
            ingest_result = await self._ingestor.ingest(remote, self._source)
        except Exception as e:
            self._log.error(
                "Failed to ingest article",
                external_id=remote.external_id,
                error=str(e),
                exc_info=True,
            )
            self._metrics.record_article(self._source.name, "error")
            return None

        self._metrics.record_article(self._source.name, ingest_result.outcome.value)
        return ingest_result.outcome

    async def _commit(self, result: SyncRunResult) -> None:
        """Write cursor, last_fetched_at and run averages back to the source."""
        source = self._source
        smoothing = self._config.ema_smoothing
        fetched_at = datetime.now(timezone.utc)

        avg_articles = compute_ema(
            source.avg_articles_per_run, result.articles_processed, smoothing
        )
        avg_time = compute_ema(source.avg_time_per_run_ms, result.duration_ms, smoothing)

        await self._sources.update_progress(
            source_id=source.id,
            last_seen_published_at=result.new_cursor,
            last_fetched_at=fetched_at,
            avg_articles_per_run=avg_articles,
            avg_time_per_run_ms=avg_time,
        )

        if result.new_cursor is not None:
            source.last_seen_published_at = result.new_cursor
        source.last_fetched_at = fetched_at
        source.avg_articles_per_run = avg_articles
        source.avg_time_per_run_ms = avg_time
