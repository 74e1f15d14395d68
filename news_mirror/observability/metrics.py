"""
Prometheus metrics for monitoring the sync engine.

Defines and exposes metrics for:
- Outbound fetch outcomes (including retries)
- Per-article ingestion outcomes
- Per-source run status, duration and stop reasons
- Circuit breaker trips
- Scheduler cycle duration

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from news_mirror.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for run duration histograms (in seconds)
RUN_DURATION_BUCKETS = (0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the news-mirror sync engine.

    Usage:
        metrics = MetricsCollector()
        metrics.start_server()

        metrics.record_article("kallxo", "created")
        metrics.record_source_run("kallxo", success=True, latency=3.2)
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        """
        Initialize Prometheus metrics.

        Args:
            registry: Registry to register metrics in. Tests pass a fresh
                CollectorRegistry to avoid duplicate registration.
        """
        self._registry = registry

        self.fetch_requests = Counter(
            "news_mirror_fetch_requests_total",
            "Outbound fetch attempts by outcome",
            ["outcome"],  # success, client_error, retry, failed
            registry=registry,
        )

        self.articles_ingested = Counter(
            "news_mirror_articles_ingested_total",
            "Articles passed through the ingestion pipeline",
            ["source", "outcome"],  # created, updated, metadata_updated, unchanged, error
            registry=registry,
        )

        self.source_runs = Counter(
            "news_mirror_source_runs_total",
            "Per-source sync runs",
            ["source", "status"],  # success, failure
            registry=registry,
        )

        self.source_run_duration = Histogram(
            "news_mirror_source_run_duration_seconds",
            "Wall time of a single source sync run",
            ["source"],
            buckets=RUN_DURATION_BUCKETS,
            registry=registry,
        )

        self.stop_reasons = Counter(
            "news_mirror_source_stop_reason_total",
            "Why a source sync run stopped paginating",
            ["source", "reason"],
            registry=registry,
        )

        self.sources_disabled = Counter(
            "news_mirror_sources_disabled_total",
            "Sources auto-disabled by the circuit breaker",
            ["source"],
            registry=registry,
        )

        self.cycle_duration = Histogram(
            "news_mirror_cycle_duration_seconds",
            "Wall time of a full scheduler cycle",
            buckets=RUN_DURATION_BUCKETS,
            registry=registry,
        )

        self.active_sources = Gauge(
            "news_mirror_active_sources",
            "Active sources found at the start of the last cycle",
            registry=registry,
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=self._registry)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_fetch(self, outcome: str) -> None:
        """Record one outbound fetch attempt."""
        self.fetch_requests.labels(outcome=outcome).inc()

    def record_article(self, source: str, outcome: str) -> None:
        """Record the ingestion outcome of one article."""
        self.articles_ingested.labels(source=source, outcome=outcome).inc()

    def record_source_run(
        self,
        source: str,
        success: bool,
        latency: float | None = None,
    ) -> None:
        """
        Record the end of a source run.

        Args:
            source: Source name
            success: Whether the run completed without a run-level exception
            latency: Optional run duration in seconds
        """
        status = "success" if success else "failure"
        self.source_runs.labels(source=source, status=status).inc()

        if latency is not None:
            self.source_run_duration.labels(source=source).observe(latency)

    def record_stop_reason(self, source: str, reason: str) -> None:
        """Record which stop condition ended a run."""
        self.stop_reasons.labels(source=source, reason=reason).inc()

    def record_source_disabled(self, source: str) -> None:
        """Record a circuit breaker trip."""
        self.sources_disabled.labels(source=source).inc()

    def record_active_sources(self, count: int) -> None:
        self.active_sources.set(count)

    def record_cycle(self, latency: float) -> None:
        """Record a completed scheduler cycle."""
        self.cycle_duration.observe(latency)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
