"""Observability layer - logging and metrics."""

from news_mirror.observability.logging import setup_logging
from news_mirror.observability.metrics import MetricsCollector, get_metrics

__all__ = ["setup_logging", "MetricsCollector", "get_metrics"]
