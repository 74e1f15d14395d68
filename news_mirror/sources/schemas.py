"""Data models for the sources module."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Source:
    """A remote publication being mirrored.

    Sources are provisioned externally. The sync runner moves the cursor
    (last_seen_published_at), last_fetched_at and the run averages; the
    scheduler owns error_count, last_error and is_active.
    """

    id: str
    name: str
    domain: str
    base_url: str
    api_type: str
    is_active: bool = True
    last_seen_published_at: datetime | None = None
    last_fetched_at: datetime | None = None
    error_count: int = 0
    last_error: str | None = None
    avg_articles_per_run: float | None = None
    avg_time_per_run_ms: float | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
