"""Run results, states and errors for source synchronization."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class RunState(str, Enum):
    """States of a single source run."""

    FETCH_PAGE = "fetch_page"
    PROCESS_ARTICLES = "process_articles"
    STOPPED = "stopped"


class StopReason(str, Enum):
    """Why a source run stopped paging."""

    WATERMARK = "watermark"
    SKIP_THRESHOLD = "skip_threshold"
    PAGE_CAP = "page_cap"
    EXHAUSTED = "exhausted"
    NO_MORE = "no_more"


@dataclass
class SyncRunResult:
    """Summary of one source run."""

    source_id: str
    source_name: str
    stop_reason: StopReason
    pages_fetched: int = 0
    articles_seen: int = 0
    articles_processed: int = 0
    articles_skipped: int = 0
    articles_failed: int = 0
    new_cursor: datetime | None = None
    duration_ms: float = 0.0


@dataclass
class CycleResult:
    """Summary of one scheduler cycle over all active sources."""

    sources_total: int = 0
    sources_succeeded: int = 0
    sources_failed: int = 0
    duration_seconds: float = 0.0
    error: str | None = None
    failed_sources: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """False only when the cycle itself raised."""
        return self.error is None


class SourceNotFoundError(LookupError):
    """No source is registered for the requested domain."""

    def __init__(self, domain: str):
        super().__init__(f"Source not found: {domain}")
        self.domain = domain


class SourceInactiveError(Exception):
    """The requested source exists but is deactivated."""

    def __init__(self, domain: str):
        super().__init__(f"Source is inactive: {domain}")
        self.domain = domain
