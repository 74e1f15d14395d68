"""Configuration for source synchronization and scheduling."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from news_mirror.ingestion.http_client import RetryConfig


class SyncConfig(BaseSettings):
    """Tunables for fetching, per-source runs and the scheduler loop."""

    model_config = SettingsConfigDict(
        env_prefix="SYNC_",
        case_sensitive=False,
        extra="ignore",
    )

    # Fetch client
    request_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Timeout for a single HTTP attempt",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries after the first attempt for 429, 5xx and transport errors",
    )
    backoff_base_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Delay before the first retry, doubled on each subsequent one",
    )
    max_backoff_seconds: float = Field(default=60.0, ge=0)
    backoff_jitter: float = Field(
        default=0.0,
        ge=0,
        le=1.0,
        description="Random extra delay as a fraction of the computed backoff",
    )

    # Per-source run
    page_size: int = Field(default=10, ge=1, le=100)
    max_pages_per_run: int = Field(
        default=5,
        ge=1,
        description="Pages fetched per source per run before stopping",
    )
    max_consecutive_skipped: int = Field(
        default=10,
        ge=1,
        description="Unchanged articles in a row before a run stops",
    )
    ema_smoothing: float = Field(
        default=0.2,
        gt=0,
        le=1.0,
        description="Weight of the newest observation in the run averages",
    )

    # Scheduler
    max_consecutive_errors: int = Field(
        default=5,
        ge=1,
        description="Consecutive run-level failures before a source is deactivated",
    )
    poll_interval_seconds: float = Field(
        default=600.0,
        ge=0,
        description="Sleep between cycles in continuous mode",
    )

    def retry_config(self) -> RetryConfig:
        """Build the fetch client's retry policy."""
        return RetryConfig(
            max_retries=self.max_retries,
            max_backoff_seconds=self.max_backoff_seconds,
            base_delay=self.backoff_base_seconds,
            jitter_factor=self.backoff_jitter,
        )
