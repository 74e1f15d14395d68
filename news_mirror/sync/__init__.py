"""Incremental source synchronization: per-source runs and the scheduler."""

from news_mirror.sync.config import SyncConfig
from news_mirror.sync.runner import SourceSyncRunner, compute_ema
from news_mirror.sync.scheduler import Scheduler
from news_mirror.sync.schemas import (
    CycleResult,
    RunState,
    SourceInactiveError,
    SourceNotFoundError,
    StopReason,
    SyncRunResult,
)

__all__ = [
    "CycleResult",
    "RunState",
    "Scheduler",
    "SourceInactiveError",
    "SourceNotFoundError",
    "SourceSyncRunner",
    "StopReason",
    "SyncConfig",
    "SyncRunResult",
    "compute_ema",
]
