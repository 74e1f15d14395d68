"""
structlog configuration.

Services log through structlog with keyword fields; lower-level modules
(HTTP client, adapters, repositories) use stdlib logging, which is routed
through the same handler and level. Sync runs bind source_id and source
onto their logger so every line of a run can be correlated.
"""

import logging
import sys

import structlog
from structlog.types import Processor

from news_mirror.config.settings import get_settings

# Libraries that log every request at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def setup_logging(level: str | None = None) -> None:
    """
    Configure structlog and the root stdlib logger.

    Args:
        level: Overrides LOG_LEVEL when given
    """
    settings = get_settings()
    log_level = level or settings.log_level

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.json_logs:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
