"""
Command-line interface for news-mirror.

Usage:
    news-mirror init-db                 # Create tables
    news-mirror health                  # Check database and source health
    news-mirror run-source example.com  # Sync one source now
    news-mirror schedule                # Sync all active sources every poll interval
    news-mirror schedule --once         # Single cycle, non-zero exit on failure
"""

import asyncio
import os
import signal
import sys

import click

from news_mirror.config.settings import get_settings
from news_mirror.observability.logging import setup_logging
from news_mirror.observability.metrics import get_metrics


def _build_http_client(config):
    from news_mirror.ingestion.http_client import HTTPClient

    return HTTPClient(
        retry_config=config.retry_config(),
        timeout=config.request_timeout_seconds,
        headers={"User-Agent": get_settings().user_agent},
        metrics=get_metrics(),
    )


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """News Mirror - incremental mirroring of remote publications."""
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema."""
    from news_mirror.articles.repository import ArticleRepository
    from news_mirror.sources.repository import SourcesRepository
    from news_mirror.storage.database import Database

    async def run():
        db = Database()
        await db.connect()

        try:
            await SourcesRepository(db).create_table()
            await ArticleRepository(db).create_tables()
        finally:
            await db.close()

        click.echo("Database initialized successfully")

    asyncio.run(run())


@main.command()
def health() -> None:
    """Check database connectivity and report active sources."""
    import structlog

    from news_mirror.sources.repository import SourcesRepository
    from news_mirror.storage.database import Database

    logger = structlog.get_logger()

    async def check() -> int:
        healthy = False
        active: list = []

        try:
            db = Database()
            await db.connect()
            try:
                healthy = await db.health_check()
                if healthy:
                    active = await SourcesRepository(db).get_active()
            finally:
                await db.close()
        except Exception as e:
            logger.error("Postgres health check failed", error=str(e))

        click.echo("\nHealth Check Results:")
        click.echo("-" * 40)
        icon = "✓" if healthy else "✗"
        click.echo(click.style(f"  {icon} postgres: {healthy}", fg="green" if healthy else "red"))
        if healthy:
            click.echo(f"  Active sources: {len(active)}")
            for source in active:
                if source.error_count:
                    click.echo(click.style(
                        f"  ! {source.name}: {source.error_count} consecutive errors "
                        f"({source.last_error})",
                        fg="yellow",
                    ))
        click.echo("-" * 40)

        return 0 if healthy else 1

    sys.exit(asyncio.run(check()))


@main.command("run-source")
@click.argument("domain")
def run_source(domain: str) -> None:
    """Sync a single source immediately, by domain."""
    from news_mirror.storage.database import Database
    from news_mirror.sync.config import SyncConfig
    from news_mirror.sync.scheduler import Scheduler
    from news_mirror.sync.schemas import SourceInactiveError, SourceNotFoundError

    async def run() -> int:
        config = SyncConfig()
        db = Database()
        await db.connect()

        try:
            async with _build_http_client(config) as http_client:
                scheduler = Scheduler.from_database(db, http_client, config=config)
                result = await scheduler.run_source_by_domain(domain)
        except (SourceNotFoundError, SourceInactiveError) as e:
            click.echo(click.style(str(e), fg="red"), err=True)
            return 1
        except Exception as e:
            click.echo(click.style(f"Run failed: {e}", fg="red"), err=True)
            return 1
        finally:
            await db.close()

        click.echo(click.style(f"  ✓ {result.source_name}", fg="green"))
        click.echo(f"    Stop reason:  {result.stop_reason.value}")
        click.echo(f"    Pages:        {result.pages_fetched}")
        click.echo(f"    Processed:    {result.articles_processed}")
        click.echo(f"    Unchanged:    {result.articles_skipped}")
        click.echo(f"    Failed:       {result.articles_failed}")
        click.echo(f"    New cursor:   {result.new_cursor or '-'}")
        click.echo(f"    Duration:     {result.duration_ms:.0f}ms")
        return 0

    sys.exit(asyncio.run(run()))


@main.command()
@click.option("--once", is_flag=True, help="Run a single cycle and exit")
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
def schedule(once: bool, metrics: bool) -> None:
    """Run the scheduler over all active sources."""
    from news_mirror.storage.database import Database
    from news_mirror.sync.config import SyncConfig
    from news_mirror.sync.scheduler import Scheduler

    async def run() -> int:
        config = SyncConfig()
        settings = get_settings()

        if metrics and settings.metrics_enabled:
            get_metrics().start_server()

        db = Database()
        await db.connect()

        try:
            async with _build_http_client(config) as http_client:
                scheduler = Scheduler.from_database(db, http_client, config=config)

                # Handle shutdown signals
                loop = asyncio.get_running_loop()
                for sig in (signal.SIGTERM, signal.SIGINT):
                    loop.add_signal_handler(sig, scheduler.stop)

                result = await scheduler.run(continuous=not once)
        finally:
            await db.close()

        if once and result is not None:
            if not result.ok:
                click.echo(click.style(f"Cycle failed: {result.error}", fg="red"), err=True)
                return 1
            click.echo(
                f"Cycle complete: {result.sources_succeeded}/{result.sources_total} "
                f"sources succeeded in {result.duration_seconds:.1f}s"
            )
        return 0

    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
