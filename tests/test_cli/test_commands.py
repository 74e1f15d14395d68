"""Tests for the news-mirror CLI commands."""

from dataclasses import replace
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from news_mirror.cli import main
from news_mirror.sync.schemas import (
    CycleResult,
    SourceInactiveError,
    SourceNotFoundError,
    StopReason,
    SyncRunResult,
)


@pytest.fixture
def runner():
    return CliRunner()


def _mock_db():
    """Create a mock Database."""
    db = AsyncMock()
    db.connect = AsyncMock()
    db.close = AsyncMock()
    db.execute = AsyncMock(return_value="CREATE TABLE")
    return db


def _mock_scheduler(**methods):
    scheduler = MagicMock()
    for name, mock in methods.items():
        setattr(scheduler, name, mock)
    return scheduler


class TestInitDb:
    """Tests for `init-db`."""

    def test_creates_tables(self, runner):
        mock_db = _mock_db()

        with patch("news_mirror.storage.database.Database", return_value=mock_db):
            result = runner.invoke(main, ["init-db"])

        assert result.exit_code == 0
        assert "Database initialized successfully" in result.output
        statements = [c.args[0] for c in mock_db.execute.call_args_list]
        assert "CREATE TABLE IF NOT EXISTS sources" in statements[0]
        assert "CREATE TABLE IF NOT EXISTS articles" in statements[1]
        mock_db.close.assert_awaited_once()


class TestRunSource:
    """Tests for `run-source DOMAIN`."""

    def test_prints_run_summary(self, runner):
        mock_db = _mock_db()
        run_result = SyncRunResult(
            source_id="s1",
            source_name="kallxo",
            stop_reason=StopReason.WATERMARK,
            pages_fetched=1,
            articles_seen=2,
            articles_processed=2,
            new_cursor=datetime(2025, 3, 2, 13, 30, tzinfo=timezone.utc),
            duration_ms=812.0,
        )
        scheduler = _mock_scheduler(run_source_by_domain=AsyncMock(return_value=run_result))

        with patch("news_mirror.storage.database.Database", return_value=mock_db), \
             patch("news_mirror.sync.scheduler.Scheduler.from_database", return_value=scheduler):
            result = runner.invoke(main, ["run-source", "kallxo.com"])

        assert result.exit_code == 0
        assert "kallxo" in result.output
        assert "Stop reason:  watermark" in result.output
        assert "Processed:    2" in result.output
        scheduler.run_source_by_domain.assert_awaited_once_with("kallxo.com")
        mock_db.close.assert_awaited_once()

    @pytest.mark.parametrize(
        "error,message",
        [
            (SourceNotFoundError("missing.example"), "Source not found: missing.example"),
            (SourceInactiveError("missing.example"), "Source is inactive: missing.example"),
        ],
    )
    def test_unknown_or_inactive_source_exits_non_zero(self, runner, error, message):
        scheduler = _mock_scheduler(run_source_by_domain=AsyncMock(side_effect=error))

        with patch("news_mirror.storage.database.Database", return_value=_mock_db()), \
             patch("news_mirror.sync.scheduler.Scheduler.from_database", return_value=scheduler):
            result = runner.invoke(main, ["run-source", "missing.example"])

        assert result.exit_code == 1
        assert message in result.output

    def test_run_failure_exits_non_zero(self, runner):
        scheduler = _mock_scheduler(
            run_source_by_domain=AsyncMock(side_effect=RuntimeError("status 503"))
        )

        with patch("news_mirror.storage.database.Database", return_value=_mock_db()), \
             patch("news_mirror.sync.scheduler.Scheduler.from_database", return_value=scheduler):
            result = runner.invoke(main, ["run-source", "kallxo.com"])

        assert result.exit_code == 1
        assert "Run failed: status 503" in result.output


class TestSchedule:
    """Tests for `schedule`."""

    def test_once_success(self, runner):
        cycle = CycleResult(sources_total=3, sources_succeeded=3, duration_seconds=4.2)
        scheduler = _mock_scheduler(run=AsyncMock(return_value=cycle))

        with patch("news_mirror.storage.database.Database", return_value=_mock_db()), \
             patch("news_mirror.sync.scheduler.Scheduler.from_database", return_value=scheduler):
            result = runner.invoke(main, ["schedule", "--once", "--no-metrics"])

        assert result.exit_code == 0
        assert "3/3 sources succeeded" in result.output
        scheduler.run.assert_awaited_once_with(continuous=False)

    def test_once_cycle_failure_exits_non_zero(self, runner):
        scheduler = _mock_scheduler(run=AsyncMock(return_value=CycleResult(error="db down")))

        with patch("news_mirror.storage.database.Database", return_value=_mock_db()), \
             patch("news_mirror.sync.scheduler.Scheduler.from_database", return_value=scheduler):
            result = runner.invoke(main, ["schedule", "--once", "--no-metrics"])

        assert result.exit_code == 1
        assert "Cycle failed: db down" in result.output

    def test_continuous_mode(self, runner):
        scheduler = _mock_scheduler(run=AsyncMock(return_value=CycleResult()))
        mock_db = _mock_db()

        with patch("news_mirror.storage.database.Database", return_value=mock_db), \
             patch("news_mirror.sync.scheduler.Scheduler.from_database", return_value=scheduler):
            result = runner.invoke(main, ["schedule", "--no-metrics"])

        assert result.exit_code == 0
        scheduler.run.assert_awaited_once_with(continuous=True)
        mock_db.close.assert_awaited_once()


class TestHealth:
    """Tests for `health`."""

    def test_healthy_database(self, runner, sample_source):
        mock_db = _mock_db()
        mock_db.health_check = AsyncMock(return_value=True)
        failing = replace(sample_source, name="broken", error_count=2, last_error="status 503")

        with patch("news_mirror.storage.database.Database", return_value=mock_db), \
             patch(
                 "news_mirror.sources.repository.SourcesRepository.get_active",
                 new=AsyncMock(return_value=[sample_source, failing]),
             ):
            result = runner.invoke(main, ["health"])

        assert result.exit_code == 0
        assert "postgres: True" in result.output
        assert "Active sources: 2" in result.output
        assert "broken: 2 consecutive errors (status 503)" in result.output
        mock_db.close.assert_awaited_once()

    def test_unreachable_database(self, runner):
        mock_db = _mock_db()
        mock_db.connect = AsyncMock(side_effect=OSError("connection refused"))

        with patch("news_mirror.storage.database.Database", return_value=mock_db):
            result = runner.invoke(main, ["health"])

        assert result.exit_code == 1
        assert "postgres: False" in result.output
