"""Tests for weekly report scheduling."""

from unittest.mock import Mock, patch

import pytest
from apscheduler.jobstores.base import JobLookupError

from stockwatch.scheduler import (
    WEEKLY_REPORT_JOB_ID,
    add_weekly_report_job,
    apply_weekly_schedule,
    create_scheduler,
    get_global_scheduler,
    remove_weekly_report_job,
    run_weekly_report_export,
    shutdown_scheduler,
    start_scheduler,
)
from stockwatch.services import WeeklyEmailSchedule, create_portfolio_service


@pytest.fixture
def schedule():
    return WeeklyEmailSchedule("investor@example.com", True, 4, 17)


class TestCreateScheduler:
    """Test scheduler creation functionality."""

    @patch("stockwatch.scheduler.SQLAlchemyJobStore")
    @patch("stockwatch.scheduler.ThreadPoolExecutor")
    @patch("stockwatch.scheduler.BackgroundScheduler")
    def test_create_scheduler(
        self, mock_bg_scheduler, mock_executor, mock_jobstore, settings_env
    ):
        mock_scheduler = Mock()
        mock_bg_scheduler.return_value = mock_scheduler

        scheduler = create_scheduler()

        assert scheduler == mock_scheduler
        mock_jobstore.assert_called_once_with(
            url=settings_env.get_database_url(), tablename="apscheduler_jobs"
        )
        call_kwargs = mock_bg_scheduler.call_args[1]
        assert call_kwargs["timezone"] == "UTC"
        assert call_kwargs["job_defaults"]["max_instances"] == 1
        assert mock_scheduler.add_listener.call_count == 2


class TestGlobalScheduler:
    """Test global scheduler management."""

    @patch("stockwatch.scheduler.create_scheduler")
    def test_get_global_scheduler_creates_once(self, mock_create):
        if hasattr(get_global_scheduler, "_scheduler"):
            delattr(get_global_scheduler, "_scheduler")

        try:
            first = get_global_scheduler()
            second = get_global_scheduler()
        finally:
            delattr(get_global_scheduler, "_scheduler")

        assert first is second
        mock_create.assert_called_once()

    @patch("stockwatch.scheduler.get_global_scheduler")
    def test_start_and_shutdown(self, mock_get_scheduler):
        mock_scheduler = Mock(running=False)
        mock_get_scheduler.return_value = mock_scheduler

        start_scheduler()
        mock_scheduler.start.assert_called_once()

        mock_scheduler.running = True
        shutdown_scheduler()
        mock_scheduler.shutdown.assert_called_once_with(wait=True)


class TestWeeklyReportJob:
    """Test the weekly report job lifecycle."""

    @patch("stockwatch.scheduler.get_global_scheduler")
    def test_add_weekly_report_job(self, mock_get_scheduler, schedule):
        mock_scheduler = Mock()
        mock_get_scheduler.return_value = mock_scheduler

        add_weekly_report_job(schedule)

        mock_scheduler.add_job.assert_called_once()
        kwargs = mock_scheduler.add_job.call_args[1]
        assert kwargs["func"] == "stockwatch.scheduler:run_weekly_report_export"
        assert kwargs["trigger"] == "cron"
        assert kwargs["day_of_week"] == "fri"
        assert kwargs["hour"] == 17
        assert kwargs["id"] == WEEKLY_REPORT_JOB_ID
        assert kwargs["replace_existing"] is True

    @patch("stockwatch.scheduler.get_global_scheduler")
    def test_remove_missing_job(self, mock_get_scheduler):
        mock_scheduler = Mock()
        mock_scheduler.remove_job.side_effect = JobLookupError(WEEKLY_REPORT_JOB_ID)
        mock_get_scheduler.return_value = mock_scheduler

        assert remove_weekly_report_job() is False

    @patch("stockwatch.scheduler.remove_weekly_report_job")
    @patch("stockwatch.scheduler.add_weekly_report_job")
    def test_apply_enabled_schedule(self, mock_add, mock_remove, schedule):
        apply_weekly_schedule(schedule)

        mock_add.assert_called_once_with(schedule)
        mock_remove.assert_not_called()

    @patch("stockwatch.scheduler.remove_weekly_report_job")
    @patch("stockwatch.scheduler.add_weekly_report_job")
    def test_apply_disabled_schedule(self, mock_add, mock_remove):
        disabled = WeeklyEmailSchedule("investor@example.com", False, 4, 17)

        assert apply_weekly_schedule(disabled) is None

        mock_remove.assert_called_once()
        mock_add.assert_not_called()

    @patch("stockwatch.scheduler.remove_weekly_report_job")
    def test_apply_without_stored_schedule(self, mock_remove):
        assert apply_weekly_schedule() is None

        mock_remove.assert_called_once()


class TestRunWeeklyReportExport:
    """Test the scheduled export itself."""

    def test_exports_report_for_stored_portfolio(self, settings_env):
        service = create_portfolio_service(settings_env)
        service.add_position("AAPL", 10, 100, 120)

        path = run_weekly_report_export(benchmark_return=3.0)

        assert str(path.parent) == settings_env.reports_directory
        text = path.read_text(encoding="utf-8")
        assert "Portfolio return: +20.00%" in text
        assert "Benchmark return: +3.00%" in text
