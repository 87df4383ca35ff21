"""Weekly report scheduling using APScheduler with a SQLAlchemy job store."""

from pathlib import Path
from typing import Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from apscheduler.schedulers.background import BackgroundScheduler

from .config.logging import get_logger
from .config.settings import get_settings
from .services.notification_settings import WeeklyEmailSchedule

logger = get_logger(__name__)

WEEKLY_REPORT_JOB_ID = "weekly_report_export"


def create_scheduler() -> BackgroundScheduler:
    """
    Create and configure a BackgroundScheduler with SQLAlchemy job store.

    Returns:
        Configured BackgroundScheduler instance
    """
    settings = get_settings()

    # Jobs live in the same database as the portfolio backend
    jobstores = {
        "default": SQLAlchemyJobStore(
            url=settings.get_database_url(), tablename="apscheduler_jobs"
        )
    }
    executors = {"default": ThreadPoolExecutor(max_workers=1)}
    job_defaults = {
        "coalesce": True,  # A missed week runs once, not once per miss
        "max_instances": 1,
        "misfire_grace_time": 3600,
    }

    scheduler = BackgroundScheduler(
        jobstores=jobstores,
        executors=executors,
        job_defaults=job_defaults,
        timezone="UTC",
    )

    scheduler.add_listener(job_executed_listener, EVENT_JOB_EXECUTED)
    scheduler.add_listener(job_error_listener, EVENT_JOB_ERROR)

    return scheduler


def job_executed_listener(event):
    """Log successful job executions."""
    logger.info(
        "Scheduled job executed",
        job_id=event.job_id,
        scheduled_run_time=str(event.scheduled_run_time),
    )


def job_error_listener(event):
    """Log job execution errors."""
    logger.error(
        "Scheduled job failed",
        job_id=event.job_id,
        error=str(event.exception),
        traceback=event.traceback,
    )


def get_global_scheduler() -> BackgroundScheduler:
    """
    Get or create the global scheduler instance.

    Returns:
        Global BackgroundScheduler instance
    """
    if not hasattr(get_global_scheduler, "_scheduler"):
        get_global_scheduler._scheduler = create_scheduler()

    return get_global_scheduler._scheduler


def start_scheduler():
    """Start the global scheduler."""
    scheduler = get_global_scheduler()
    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started with SQLAlchemy job store")


def shutdown_scheduler():
    """Shutdown the global scheduler."""
    scheduler = get_global_scheduler()
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Scheduler shutdown complete")


def run_weekly_report_export(benchmark_return: Optional[float] = None) -> Path:
    """
    Export the weekly report for the locally stored portfolio.

    Runs as the scheduled job; also used by the command line.

    Returns:
        Path of the written report
    """
    from .services import create_portfolio_service

    settings = get_settings()
    if benchmark_return is None:
        benchmark_return = settings.default_benchmark_return

    service = create_portfolio_service(settings)
    service.load()
    path = service.export_weekly_report(settings.reports_directory, benchmark_return)

    logger.info("Weekly report export finished", path=str(path))
    return path


def remove_weekly_report_job() -> bool:
    """Remove the weekly report job; returns False when none was scheduled."""
    scheduler = get_global_scheduler()
    try:
        scheduler.remove_job(WEEKLY_REPORT_JOB_ID)
    except JobLookupError:
        return False

    logger.info("Weekly report job removed")
    return True


def add_weekly_report_job(schedule: WeeklyEmailSchedule):
    """
    Schedule the weekly report export on the schedule's day and hour (UTC).

    Args:
        schedule: Stored weekly schedule

    Returns:
        The scheduled job
    """
    scheduler = get_global_scheduler()

    # Module reference so the job survives in the persistent job store
    job = scheduler.add_job(
        func="stockwatch.scheduler:run_weekly_report_export",
        trigger="cron",
        day_of_week=schedule.day_name,
        hour=schedule.hour,
        id=WEEKLY_REPORT_JOB_ID,
        name="Weekly Portfolio Report",
        replace_existing=True,
    )

    logger.info(
        "Weekly report job scheduled",
        day_of_week=schedule.day_name,
        hour=schedule.hour,
    )
    return job


def apply_weekly_schedule(schedule: Optional[WeeklyEmailSchedule] = None):
    """
    Bring the scheduler in line with the stored weekly schedule.

    Args:
        schedule: Schedule to apply; read from the encrypted store when omitted

    Returns:
        The scheduled job, or None when the schedule is missing or disabled
    """
    if schedule is None:
        from .services import NotificationSettingsService
        from .storage import create_storage

        schedule = NotificationSettingsService(create_storage()).get_weekly_schedule()

    if schedule is None or not schedule.enabled:
        remove_weekly_report_job()
        return None

    return add_weekly_report_job(schedule)
