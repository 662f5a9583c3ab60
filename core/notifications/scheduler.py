"""
APScheduler-based daily trigger for checkpoint notifications.

One cron job runs the matcher + dispatcher once per day. The job stores no
state of its own; the notification log makes a second run on the same day
skip pairs that were already sent.

Jobs are persisted to PostgreSQL when DATABASE_URL is set, so a run missed
during a restart is picked up within the misfire grace period.
"""

import logging

import sentry_sdk
from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from core.config import get_daily_notify_hour_utc
from core.database import get_sync_database_url

logger = logging.getLogger(__name__)


_scheduler: AsyncIOScheduler | None = None

DAILY_CHECK_JOB_ID = "daily_checkpoint_notifications"

JOB_DEFAULTS = {
    "coalesce": True,  # Combine missed runs into one
    "max_instances": 1,
    "misfire_grace_time": 3600,  # Allow 1 hour late execution
}


# =============================================================================
# Scheduler initialization and shutdown
# =============================================================================


def _get_job_store_url() -> str:
    """Sync URL for the job store, with a connect timeout so startup never hangs."""
    database_url = get_sync_database_url(required=False)
    if database_url and "?" not in database_url:
        database_url += "?connect_timeout=5"
    elif database_url and "connect_timeout" not in database_url:
        database_url += "&connect_timeout=5"

    return database_url


def init_scheduler(skip_if_db_unavailable: bool = True) -> AsyncIOScheduler | None:
    """
    Initialize and start the APScheduler, then register the daily job.

    Call this during app startup (in FastAPI lifespan).

    Args:
        skip_if_db_unavailable: If True, fall back to an in-memory job store
                                when the DB is unreachable instead of failing.
    """
    global _scheduler

    if _scheduler is not None:
        return _scheduler

    database_url = _get_job_store_url()

    jobstores = {}
    if database_url:
        jobstores["default"] = SQLAlchemyJobStore(
            url=database_url,
            tablename="apscheduler_jobs",
        )

    _scheduler = AsyncIOScheduler(jobstores=jobstores, job_defaults=JOB_DEFAULTS)

    try:
        _scheduler.start()
        logger.info("Notification scheduler started")
    except Exception as e:
        if skip_if_db_unavailable and "timeout" in str(e).lower():
            logger.warning(
                "Could not connect to database for scheduler, "
                "running in memory-only mode (jobs won't persist)"
            )
            _scheduler = AsyncIOScheduler(jobstores={}, job_defaults=JOB_DEFAULTS)
            _scheduler.start()
        else:
            raise

    schedule_daily_check()
    return _scheduler


def shutdown_scheduler() -> None:
    """
    Shutdown the scheduler gracefully.

    Call this during app shutdown.
    """
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=True)
        _scheduler = None
        logger.info("Notification scheduler stopped")


# =============================================================================
# Job scheduling
# =============================================================================


def schedule_daily_check(hour_utc: int | None = None) -> None:
    """
    Register (or replace) the daily notification job.

    Args:
        hour_utc: UTC hour to run at (default from DAILY_NOTIFY_HOUR_UTC, 1 = 08:00 UTC+7)
    """
    if not _scheduler:
        logger.warning("Scheduler not initialized, cannot schedule daily check")
        return

    hour = get_daily_notify_hour_utc() if hour_utc is None else hour_utc

    _scheduler.add_job(
        _execute_daily_check,
        trigger=CronTrigger(hour=hour, minute=0, timezone="UTC"),
        id=DAILY_CHECK_JOB_ID,
        replace_existing=True,
    )
    logger.info(f"Scheduled daily checkpoint notifications at {hour:02d}:00 UTC")


# =============================================================================
# Job execution
# =============================================================================


async def _execute_daily_check() -> dict | None:
    """
    Run one daily check. Called by APScheduler.

    Errors are logged and reported, never raised into the scheduler.
    """
    # Import here to avoid circular imports
    from core.notifications.dispatcher import run_daily_notifications

    try:
        summary = await run_daily_notifications()
    except Exception as e:
        logger.error(f"Daily checkpoint notification run failed: {e}")
        sentry_sdk.capture_exception(e)
        return None

    failed = [r for r in summary["results"] if r["status"] == "failed"]
    if failed:
        sentry_sdk.capture_message(
            f"{len(failed)} checkpoint notifications failed on {summary['date']}"
        )
    return summary
