"""APScheduler configuration for session housekeeping."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session

from app.core.database import SessionLocal
from app.services.auth import AuthService

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


def get_db_session() -> Session:
    """Get a database session for scheduler jobs."""
    return SessionLocal()


def purge_sessions_job() -> None:
    """
    Job to delete sessions that ended more than the retention window ago.
    Runs daily at 03:00 UTC.
    """
    logger.info("Starting session purge job")

    db = get_db_session()
    try:
        count = AuthService(db).purge_sessions()
        db.commit()
        logger.info(f"Purged {count} ended sessions")
    except Exception as e:
        logger.exception(f"Error purging sessions: {e}")
        db.rollback()
    finally:
        db.close()


def init_scheduler() -> AsyncIOScheduler:
    """Initialize and configure the scheduler."""
    global scheduler

    scheduler = AsyncIOScheduler(
        timezone="UTC",
        job_defaults={
            "coalesce": True,  # Combine missed runs
            "max_instances": 1,
            "misfire_grace_time": 3600,
        },
    )

    scheduler.add_job(
        purge_sessions_job,
        trigger=CronTrigger(hour=3, minute=0),
        id="purge_sessions",
        name="Purge ended sessions",
        replace_existing=True,
    )

    logger.info("Scheduler initialized with session purge job")
    return scheduler


def start_scheduler() -> None:
    """Start the scheduler."""
    global scheduler
    if scheduler is None:
        scheduler = init_scheduler()

    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started")


def stop_scheduler() -> None:
    """Stop the scheduler."""
    global scheduler
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
    scheduler = None
