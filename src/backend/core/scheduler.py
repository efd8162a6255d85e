"""
Background task scheduler for periodic jobs.
Uses APScheduler to run the daily chat retention sweep.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from api.services.chat_service import ChatService
from core.config import settings
from core.database import session_scope

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()

PURGE_JOB_ID = "purge_expired_messages"


async def purge_expired_messages_job(session_factory=session_scope) -> int:
    """
    Delete chat messages older than the retention period.
    Runs daily via APScheduler; failures are logged and the job stays scheduled.
    """
    logger.info("Starting scheduled chat retention sweep...")

    try:
        async with session_factory() as db:
            deleted = await ChatService.purge_expired(db, settings.chat.retention_days)
        logger.info(f"Chat retention sweep completed: {deleted} messages removed")
        return deleted
    except Exception as e:
        logger.error(f"Scheduled chat retention sweep failed: {str(e)}", exc_info=True)
        return 0


def start_scheduler() -> None:
    """
    Register jobs and start the scheduler.
    Call this during application startup.
    """
    scheduler.add_job(
        purge_expired_messages_job,
        trigger=CronTrigger(
            hour=settings.chat.retention_cron_hour,
            minute=settings.chat.retention_cron_minute,
        ),
        id=PURGE_JOB_ID,
        name="Purge chat messages past retention",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    logger.info(
        f"Background scheduler started: retention sweep daily at "
        f"{settings.chat.retention_cron_hour:02d}:{settings.chat.retention_cron_minute:02d}"
    )


def shutdown_scheduler() -> None:
    """
    Shutdown the scheduler gracefully.
    Call this during application shutdown.
    """
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler shut down")
