"""
Individual startup and shutdown steps used by the lifespan manager.

Imports are local so importing the app does not pull in the scheduler
or touch the upload directory.
"""

import logging

logger = logging.getLogger("main")


async def initialize_logging(settings, log_config):
    from core.logging_config import setup_logging

    setup_logging(log_config)
    logger.info(f"🚀 Starting {settings.api.app_name}...")


async def log_cors_configuration(settings, logger):
    logger.info(f"🔒 CORS Allowed Origins: {settings.cors.origins}")


async def initialize_database():
    """Create missing tables."""
    from core.database import init_db

    await init_db()
    logger.info("✅ Database initialized")


async def setup_default_data(session_factory):
    """Seed department counters and reset stale presence. Never aborts startup."""
    from db.setup import setup_database_default_data

    try:
        async with session_factory() as db:
            ok = await setup_database_default_data(db)
    except Exception as e:
        logger.error(f"❌ Default data setup raised: {e}")
        return

    if ok:
        logger.info("✅ Default data ready")
    else:
        logger.error("❌ Default data setup failed - check database.log")


async def prepare_upload_directory():
    """Create the attachment directory served under /uploads."""
    from api.services.file_service import ensure_upload_dir

    logger.info(f"✅ Upload directory ready at {ensure_upload_dir().resolve()}")


async def start_background_scheduler():
    from core.scheduler import start_scheduler

    try:
        start_scheduler()
    except Exception as e:
        logger.warning(f"⚠️  Retention scheduler not started: {e}")
    else:
        logger.info("✅ Retention scheduler started")


async def shutdown_scheduler_task():
    from core.scheduler import shutdown_scheduler

    try:
        shutdown_scheduler()
    except Exception as e:
        logger.warning(f"⚠️  Retention scheduler shutdown error: {e}")


async def reset_presence_registry():
    """Forget in-memory sessions; their connections are gone."""
    from core.dependencies import get_presence_tracker

    get_presence_tracker().clear()


async def shutdown_database():
    from core.database import close_db

    await close_db()
    logger.info("✅ Database connections closed")
