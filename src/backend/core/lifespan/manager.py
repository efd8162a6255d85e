"""
Lifespan context for the FastAPI application.

Startup order matters: logging first, then the schema, then seed data,
then the scheduler whose job needs all of them. Shutdown runs in reverse.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from core.config import settings
from core.database import session_scope
from core.logging_config import LogConfig, stop_queue_listener
from . import tasks


@asynccontextmanager
async def lifespan(app: FastAPI):
    await tasks.initialize_logging(settings, LogConfig(**settings.logging.log_config))
    logger = logging.getLogger("main")

    await tasks.log_cors_configuration(settings, logger)
    await tasks.initialize_database()

    # Seed series counters, reset presence left over from the previous run
    await tasks.setup_default_data(session_scope)
    await tasks.prepare_upload_directory()
    await tasks.start_background_scheduler()

    yield

    logger.info(f"🛑 Shutting down {settings.api.app_name}...")
    await tasks.shutdown_scheduler_task()
    await tasks.reset_presence_registry()
    await tasks.shutdown_database()

    # Last, so the shutdown messages above are flushed
    stop_queue_listener()
