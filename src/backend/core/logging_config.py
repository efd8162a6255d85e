"""
Logging configuration for the Field Engineer CRM.
Provides structured logging with different levels and formats.

PERFORMANCE:
- Uses QueueHandler so log writes never block the event loop
- QueueListener handles file I/O in a separate thread
"""

import atexit
import logging
import logging.handlers
import queue
import sys
from pathlib import Path
from typing import Optional

from pydantic import BaseModel


# Global queue listener for cleanup
_queue_listener: Optional[logging.handlers.QueueListener] = None


class LogConfig(BaseModel):
    """Logging configuration settings."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    enable_file_logging: bool = True
    log_dir: str = "logs"
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    enable_console: bool = True


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output."""

    grey = "\x1b[38;21m"
    yellow = "\x1b[33;21m"
    red = "\x1b[31;21m"
    bold_red = "\x1b[31;1m"
    blue = "\x1b[34;21m"
    reset = "\x1b[0m"

    COLORS = {
        logging.DEBUG: grey,
        logging.INFO: blue,
        logging.WARNING: yellow,
        logging.ERROR: red,
        logging.CRITICAL: bold_red,
    }

    def format(self, record):
        # Color a copy so file handlers sharing the record see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelno, self.grey)
        record.levelname = f"{color}{record.levelname}{self.reset}"
        return f"{super().format(record)}{self.reset}"


class _PresenceOnlyFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.name.startswith("presence")


class _DatabaseOnlyFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.name.startswith("sqlalchemy") or record.name.startswith("crud")


def _rotating_handler(config: LogConfig, filename: str, formatter: logging.Formatter):
    handler = logging.handlers.RotatingFileHandler(
        Path(config.log_dir) / filename,
        maxBytes=config.max_file_size,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(getattr(logging, config.level.upper()))
    handler.setFormatter(formatter)
    return handler


def setup_logging(config: Optional[LogConfig] = None) -> None:
    """Setup application logging with configuration.

    - Console handler writes directly to stdout
    - File handlers (app.log, presence.log, database.log) sit behind a QueueListener
    """
    global _queue_listener

    if config is None:
        config = LogConfig()

    if _queue_listener:
        _queue_listener.stop()
        _queue_listener = None

    if config.enable_file_logging:
        Path(config.log_dir).mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level.upper()))
    root_logger.handlers.clear()

    if config.enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, config.level.upper()))
        console_handler.setFormatter(
            ColoredFormatter(
                fmt="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
                datefmt=config.date_format,
            )
        )
        root_logger.addHandler(console_handler)

    file_handlers = []

    if config.enable_file_logging:
        file_formatter = logging.Formatter(
            fmt="%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt=config.date_format,
        )

        file_handlers.append(_rotating_handler(config, "app.log", file_formatter))

        presence_handler = _rotating_handler(config, "presence.log", file_formatter)
        presence_handler.addFilter(_PresenceOnlyFilter())
        file_handlers.append(presence_handler)

        db_handler = _rotating_handler(config, "database.log", file_formatter)
        db_handler.addFilter(_DatabaseOnlyFilter())
        file_handlers.append(db_handler)

    if file_handlers:
        log_queue = queue.Queue(-1)
        root_logger.addHandler(logging.handlers.QueueHandler(log_queue))

        _queue_listener = logging.handlers.QueueListener(
            log_queue,
            *file_handlers,
            respect_handler_level=True,
        )
        _queue_listener.start()
        atexit.register(stop_queue_listener)

    from .config import settings

    sqlalchemy_logger = logging.getLogger("sqlalchemy.engine")
    if settings.performance.enable_query_logging:
        sqlalchemy_logger.setLevel(getattr(logging, config.level.upper()))
    else:
        sqlalchemy_logger.setLevel(logging.WARNING)

    # Socket.IO and Engine.IO are chatty at INFO
    logging.getLogger("socketio").setLevel(logging.WARNING)
    logging.getLogger("engineio").setLevel(logging.WARNING)


def stop_queue_listener() -> None:
    """Stop the queue listener gracefully.

    Called automatically on exit via atexit.
    Can also be called manually during shutdown.
    """
    global _queue_listener

    if _queue_listener:
        _queue_listener.stop()
        _queue_listener = None


class PresenceLogger:
    """Structured logger for presence (online/offline) events."""

    def __init__(self, name: str = "tracker"):
        self.logger = logging.getLogger(f"presence.{name}")

    def engineer_registered(self, sid: str, engineer_id: int, session_count: int) -> None:
        """Log when a live connection registers as an engineer."""
        self.logger.info(
            f"Engineer registered | Engineer ID: {engineer_id} | SID: {sid} | "
            f"Open sessions: {session_count}"
        )

    def engineer_disconnected(
        self, sid: str, engineer_id: int, remaining_sessions: int
    ) -> None:
        """Log when a registered connection closes."""
        self.logger.info(
            f"Engineer disconnected | Engineer ID: {engineer_id} | SID: {sid} | "
            f"Remaining sessions: {remaining_sessions}"
        )

    def status_changed(self, engineer_id: int, status: str, source: str) -> None:
        """Log a persisted presence transition."""
        self.logger.info(
            f"Status changed | Engineer ID: {engineer_id} | Status: {status} | Source: {source}"
        )

    def error_occurred(
        self,
        operation: str,
        sid: Optional[str] = None,
        engineer_id: Optional[int] = None,
        error: str = "",
    ) -> None:
        """Log errors with context."""
        context = []
        if sid:
            context.append(f"SID: {sid}")
        if engineer_id:
            context.append(f"Engineer ID: {engineer_id}")
        context_str = " | ".join(context) if context else "No context"

        self.logger.error(
            f"Presence error | Operation: {operation} | {context_str} | Error: {error}"
        )
