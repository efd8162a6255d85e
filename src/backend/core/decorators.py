"""
Centralized error handling decorators for database operations.

Database errors are logged here with full detail and re-raised as
PersistenceFailure so HTTP handlers and socket handlers only deal with the
domain taxonomy in core.exceptions.
"""
import functools
import logging
from typing import Any, Callable, Optional

from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    StatementError,
    TimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import PersistenceFailure

logger = logging.getLogger(__name__)


class DatabaseErrorHandler:
    """Centralized database error handling utilities."""

    DATABASE_EXCEPTIONS = (SQLAlchemyError, ConnectionError)

    @staticmethod
    def handle_database_error(
        exc: Exception,
        operation: str,
        context: Optional[dict] = None,
    ) -> str:
        """
        Log a database error with a classification and return the message.

        Args:
            exc: The exception that occurred
            operation: Description of the database operation
            context: Additional context information

        Returns:
            The logged error message
        """
        context_str = f" | Context: {context}" if context else ""

        if isinstance(exc, IntegrityError):
            error_msg = f"Database integrity error during {operation}: {exc}{context_str}"
            logger.warning(error_msg)
        elif isinstance(exc, (ConnectionError, DisconnectionError)):
            error_msg = f"Database connection error during {operation}: {exc}{context_str}"
            logger.error(error_msg)
        elif isinstance(exc, TimeoutError):
            error_msg = f"Database timeout during {operation}: {exc}{context_str}"
            logger.warning(error_msg)
        elif isinstance(exc, OperationalError):
            error_msg = f"Database operational error during {operation}: {exc}{context_str}"
            logger.error(error_msg)
        elif isinstance(exc, StatementError):
            error_msg = f"Database statement error during {operation}: {exc}{context_str}"
            logger.warning(error_msg)
        else:
            error_msg = (
                f"Unexpected database error during {operation}: "
                f"{type(exc).__name__}: {exc}{context_str}"
            )
            logger.error(error_msg, exc_info=exc)

        return error_msg


def _find_session(args, kwargs) -> Optional[AsyncSession]:
    for value in list(args) + list(kwargs.values()):
        if isinstance(value, AsyncSession):
            return value
    return None


def critical_database_operation(operation_name: Optional[str] = None) -> Callable:
    """
    Log database errors and re-raise them as PersistenceFailure.

    Domain errors (core.exceptions) raised inside the wrapped coroutine pass through.

    Usage:
        @critical_database_operation("find engineers by department")
        async def find_by_department(cls, db, department): ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            operation = operation_name or func.__name__
            try:
                return await func(*args, **kwargs)
            except DatabaseErrorHandler.DATABASE_EXCEPTIONS as exc:
                error_msg = DatabaseErrorHandler.handle_database_error(
                    exc, operation, {"function": func.__name__}
                )
                raise PersistenceFailure(error_msg) from exc

        return async_wrapper

    return decorator


def transactional_database_operation(operation_name: Optional[str] = None) -> Callable:
    """
    Commit the session found in the arguments on success, roll back on any error.

    Combined with critical_database_operation so database errors surface as
    PersistenceFailure after the rollback.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def transaction_wrapper(*args, **kwargs) -> Any:
            operation = operation_name or func.__name__
            db_session = _find_session(args, kwargs)

            if db_session is None:
                logger.warning(f"No AsyncSession found for transaction operation {operation}")
                return await func(*args, **kwargs)

            try:
                result = await func(*args, **kwargs)
                await db_session.commit()
                logger.debug(f"Transaction committed for {operation}")
                return result
            except Exception:
                try:
                    await db_session.rollback()
                    logger.debug(f"Transaction rolled back for {operation}")
                except Exception as rollback_exc:
                    logger.error(f"Failed to rollback transaction for {operation}: {rollback_exc}")
                raise

        return critical_database_operation(operation_name)(transaction_wrapper)

    return decorator


def log_database_operation(operation: str, level: str = "debug") -> Callable:
    """
    Log start/end of an async operation at the given level.

    Args:
        operation: Description of the operation
        level: Logging level ('debug', 'info', 'warning', 'error')
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            logger_method = getattr(logger, level)
            logger_method(f"Starting {operation} via {func.__name__}")
            try:
                result = await func(*args, **kwargs)
                logger_method(f"Completed {operation} via {func.__name__}")
                return result
            except Exception as exc:
                logger_method(f"Failed {operation} via {func.__name__}: {exc}")
                raise

        return async_wrapper

    return decorator
