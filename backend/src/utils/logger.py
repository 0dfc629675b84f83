"""
Location History Import - Structured Logging
Provides JSON-formatted logging for CloudWatch Logs Insights queries.
"""

import logging
import sys
from typing import Dict, Optional

from pythonjsonlogger import jsonlogger

from .config import LOG_LEVEL, config


def setup_logger(name: str = __name__) -> logging.Logger:
    """
    Configure structured JSON logger for CloudWatch integration.

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger(__name__)
        >>> logger.info("Import completed", extra={
        ...     "user_id": 42,
        ...     "duration_seconds": 142,
        ...     "points_created": 1247
        ... })
    """
    logger = logging.getLogger(name)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%S'
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger


# Global logger instance; module loggers under "importer" etc. are not children of it
logger = setup_logger('location_history')


def log_import_start(user_id: int, archive_path: str, run_id: Optional[str] = None):
    """Log the start of a user data import."""
    logger.info("User data import started", extra={
        "event_type": "import_start",
        "user_id": user_id,
        "archive_path": archive_path,
        "run_id": run_id,
        "environment": config.environment
    })


def log_import_complete(user_id: int, duration_seconds: float, counts: Dict[str, int],
                        run_id: Optional[str] = None):
    """Log successful import completion with per-kind created counts."""
    logger.info("User data import completed", extra={
        "event_type": "import_complete",
        "user_id": user_id,
        "run_id": run_id,
        "duration_seconds": duration_seconds,
        **counts
    })


def log_import_error(error: Exception, user_id: int = None, run_id: Optional[str] = None):
    """Log import failure with context."""
    logger.error("User data import failed", extra={
        "event_type": "import_error",
        "error_type": type(error).__name__,
        "error_message": str(error),
        "user_id": user_id,
        "run_id": run_id
    }, exc_info=True)


def log_phase_complete(phase: str, records_created: int, duration_seconds: float):
    """Log the end of one per-kind import phase."""
    logger.info("Import phase completed", extra={
        "event_type": "import_phase_complete",
        "phase": phase,
        "records_created": records_created,
        "duration_seconds": duration_seconds
    })


def log_database_error(error: Exception, query_context: str = None):
    """Log database error with context."""
    logger.error("Database error", extra={
        "event_type": "database_error",
        "error_type": type(error).__name__,
        "error_message": str(error),
        "query_context": query_context
    }, exc_info=True)
