"""
Centralized Logging Configuration

Provides a centralized logging setup for the entire application.
All modules should use get_logger(__name__) instead of configuring their own.

Subscription lifecycle decisions (applied, duplicate and stale webhook events,
admin status changes) are additionally written to the "everest.audit" logger.
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

from core.config import get_settings

settings = get_settings()

AUDIT_LOGGER_NAME = "everest.audit"


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    enable_file_logging: bool = True
) -> logging.Logger:
    """
    Set up centralized logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
                   If None, uses LOG_LEVEL from settings
        log_file: Path to log file. If None, uses LOG_FILE from settings
        enable_file_logging: Whether to enable file logging (default: True)

    Returns:
        Root logger instance
    """
    level = (log_level or settings.LOG_LEVEL).upper()
    log_file_path = log_file or settings.LOG_FILE
    numeric_level = getattr(logging, level, logging.INFO)

    if enable_file_logging and log_file_path:
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_formatter = logging.Formatter(
        '%(asctime)s [%(levelname)-8s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if enable_file_logging and log_file_path:
        try:
            file_handler = RotatingFileHandler(
                log_file_path,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(detailed_formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning(f"Failed to set up file logging: {str(e)}")

    # Audit records always pass, whatever the root level
    logging.getLogger(AUDIT_LOGGER_NAME).setLevel(logging.INFO)

    # Quiet third-party loggers
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("fastapi").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def get_audit_logger() -> logging.Logger:
    """Get the logger used for subscription audit records."""
    return logging.getLogger(AUDIT_LOGGER_NAME)


# Initialize logging on import
setup_logging()
