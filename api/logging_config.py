"""
Logging configuration for InternBot API.
Provides structured logging with proper formatting.
"""

import os
import sys
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from api.config import config

# Log directory
LOG_DIR = Path(config.LOG_DIR)
LOG_DIR.mkdir(parents=True, exist_ok=True)

# Log level from environment
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        color = self.COLORS.get(record.levelname, self.RESET)
        # Format a copy so the file handlers never see the escape codes
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(name: str = "internbot") -> logging.Logger:
    """
    Setup and return a configured logger.

    Handlers are attached to the named logger; the engine's module loggers
    (``core.*``) are routed to the same handlers so a single log file holds
    the whole automation trace.

    Args:
        name: Logger name (default: internbot)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    # Console handler with colors
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_format = ColoredFormatter(
        '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_format)

    # File handler with rotation
    file_handler = RotatingFileHandler(
        LOG_DIR / f"{name}.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5
    )
    file_handler.setLevel(logging.DEBUG)
    file_format = logging.Formatter(
        '%(asctime)s | %(levelname)s | %(name)s | %(funcName)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    file_handler.setFormatter(file_format)

    # Error file handler (errors and above)
    error_handler = RotatingFileHandler(
        LOG_DIR / f"{name}_errors.log",
        maxBytes=10 * 1024 * 1024,
        backupCount=5
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(file_format)

    for target in (logger, logging.getLogger("core"), logging.getLogger("ai")):
        target.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
        target.addHandler(console_handler)
        target.addHandler(file_handler)
        target.addHandler(error_handler)

    return logger


# Create default logger
logger = setup_logging()


def log_application(job_id: str, job_url: str, status: str, error: Optional[str] = None):
    """Log an application event."""
    if error:
        logger.error(f"Application {job_id} failed: {error}", extra={"job_url": job_url})
    else:
        logger.info(f"Application {job_id} -> {status}", extra={"job_url": job_url})


def log_ai_request(operation: str, error: Optional[str] = None):
    """Log an AI service request."""
    if error:
        logger.error(f"AI {operation} failed: {error}")
    else:
        logger.info(f"AI {operation} completed")


def log_browser_event(event: str, details: Optional[str] = None):
    """Log a browser automation event."""
    logger.debug(f"Browser {event}: {details}" if details else f"Browser {event}")
