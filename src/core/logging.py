"""
Logging configuration for the AL PR Reviewer.

Every component logs through a loguru logger bound to a dotted component name
(``reviewer.diff_parser``, ``github.client``, ...), which is what the sinks print
in place of the Python module name.
"""

import sys
from typing import Optional

from loguru import logger

from src.config import settings

DEFAULT_LOGGER_NAME = "pr-reviewer"


def configure_logging() -> None:
    """Configure colorful logging for the application."""

    logger.remove()
    logger.configure(extra={"logger_name": DEFAULT_LOGGER_NAME})

    log_level = "DEBUG" if settings.debug else "INFO"

    if settings.environment == "development":
        logger.add(
            sys.stderr,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<blue>{extra[logger_name]}</blue>:<blue>{function}</blue>:<blue>{line}</blue> - "
                "<level>{message}</level>"
            ),
            level=log_level,
            colorize=True,
            backtrace=True,
            diagnose=True,
        )
    else:
        logger.add(
            sys.stderr,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | "
                "{extra[logger_name]}:{function}:{line} - {message}"
            ),
            level=log_level,
            serialize=True,
        )


configure_logging()


def get_logger(name: Optional[str] = None):
    """Get a logger instance bound to a component name."""
    return logger.bind(logger_name=name or DEFAULT_LOGGER_NAME)
