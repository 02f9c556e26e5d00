"""
Logging for Centralia.

Application code logs through loguru; each module binds its own name with
``get_logger(__name__)``. Chatty third-party loggers (httpx request lines,
SQLAlchemy engine echo) are held at WARNING unless debugging.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger

    from centralia.config import Settings

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]}:{function}:{line} | {message}"

NOISY_LIBRARIES = ("httpx", "httpcore", "sqlalchemy.engine", "asyncpg")

logger.configure(extra={"name": "centralia"})


def setup_logging(
    level: str = "INFO",
    log_file: str | Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Replace loguru sinks with a stderr sink and an optional rotating file.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
        rotation: Log file rotation size
        retention: Log file retention period
    """
    logger.remove()
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            level=level,
            format=FILE_FORMAT,
            rotation=rotation,
            retention=retention,
            encoding="utf-8",
        )

    library_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)


def configure_from_settings(settings: Settings) -> None:
    setup_logging(level=settings.log_level, log_file=settings.log_file)


def get_logger(name: str | None = None) -> Logger:
    """Return the shared logger, bound to ``name`` when given."""
    if name:
        return logger.bind(name=name)
    return logger
