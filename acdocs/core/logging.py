"""
Logging Configuration
Loguru sinks with standard logging redirected into them
"""

import logging
import sys
from typing import Any, Optional

from loguru import logger as loguru_logger

from acdocs.core.config import settings


class InterceptHandler(logging.Handler):
    """Intercept standard logging and redirect to loguru"""

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists
        try:
            level = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        loguru_logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """
    Setup application logging

    Args:
        log_level: Override for settings.LOG_LEVEL
        log_file: Override for settings.LOG_FILE; no file sink when both are empty
    """
    level = (log_level or settings.LOG_LEVEL).upper()
    file_path = log_file or settings.LOG_FILE

    # Remove default handler
    loguru_logger.remove()

    if settings.DEBUG:
        # Development: Pretty colored output
        loguru_logger.add(
            sys.stdout,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
            level="DEBUG",
            colorize=True,
        )
    else:
        loguru_logger.add(
            sys.stdout,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level=level,
            serialize=settings.LOG_JSON,
        )

    if file_path:
        loguru_logger.add(
            file_path,
            rotation="10 MB",
            retention="7 days",
            compression="zip",
            level=level,
            serialize=True,
        )

    # Intercept standard logging
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """Get a logger instance"""
    return loguru_logger.bind(name=name)
