from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path

from loguru import logger

from dotnet_template.config.settings import settings

# Stdlib loggers that only add noise to toolchain output
SILENCED_LIBRARIES = ("asyncio",)

# Track if logging has been configured to prevent re-initialization
_configured = False


def _get_log_filename() -> str:
    """Generate a log filename with current date and time."""
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    return f"{timestamp}.log"


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level_name = logger.level(record.levelname).name
        except ValueError:
            level_name = record.levelno

        # Find caller from where the logging call originated
        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level_name, record.getMessage()
        )


def configure_logging(level: str | None = None) -> None:
    """
    Configure logging with loguru and redirect standard logging to loguru.
    - level: optional override for the minimum log level; if None the level
      comes from settings.LOG_LEVEL, else is inferred from settings.ENV
      ("development" -> DEBUG; else INFO).
    """
    global _configured
    if _configured:
        return

    env = settings.ENV.lower()
    is_production = env == "production"

    if level is None:
        level = settings.LOG_LEVEL or ("DEBUG" if env == "development" else "INFO")
    level = level.upper()

    # Remove default loguru handlers
    logger.remove()

    log_file_path = None
    if settings.LOG_TO_FILE:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file_path = log_dir / _get_log_filename()

        file_fmt = (
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{name}:{function}:{line} | "
            "{message}"
        )
        logger.add(
            log_file_path,
            level=level,
            format=file_fmt,
            backtrace=True,
            diagnose=False,
            encoding="utf-8",
        )

    if is_production:
        # Production: JSON structured logs to stderr
        logger.add(
            sys.stderr,
            level=level,
            serialize=True,
            backtrace=False,
            diagnose=False,
        )
    else:
        fmt = (
            "<green>{time:HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<level>{message}</level>"
        )
        logger.add(
            sys.stderr,
            level=level,
            format=fmt,
            backtrace=True,
            diagnose=False,
            colorize=True,
        )

    stdlib_level = logging.getLevelName(level)
    if not isinstance(stdlib_level, int):
        # loguru-only levels such as SUCCESS or TRACE
        stdlib_level = logging.DEBUG if level == "TRACE" else logging.INFO
    logging.root.handlers = [InterceptHandler()]
    logging.root.setLevel(stdlib_level)

    for lib_name in SILENCED_LIBRARIES:
        noisy_logger = logging.getLogger(lib_name)
        noisy_logger.setLevel(logging.CRITICAL)
        noisy_logger.propagate = False
        noisy_logger.handlers = []

    _configured = True
    logger.debug(f"Logging configured: level={level}, environment={env}, log_file={log_file_path}")
