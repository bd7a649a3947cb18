"""Logging setup and configuration."""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from sdk_core.logging.context import set_log_context
from sdk_core.logging.formatters import ConsoleFormatter, JSONFormatter

# Default settings
DEFAULT_ROTATION_WHEN = "midnight"
DEFAULT_BACKUP_COUNT = 7
DEFAULT_CONSOLE_LEVEL = logging.INFO
DEFAULT_FILE_LEVEL = logging.DEBUG

# Noisy loggers to suppress
NOISY_LOGGERS = [
    "azure.core.pipeline.policies.http_logging_policy",
    "azure.identity",
    "msal",
    "urllib3",
    "aiohttp",
]


def _to_level(level: int | str) -> int:
    if isinstance(level, str):
        return logging.getLevelName(level.upper())
    return level


def setup_logging(
    name: str = "sdk_core",
    level: int | str = DEFAULT_CONSOLE_LEVEL,
    json_format: bool = False,
    log_file: Path | str | None = None,
    file_level: int | str = DEFAULT_FILE_LEVEL,
    rotation_when: str = DEFAULT_ROTATION_WHEN,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    suppress_noisy: bool = True,
    service: str | None = None,
) -> logging.Logger:
    """
    Configure root logging with a console handler and an optional rotating file.

    Args:
        name: Logger name to return
        level: Console handler level (default: INFO)
        json_format: Use JSONFormatter on the console instead of ConsoleFormatter
        log_file: Path for a time-rotated file handler (always JSON)
        file_level: File handler level (default: DEBUG)
        rotation_when: When to rotate the file ('midnight', 'H', ...)
        backup_count: Number of rotated files to keep
        suppress_noisy: Quiet down Azure identity and HTTP client loggers
        service: Service name injected into every record's context

    Returns:
        Configured logger instance
    """
    if service:
        set_log_context(service=service)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(_to_level(level))
    console_handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            log_path,
            when=rotation_when,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(_to_level(file_level))
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    if suppress_noisy:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger = logging.getLogger(name)
    logger.debug(
        "Logging initialized: file=%s, json=%s",
        log_file,
        json_format,
    )
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Use this instead of logging.getLogger() to ensure consistent naming.
    """
    return logging.getLogger(name)
