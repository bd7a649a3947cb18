"""Structured logging: context variables, formatters and setup helpers."""

from sdk_core.logging.context import clear_log_context, get_log_context, set_log_context
from sdk_core.logging.context_managers import LogContext
from sdk_core.logging.formatters import ConsoleFormatter, JSONFormatter
from sdk_core.logging.setup import NOISY_LOGGERS, get_logger, setup_logging
from sdk_core.logging.utilities import log_exception, log_with_context

__all__ = [
    "ConsoleFormatter",
    "JSONFormatter",
    "LogContext",
    "NOISY_LOGGERS",
    "clear_log_context",
    "get_log_context",
    "get_logger",
    "log_exception",
    "log_with_context",
    "set_log_context",
    "setup_logging",
]
