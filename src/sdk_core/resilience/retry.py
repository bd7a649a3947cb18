"""
Retry configuration and exception-aware retry decorators.

Uses the exception hierarchy to make intelligent retry decisions:
- Transient errors: retry with exponential backoff
- Auth errors: refresh credentials, then retry
- Permanent errors: fail immediately (no retry)

RetryConfig is shared by the pipeline retry policies (which re-invoke the
rest of the chain) and by the with_retry decorators (which re-invoke a
single callable such as a token acquisition).
"""

import asyncio
import inspect
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from functools import wraps

from sdk_core.errors.exceptions import (
    SdkError,
    ThrottlingError,
    classify_exception,
    wrap_exception,
)
from sdk_core.types import ErrorCategory
from sdk_core.utils import to_bool

logger = logging.getLogger(__name__)

RETRY_MODE_EXPONENTIAL = "exponential"
RETRY_MODE_FIXED = "fixed"

DEFAULT_RETRY_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


def _extract_error_category(wrapped: Exception) -> str:
    """Return a string error category from a wrapped exception."""
    if isinstance(wrapped, SdkError):
        cat = wrapped.category
    else:
        cat = classify_exception(wrapped)
    return cat.value if hasattr(cat, "value") else str(cat)


def _log_retry_failure(
    func_name: str,
    wrapped: Exception,
    e: Exception,
    error_category: str,
    config: "RetryConfig",
) -> bool:
    """Log permanent-error or max-retries-exhausted and return True if permanent."""
    error_type = type(wrapped).__name__
    if isinstance(wrapped, SdkError) and not wrapped.is_retryable:
        logger.warning(
            "Permanent error for %s, not retrying: %s",
            func_name,
            str(e)[:200],
            extra={
                "operation": func_name,
                "error_type": error_type,
                "error_category": error_category,
                "error_message": str(e)[:200],
            },
        )
        return True

    logger.error(
        "Max retries exhausted for %s: %s",
        func_name,
        str(e)[:200],
        extra={
            "operation": func_name,
            "error_type": error_type,
            "error_category": error_category,
            "max_attempts": config.max_attempts,
            "error_message": str(e)[:200],
        },
    )
    return False


def _log_retry_attempt(
    func_name: str,
    attempt: int,
    config: "RetryConfig",
    error_category: str,
    delay: float,
    e: Exception,
    wrapped: Exception,
) -> None:
    """Build log extras and emit the retry-attempt warning."""
    log_extras: dict[str, object] = {
        "operation": func_name,
        "attempt": attempt + 1,
        "max_attempts": config.max_attempts,
        "error_category": error_category,
        "delay_seconds": round(delay, 2),
        "error_message": str(e)[:200],
    }

    using_server_delay = (
        config.respect_retry_after
        and isinstance(wrapped, ThrottlingError)
        and wrapped.retry_after is not None
    )

    if using_server_delay:
        log_extras["server_retry_after"] = wrapped.retry_after
        log_extras["delay_source"] = "server"
        log_message = "Retryable error for %s, will retry (using server-provided delay)"
    else:
        log_extras["delay_source"] = "backoff"
        log_message = "Retryable error for %s, will retry"

    logger.warning(log_message, func_name, extra=log_extras)


def _safe_invoke_on_retry(
    on_retry: Callable[[Exception, int, float], None],
    wrapped: Exception,
    attempt: int,
    delay: float,
    func_name: str,
) -> None:
    """Call the on_retry callback, swallowing and logging any errors."""
    try:
        on_retry(wrapped, attempt, delay)
    except Exception as cb_err:
        logger.warning(
            "Error in on_retry callback for %s: %s",
            func_name,
            str(cb_err)[:100],
            extra={
                "operation": func_name,
                "callback_error": str(cb_err)[:100],
            },
        )


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    base_delay: float = 0.8
    max_delay: float = 60.0
    exponential_base: float = 2.0

    # "exponential" grows the delay per attempt, "fixed" keeps base_delay
    mode: str = RETRY_MODE_EXPONENTIAL

    # Response status codes the pipeline retry policy re-sends
    retry_on_status_codes: set[int] = field(
        default_factory=lambda: set(DEFAULT_RETRY_STATUS_CODES)
    )

    # If True, don't retry permanent errors even if max_attempts > 0
    respect_permanent: bool = True

    # If True, use Retry-After (header or ThrottlingError) when available
    respect_retry_after: bool = True

    # Optional set of exception types to always retry (overrides classification)
    always_retry: set[type[Exception]] = field(default_factory=set)

    # Optional set of exception types to never retry (overrides classification)
    never_retry: set[type[Exception]] = field(default_factory=set)

    def __post_init__(self):
        """Ensure proper types from YAML/env vars."""
        self.max_attempts = int(self.max_attempts)
        self.base_delay = float(self.base_delay)
        self.max_delay = float(self.max_delay)
        self.exponential_base = float(self.exponential_base)
        self.mode = str(self.mode).lower()
        self.retry_on_status_codes = {int(code) for code in self.retry_on_status_codes}
        self.respect_permanent = to_bool(self.respect_permanent)
        self.respect_retry_after = to_bool(self.respect_retry_after)

    def get_delay(
        self,
        attempt: int,
        error: Exception | None = None,
        retry_after: float | None = None,
    ) -> float:
        """
        Calculate delay with equal jitter to prevent thundering herd.

        Args:
            attempt: 0-indexed attempt number
            error: Optional exception to check for retry_after
            retry_after: Server-provided delay parsed from response headers

        Returns:
            Delay in seconds
        """
        if self.respect_retry_after:
            if retry_after is not None:
                return min(retry_after, self.max_delay)
            if isinstance(error, ThrottlingError) and error.retry_after:
                return min(error.retry_after, self.max_delay)

        if self.mode == RETRY_MODE_FIXED:
            base_delay = self.base_delay
        else:
            base_delay = self.base_delay * (self.exponential_base**attempt)

        # Equal jitter: half fixed, half random
        jitter = random.uniform(0, base_delay / 2)
        delay = (base_delay / 2) + jitter

        return min(delay, self.max_delay)

    def should_retry(self, error: Exception, attempt: int) -> bool:
        """
        Determine if error should be retried.

        Args:
            error: The exception that occurred
            attempt: 0-indexed current attempt

        Returns:
            True if should retry
        """
        if attempt >= self.max_attempts - 1:
            return False

        if self.never_retry and isinstance(error, tuple(self.never_retry)):
            return False

        if self.always_retry and isinstance(error, tuple(self.always_retry)):
            return True

        if isinstance(error, SdkError):
            if self.respect_permanent and not error.is_retryable:
                return False
            return error.is_retryable

        category = classify_exception(error)
        if self.respect_permanent and category == ErrorCategory.PERMANENT:
            return False

        return category in (
            ErrorCategory.TRANSIENT,
            ErrorCategory.AUTH,
            ErrorCategory.UNKNOWN,
        )

    def should_retry_status(self, status: int, attempt: int) -> bool:
        """True if a response with this status should be re-sent."""
        if attempt >= self.max_attempts - 1:
            return False
        return status in self.retry_on_status_codes


# Default configurations
DEFAULT_RETRY = RetryConfig()
AUTH_RETRY = RetryConfig(max_attempts=2, base_delay=0.5)


@dataclass
class RetryStats:
    """Statistics from a retry operation."""

    attempts: int = 0
    total_delay: float = 0.0
    final_error: Exception | None = None
    final_status: int | None = None
    success: bool = False

    @property
    def retried(self) -> bool:
        """Whether any retries occurred."""
        return self.attempts > 1


def with_retry(
    config: RetryConfig | None = None,
    on_auth_error: Callable[[], None] | None = None,
    on_retry: Callable[[Exception, int, float], None] | None = None,
    wrap_errors: bool = True,
):
    """
    Decorator for retrying functions with intelligent backoff.

    Args:
        config: Retry configuration (defaults to DEFAULT_RETRY)
        on_auth_error: Callback when auth error detected (e.g., clear token cache)
        on_retry: Callback before each retry (error, attempt, delay)
        wrap_errors: If True, wrap unknown exceptions in SdkError

    Usage:
        @with_retry(config=AUTH_RETRY, on_auth_error=cache.clear)
        def fetch_token():
            ...
    """
    if config is None:
        config = DEFAULT_RETRY

    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            last_error: Exception | None = None

            for attempt in range(config.max_attempts):
                try:
                    result = func(*args, **kwargs)

                    if attempt > 0:
                        logger.info(
                            "Retry succeeded for %s after %d attempts",
                            func.__name__,
                            attempt + 1,
                            extra={
                                "operation": func.__name__,
                                "attempt": attempt + 1,
                                "total_attempts": config.max_attempts,
                            },
                        )

                    return result

                except Exception as e:
                    last_error = e
                    wrapped = (
                        wrap_exception(e)
                        if wrap_errors and not isinstance(e, SdkError)
                        else e
                    )
                    error_category = _extract_error_category(wrapped)

                    # Handle auth errors - refresh before retry decision
                    if isinstance(wrapped, SdkError) and wrapped.should_refresh_auth:
                        logger.info(
                            "Auth error detected for %s, refreshing credentials",
                            func.__name__,
                            extra={
                                "operation": func.__name__,
                                "error_category": error_category,
                            },
                        )
                        if on_auth_error:
                            on_auth_error()

                    if not config.should_retry(wrapped, attempt):
                        _log_retry_failure(func.__name__, wrapped, e, error_category, config)
                        if wrap_errors and wrapped is not e:
                            raise wrapped from e
                        raise

                    delay = config.get_delay(attempt, wrapped)
                    _log_retry_attempt(
                        func.__name__, attempt, config, error_category, delay, e, wrapped
                    )

                    if on_retry:
                        _safe_invoke_on_retry(on_retry, wrapped, attempt, delay, func.__name__)

                    time.sleep(delay)

            # Should not reach here, but just in case
            if last_error:
                raise last_error

        return wrapper

    return decorator


def with_retry_async(
    config: RetryConfig | None = None,
    on_auth_error: Callable[[], None] | Callable[[], Awaitable[None]] | None = None,
    on_retry: Callable[[Exception, int, float], None] | None = None,
    wrap_errors: bool = True,
):
    """
    Decorator for retrying async functions with intelligent backoff.

    Async version of with_retry. Uses asyncio.sleep() and supports async callbacks.
    """
    if config is None:
        config = DEFAULT_RETRY

    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            last_error: Exception | None = None

            for attempt in range(config.max_attempts):
                try:
                    result = await func(*args, **kwargs)

                    if attempt > 0:
                        logger.info(
                            "Retry succeeded for %s after %d attempts",
                            func.__name__,
                            attempt + 1,
                            extra={
                                "operation": func.__name__,
                                "attempt": attempt + 1,
                                "total_attempts": config.max_attempts,
                            },
                        )

                    return result

                except Exception as e:
                    last_error = e
                    wrapped = (
                        wrap_exception(e)
                        if wrap_errors and not isinstance(e, SdkError)
                        else e
                    )
                    error_category = _extract_error_category(wrapped)

                    if isinstance(wrapped, SdkError) and wrapped.should_refresh_auth:
                        logger.info(
                            "Auth error detected for %s, refreshing credentials",
                            func.__name__,
                            extra={
                                "operation": func.__name__,
                                "error_category": error_category,
                            },
                        )
                        if on_auth_error:
                            # Support async auth callbacks
                            if inspect.iscoroutinefunction(on_auth_error):
                                await on_auth_error()
                            else:
                                on_auth_error()

                    if not config.should_retry(wrapped, attempt):
                        _log_retry_failure(func.__name__, wrapped, e, error_category, config)
                        if wrap_errors and wrapped is not e:
                            raise wrapped from e
                        raise

                    delay = config.get_delay(attempt, wrapped)
                    _log_retry_attempt(
                        func.__name__, attempt, config, error_category, delay, e, wrapped
                    )

                    if on_retry:
                        _safe_invoke_on_retry(on_retry, wrapped, attempt, delay, func.__name__)

                    await asyncio.sleep(delay)

            if last_error:
                raise last_error

        return wrapper

    return decorator


__all__ = [
    "AUTH_RETRY",
    "DEFAULT_RETRY",
    "DEFAULT_RETRY_STATUS_CODES",
    "RETRY_MODE_EXPONENTIAL",
    "RETRY_MODE_FIXED",
    "RetryConfig",
    "RetryStats",
    "with_retry",
    "with_retry_async",
]
