"""Retry configuration and backoff shared by policies and decorators."""

from sdk_core.resilience.retry import (
    AUTH_RETRY,
    DEFAULT_RETRY,
    RetryConfig,
    RetryStats,
    with_retry,
    with_retry_async,
)

__all__ = [
    "AUTH_RETRY",
    "DEFAULT_RETRY",
    "RetryConfig",
    "RetryStats",
    "with_retry",
    "with_retry_async",
]
