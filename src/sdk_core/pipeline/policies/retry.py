"""
Retry stage of the pipeline.

Sits after the per-call policies and before authentication, so every
attempt re-runs the per-retry policies and the transport with the same
Request object (same client request id, same per-call headers).
"""

import asyncio
import dataclasses
import logging
import time

from sdk_core.errors.exceptions import SdkError, ThrottlingError, classify_exception
from sdk_core.http.headers import parse_retry_after
from sdk_core.http.request import Request
from sdk_core.http.response import Response
from sdk_core.pipeline.policies.base import AsyncHTTPPolicy, HTTPPolicy
from sdk_core.resilience.retry import DEFAULT_RETRY, RetryConfig, RetryStats

logger = logging.getLogger(__name__)

RETRY_STATS_KEY = "retry_stats"
RETRY_MAX_ATTEMPTS_KEY = "retry_max_attempts"


class _RetryPolicyBase:
    """Decision and bookkeeping shared by the sync and async retry policies."""

    def __init__(self, config: RetryConfig | None = None):
        super().__init__()
        self.config = config or DEFAULT_RETRY

    def _config_for(self, request: Request) -> RetryConfig:
        override = request.context.get(RETRY_MAX_ATTEMPTS_KEY)
        if override is None:
            return self.config
        return dataclasses.replace(self.config, max_attempts=int(override))

    @staticmethod
    def _start_stats(request: Request) -> RetryStats:
        stats = RetryStats()
        request.context[RETRY_STATS_KEY] = stats
        return stats

    def _response_delay(
        self, config: RetryConfig, response: Response, attempt: int
    ) -> tuple[float, str]:
        retry_after = parse_retry_after(response.headers) if config.respect_retry_after else None
        delay = config.get_delay(attempt, retry_after=retry_after)
        return delay, "server" if retry_after is not None else "backoff"

    def _exception_delay(
        self, config: RetryConfig, error: Exception, attempt: int
    ) -> tuple[float, str]:
        delay = config.get_delay(attempt, error)
        server = (
            config.respect_retry_after
            and isinstance(error, ThrottlingError)
            and error.retry_after
        )
        return delay, "server" if server else "backoff"

    @staticmethod
    def _log_status_retry(
        request: Request,
        response: Response,
        attempt: int,
        config: RetryConfig,
        delay: float,
        source: str,
    ) -> None:
        logger.warning(
            "Retryable status %d for %s, will retry",
            response.status,
            request.method,
            extra={
                "http_method": request.method,
                "http_status": response.status,
                "attempt": attempt + 1,
                "max_attempts": config.max_attempts,
                "delay_seconds": round(delay, 2),
                "delay_source": source,
            },
        )

    @staticmethod
    def _log_exception_retry(
        request: Request,
        error: Exception,
        attempt: int,
        config: RetryConfig,
        delay: float,
        source: str,
    ) -> None:
        category = classify_exception(error)
        logger.warning(
            "Retryable error for %s, will retry: %s",
            request.method,
            str(error)[:200],
            extra={
                "http_method": request.method,
                "error_category": category.value,
                "error_type": type(error).__name__,
                "attempt": attempt + 1,
                "max_attempts": config.max_attempts,
                "delay_seconds": round(delay, 2),
                "delay_source": source,
            },
        )

    @staticmethod
    def _log_give_up(request: Request, error: Exception, attempt: int) -> None:
        level = logging.WARNING
        if isinstance(error, SdkError) and not error.is_retryable:
            level = logging.DEBUG
        logger.log(
            level,
            "Not retrying %s after attempt %d: %s",
            request.method,
            attempt + 1,
            str(error)[:200],
            extra={
                "http_method": request.method,
                "attempt": attempt + 1,
                "error_category": classify_exception(error).value,
                "error_type": type(error).__name__,
            },
        )


class RetryPolicy(_RetryPolicyBase, HTTPPolicy):
    """
    Re-sends the request on retriable statuses and transient exceptions.

    When attempts run out on a retriable status the last response is
    returned; deciding whether it is an error is left to the caller's
    response classifier. Exceptions are re-raised unchanged.
    """

    def send(self, request: Request) -> Response:
        config = self._config_for(request)
        stats = self._start_stats(request)

        for attempt in range(config.max_attempts):
            stats.attempts = attempt + 1
            try:
                response = self.next.send(request)
            except Exception as e:
                stats.final_error = e
                if not config.should_retry(e, attempt):
                    self._log_give_up(request, e, attempt)
                    raise
                delay, source = self._exception_delay(config, e, attempt)
                self._log_exception_retry(request, e, attempt, config, delay, source)
            else:
                stats.final_status = response.status
                stats.final_error = None
                if not config.should_retry_status(response.status, attempt):
                    stats.success = response.status not in config.retry_on_status_codes
                    return response
                delay, source = self._response_delay(config, response, attempt)
                self._log_status_retry(request, response, attempt, config, delay, source)

            stats.total_delay += delay
            time.sleep(delay)

        # max_attempts < 1: nothing was sent
        raise ValueError(f"max_attempts must be at least 1, got {config.max_attempts}")


class AsyncRetryPolicy(_RetryPolicyBase, AsyncHTTPPolicy):
    """Asyncio twin of RetryPolicy; sleeps with asyncio.sleep."""

    async def send(self, request: Request) -> Response:
        config = self._config_for(request)
        stats = self._start_stats(request)

        for attempt in range(config.max_attempts):
            stats.attempts = attempt + 1
            try:
                response = await self.next.send(request)
            except Exception as e:
                stats.final_error = e
                if not config.should_retry(e, attempt):
                    self._log_give_up(request, e, attempt)
                    raise
                delay, source = self._exception_delay(config, e, attempt)
                self._log_exception_retry(request, e, attempt, config, delay, source)
            else:
                stats.final_status = response.status
                stats.final_error = None
                if not config.should_retry_status(response.status, attempt):
                    stats.success = response.status not in config.retry_on_status_codes
                    return response
                delay, source = self._response_delay(config, response, attempt)
                self._log_status_retry(request, response, attempt, config, delay, source)

            stats.total_delay += delay
            await asyncio.sleep(delay)

        raise ValueError(f"max_attempts must be at least 1, got {config.max_attempts}")


__all__ = ["AsyncRetryPolicy", "RETRY_MAX_ATTEMPTS_KEY", "RETRY_STATS_KEY", "RetryPolicy"]
