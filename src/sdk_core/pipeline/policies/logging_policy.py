"""HTTP request/response logging with URL and header redaction."""

import logging
import time
from collections.abc import Iterable

from sdk_core.http.headers import HttpHeader
from sdk_core.http.request import Request
from sdk_core.http.response import Response
from sdk_core.logging.formatters import sanitize_url
from sdk_core.logging.utilities import log_exception, log_with_context
from sdk_core.pipeline.policies.base import SansIOHTTPPolicy

logger = logging.getLogger(__name__)

REDACTED = "REDACTED"

DEFAULT_ALLOWED_HEADERS = frozenset(
    h.lower()
    for h in (
        HttpHeader.CLIENT_REQUEST_ID,
        HttpHeader.SERVICE_REQUEST_ID,
        HttpHeader.CORRELATION_REQUEST_ID,
        "x-ms-return-client-request-id",
        "traceparent",
        "Accept",
        "Cache-Control",
        "Connection",
        "Content-Length",
        "Content-Type",
        "Date",
        "ETag",
        "Expires",
        "If-Match",
        "If-Modified-Since",
        "If-None-Match",
        "If-Unmodified-Since",
        "Last-Modified",
        "Pragma",
        "Request-Id",
        "Retry-After",
        "retry-after-ms",
        "Server",
        "Transfer-Encoding",
        "User-Agent",
        "WWW-Authenticate",
    )
)

_START_KEY = "_logging_start"


class HttpLoggingPolicy(SansIOHTTPPolicy):
    """
    Logs each HTTP attempt.

    Requests are logged at DEBUG. Responses are logged at DEBUG when the
    status is below 400 and at WARNING otherwise. Header values not on the
    allowlist are replaced with REDACTED and sensitive query parameters are
    masked.
    """

    def __init__(
        self,
        allowed_header_names: Iterable[str] | None = None,
        log_headers: bool = True,
    ):
        self.allowed_header_names = set(DEFAULT_ALLOWED_HEADERS)
        self.allowed_header_names.update(h.lower() for h in allowed_header_names or [])
        self.log_headers = log_headers

    def redact_headers(self, headers) -> dict[str, str]:
        return {
            name: value if name.lower() in self.allowed_header_names else REDACTED
            for name, value in headers.items()
        }

    def on_request(self, request: Request) -> None:
        request.context[_START_KEY] = time.perf_counter()
        if not logger.isEnabledFor(logging.DEBUG):
            return
        fields = {
            "http_method": request.method,
            "http_url": sanitize_url(request.url),
            "client_request_id": request.headers.get(HttpHeader.CLIENT_REQUEST_ID),
        }
        if self.log_headers:
            fields["http_headers"] = self.redact_headers(request.headers)
        log_with_context(logger, logging.DEBUG, "Request: %s", request.method, **fields)

    def _duration_ms(self, request: Request) -> float | None:
        start = request.context.pop(_START_KEY, None)
        if start is None:
            return None
        return round((time.perf_counter() - start) * 1000, 2)

    def on_response(self, request: Request, response: Response) -> None:
        level = logging.DEBUG if response.status < 400 else logging.WARNING
        duration_ms = self._duration_ms(request)
        if not logger.isEnabledFor(level):
            return
        fields = {
            "http_method": request.method,
            "http_url": sanitize_url(request.url),
            "http_status": response.status,
            "duration_ms": duration_ms,
            "client_request_id": request.headers.get(HttpHeader.CLIENT_REQUEST_ID),
            "service_request_id": response.headers.get(HttpHeader.SERVICE_REQUEST_ID),
        }
        if self.log_headers:
            fields["http_headers"] = self.redact_headers(response.headers)
        log_with_context(
            logger, level, "Response: %d %s", response.status, response.reason or "", **fields
        )

    def on_exception(self, request: Request, exc: Exception) -> None:
        log_exception(
            logger,
            exc,
            "Request failed: %s",
            request.method,
            level=logging.WARNING,
            include_traceback=False,
            http_method=request.method,
            http_url=sanitize_url(request.url),
            duration_ms=self._duration_ms(request),
        )


__all__ = ["DEFAULT_ALLOWED_HEADERS", "HttpLoggingPolicy", "REDACTED"]
