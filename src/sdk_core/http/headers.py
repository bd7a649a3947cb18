"""Well-known header names and header value parsers."""

from collections.abc import Mapping
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime


class HttpHeader:
    """Header names and canned values shared by policies and service helpers."""

    ACCEPT = "Accept"
    AUTHORIZATION = "Authorization"
    CONTENT_TYPE = "Content-Type"
    USER_AGENT = "User-Agent"
    ETAG = "ETag"
    IF_MATCH = "If-Match"
    IF_NONE_MATCH = "If-None-Match"
    LINK = "Link"
    WWW_AUTHENTICATE = "WWW-Authenticate"

    CLIENT_REQUEST_ID = "x-ms-client-request-id"
    SERVICE_REQUEST_ID = "x-ms-request-id"
    CORRELATION_REQUEST_ID = "x-ms-correlation-request-id"
    CORRELATION_CONTEXT = "correlation-context"
    ERROR_CODE = "x-ms-error-code"

    RETRY_AFTER = "Retry-After"
    RETRY_AFTER_MS = "retry-after-ms"
    MS_RETRY_AFTER_MS = "x-ms-retry-after-ms"

    TRACEPARENT = "traceparent"
    TRACESTATE = "tracestate"

    JSON = "application/json"
    JSON_UTF8 = "application/json; charset=utf-8"


def parse_retry_after(headers: Mapping[str, str]) -> float | None:
    """
    Seconds the server asked us to wait, or None.

    Millisecond headers win over Retry-After. Retry-After may be either a
    number of seconds or an HTTP-date.
    """
    for name in (HttpHeader.RETRY_AFTER_MS, HttpHeader.MS_RETRY_AFTER_MS):
        value = headers.get(name)
        if value:
            try:
                return max(float(value) / 1000.0, 0.0)
            except ValueError:
                continue

    value = headers.get(HttpHeader.RETRY_AFTER)
    if not value:
        return None

    try:
        return max(float(value), 0.0)
    except ValueError:
        pass

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max((when - datetime.now(timezone.utc)).total_seconds(), 0.0)


__all__ = ["HttpHeader", "parse_retry_after"]
