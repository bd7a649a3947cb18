"""
Unified exception hierarchy for sdk_core.

Provides typed exceptions with retry classification so that the retry
stage, the service helpers and callers agree on what is worth retrying.
"""

import json
from typing import TYPE_CHECKING, Any

from sdk_core.http.headers import HttpHeader, parse_retry_after
from sdk_core.types import ErrorCategory

if TYPE_CHECKING:
    from sdk_core.http.response import Response


class SdkError(Exception):
    """
    Base exception for all sdk_core errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for retry decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        return self.category in (
            ErrorCategory.TRANSIENT,
            ErrorCategory.AUTH,
            ErrorCategory.UNKNOWN,
        )

    @property
    def should_refresh_auth(self) -> bool:
        return self.category == ErrorCategory.AUTH

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Authentication Errors
# =============================================================================


class AuthError(SdkError):
    """Credential could not be acquired or was rejected."""

    category = ErrorCategory.AUTH


# =============================================================================
# Network/Connection Errors (Transient)
# =============================================================================


class TransientError(SdkError):
    """Base class for transient/retriable errors."""

    category = ErrorCategory.TRANSIENT


class ThrottlingError(TransientError):
    """Rate limited (429) - should back off."""

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        self.retry_after = retry_after  # Seconds to wait if provided


class TimeoutError(TransientError):
    """Transport timed out before a response arrived."""

    pass


class ConnectionError(TransientError):
    """Transport could not reach the service."""

    pass


# =============================================================================
# Permanent Errors (Don't Retry)
# =============================================================================


class PermanentError(SdkError):
    """Base class for permanent/non-retriable errors."""

    category = ErrorCategory.PERMANENT


class PagingError(PermanentError):
    """Service returned a continuation token that would loop forever."""

    pass


# =============================================================================
# Service Errors
# =============================================================================


class RequestFailedError(SdkError):
    """
    Service answered with a status the caller does not accept.

    The category follows the status code, so a 503 that survived the
    retry stage is still reported as transient.
    """

    def __init__(
        self,
        message: str,
        status: int,
        error_code: str | None = None,
        response: "Response | None" = None,
        retry_after: float | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        self.status = status
        self.error_code = error_code
        self.response = response
        self.retry_after = retry_after
        self.category = classify_http_status(status)


# =============================================================================
# Error Classification Utilities
# =============================================================================

# Markers for string-based detection (fallback for non-SdkError exceptions)
AUTH_ERROR_MARKERS = frozenset(
    {
        "401",
        "unauthorized",
        "authentication",
        "token expired",
        "invalid token",
        "access token",
        "aadsts700082",
        "aadsts70043",  # Azure AD token expiry codes
    }
)

TRANSIENT_ERROR_MARKERS = frozenset(
    {
        "408",
        "429",
        "503",
        "502",
        "504",
        "timeout",
        "connection",
        "throttl",
        "rate limit",
        "temporarily unavailable",
        "service unavailable",
        "gateway",
    }
)

MAX_ERROR_CONTENT_CHARS = 500


def is_auth_error(exc: Exception) -> bool:
    """Check if exception is authentication-related."""
    if isinstance(exc, SdkError):
        return exc.category == ErrorCategory.AUTH

    error_str = str(exc).lower()
    return any(marker in error_str for marker in AUTH_ERROR_MARKERS)


def is_transient_error(exc: Exception) -> bool:
    """Check if exception is transient (retriable)."""
    if isinstance(exc, SdkError):
        return exc.category == ErrorCategory.TRANSIENT

    error_str = str(exc).lower()
    return any(marker in error_str for marker in TRANSIENT_ERROR_MARKERS)


def is_retryable_error(exc: Exception) -> bool:
    """
    Check if exception should be retried.

    Retryable errors include:
    - Transient errors (connection, timeout, 408/429/5xx)
    - Auth errors (after token refresh)
    - Unknown errors (conservative retry)
    """
    if isinstance(exc, SdkError):
        return exc.is_retryable

    category = classify_exception(exc)
    return category in (
        ErrorCategory.TRANSIENT,
        ErrorCategory.AUTH,
        ErrorCategory.UNKNOWN,
    )


def classify_http_status(status_code: int) -> ErrorCategory:
    """Classify HTTP status code into error category."""
    if 200 <= status_code < 300:
        return ErrorCategory.UNKNOWN  # Not an error

    # Auth redirects (302 = redirect to login page)
    if status_code in (302, 401):
        return ErrorCategory.AUTH

    if status_code in (408, 429):
        return ErrorCategory.TRANSIENT

    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT

    if status_code >= 500:
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN


def classify_exception(exc: Exception) -> ErrorCategory:
    """Classify an exception into error category."""
    if isinstance(exc, SdkError):
        return exc.category

    exc_type = type(exc).__name__.lower()
    exc_str = str(exc).lower()

    connection_markers = (
        "connectionerror",
        "connection refused",
        "connection reset",
        "connection aborted",
        "no route to host",
        "network unreachable",
        "name resolution",
        "dns",
        "socket",
        "broken pipe",
    )
    if any(m in exc_type or m in exc_str for m in connection_markers):
        return ErrorCategory.TRANSIENT

    if "timeout" in exc_type or "timeout" in exc_str:
        return ErrorCategory.TRANSIENT

    auth_markers = (
        "302",
        "401",
        "unauthorized",
        "authentication",
        "token expired",
        "invalid token",
    )
    if any(m in exc_str for m in auth_markers):
        return ErrorCategory.AUTH

    if "429" in exc_str or "throttl" in exc_str or "rate limit" in exc_str:
        return ErrorCategory.TRANSIENT

    if "503" in exc_str or "502" in exc_str or "504" in exc_str:
        return ErrorCategory.TRANSIENT

    if "403" in exc_str or "forbidden" in exc_str or "access denied" in exc_str:
        return ErrorCategory.PERMANENT

    if "404" in exc_str or "not found" in exc_str:
        return ErrorCategory.PERMANENT

    return ErrorCategory.UNKNOWN


def wrap_exception(
    exc: Exception,
    default_class: type = SdkError,
    context: dict | None = None,
) -> SdkError:
    """Wrap a generic exception in appropriate SdkError subclass."""
    if isinstance(exc, SdkError):
        if context:
            exc.context.update(context)
        return exc

    category = classify_exception(exc)
    exc_str = str(exc).lower()
    context = context or {}

    if "timeout" in exc_str:
        context["error_type"] = "timeout"
    elif "429" in exc_str or "throttl" in exc_str:
        context["error_type"] = "throttling"
    elif "503" in exc_str:
        context["error_type"] = "service_unavailable"
    elif "404" in exc_str or "not found" in exc_str:
        context["error_type"] = "not_found"
    elif "403" in exc_str or "forbidden" in exc_str:
        context["error_type"] = "forbidden"
    elif "expired" in exc_str:
        context["error_type"] = "token_expired"

    if category == ErrorCategory.AUTH:
        return AuthError(str(exc), cause=exc, context=context)

    if category == ErrorCategory.TRANSIENT:
        if "429" in exc_str or "throttl" in exc_str:
            return ThrottlingError(str(exc), cause=exc, context=context)
        return TransientError(str(exc), cause=exc, context=context)

    if category == ErrorCategory.PERMANENT:
        return PermanentError(str(exc), cause=exc, context=context)

    return default_class(str(exc), cause=exc, context=context)


def _extract_error_code(response: "Response") -> str | None:
    """Error code from the x-ms-error-code header or an {"error": {"code"}} body."""
    code = response.headers.get(HttpHeader.ERROR_CODE)
    if code:
        return code

    if not response.body:
        return None
    try:
        payload: Any = json.loads(response.body)
    except (ValueError, UnicodeDecodeError):
        return None

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("code"):
            return str(error["code"])
    return None


def error_from_response(response: "Response") -> RequestFailedError:
    """
    Build a RequestFailedError describing an unaccepted response.

    Message layout:
        Service request failed.
        Status: 404 (Not Found)
        ErrorCode: KeyNotFound

        Content:
        {...}
    """
    error_code = _extract_error_code(response)
    lines = [
        "Service request failed.",
        f"Status: {response.status} ({response.reason or ''})",
    ]
    if error_code:
        lines.append(f"ErrorCode: {error_code}")

    content = response.text() if response.body else ""
    if content:
        if len(content) > MAX_ERROR_CONTENT_CHARS:
            content = content[:MAX_ERROR_CONTENT_CHARS] + "..."
        lines.extend(["", "Content:", content])

    return RequestFailedError(
        "\n".join(lines),
        status=response.status,
        error_code=error_code,
        response=response,
        retry_after=parse_retry_after(response.headers),
        context={"http_status": response.status, "error_code": error_code},
    )
