"""
Error classification and exception hierarchy.

Provides:
- SdkError hierarchy for typed exceptions
- RequestFailedError for unaccepted service responses
- Classification utilities for retry decisions
"""

from sdk_core.errors.exceptions import (
    AuthError,
    ConnectionError,
    PagingError,
    PermanentError,
    RequestFailedError,
    SdkError,
    ThrottlingError,
    TimeoutError,
    TransientError,
    classify_exception,
    classify_http_status,
    error_from_response,
    is_auth_error,
    is_retryable_error,
    is_transient_error,
    wrap_exception,
)
from sdk_core.types import ErrorCategory

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "SdkError",
    "AuthError",
    "TransientError",
    "PermanentError",
    # Concrete errors
    "ThrottlingError",
    "TimeoutError",
    "ConnectionError",
    "PagingError",
    "RequestFailedError",
    # Classification utilities
    "is_auth_error",
    "is_transient_error",
    "is_retryable_error",
    "classify_http_status",
    "classify_exception",
    "wrap_exception",
    "error_from_response",
]
