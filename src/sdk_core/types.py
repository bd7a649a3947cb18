"""
Core types and protocols used across modules.

This module provides base types, enums, and protocol definitions that are
shared across the pipeline, policies and service helpers to keep error
handling and credential access consistent.
"""

from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from azure.core.credentials import AccessToken

    from sdk_core.http.response import Response


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures that should retry with backoff
                   (e.g., network timeouts, 408/429/503 responses)
        AUTH: Authentication failures requiring credential refresh
              (e.g., 401 responses, expired tokens)
        PERMANENT: Non-retriable failures that won't succeed on retry
                   (e.g., 404, validation errors, paging loops)
        UNKNOWN: Unclassified errors, may retry conservatively
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class ResponseClassifier(Protocol):
    """
    Decides whether a response returned by the pipeline is an error.

    Service helpers call this after the retry stage has given up, so a
    response that was retried and still failed reaches the classifier.
    """

    def is_error(self, response: "Response") -> bool:
        ...


class TokenProvider(Protocol):
    """
    Protocol for synchronous credentials.

    Matches azure-identity credentials (DefaultAzureCredential,
    ClientSecretCredential, ...).
    """

    def get_token(self, *scopes: str, **kwargs: Any) -> "AccessToken":
        """
        Get an access token for the specified scopes.

        Raises:
            azure.core.exceptions.ClientAuthenticationError: If acquisition fails
        """
        ...


class AsyncTokenProvider(Protocol):
    """Protocol for azure.identity.aio credentials."""

    async def get_token(self, *scopes: str, **kwargs: Any) -> "AccessToken":
        ...

    async def close(self) -> None:
        ...


__all__ = [
    "AsyncTokenProvider",
    "ErrorCategory",
    "ResponseClassifier",
    "TokenProvider",
]
