"""Credential construction and bearer token caching."""

from sdk_core.auth.credentials import (
    AUTH_METHODS,
    build_async_credential,
    build_credential,
)
from sdk_core.auth.token_cache import (
    REFRESH_BEFORE_EXPIRY_MINS,
    TOKEN_REFRESH_MINS,
    CachedToken,
    TokenCache,
)

__all__ = [
    "AUTH_METHODS",
    "CachedToken",
    "REFRESH_BEFORE_EXPIRY_MINS",
    "TOKEN_REFRESH_MINS",
    "TokenCache",
    "build_async_credential",
    "build_credential",
]
