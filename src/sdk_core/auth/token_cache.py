"""
Thread-safe bearer token cache with expiration tracking.

Tokens are cached per scope key (the space-joined scopes a token was
requested for). A token is considered stale REFRESH_BEFORE_EXPIRY_MINS
before the expiry the credential reported; when a credential gives no
expiry the token is refreshed after TOKEN_REFRESH_MINS of age.

Example:
    >>> cache = TokenCache()
    >>> cache.set("https://vault.azure.net/.default", "eyJ0eXAi...", expires_on=1767225600)
    >>> token = cache.get("https://vault.azure.net/.default")
"""

import threading
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

# Token timing constants
TOKEN_REFRESH_MINS = 50  # Age fallback when expiry is unknown (60 min Entra tokens)
REFRESH_BEFORE_EXPIRY_MINS = 5


def _to_datetime(expires_on: datetime | int | float | None) -> datetime | None:
    if expires_on is None:
        return None
    if isinstance(expires_on, datetime):
        if expires_on.tzinfo is None:
            return expires_on.replace(tzinfo=UTC)
        return expires_on
    # azure-core AccessToken.expires_on is epoch seconds
    return datetime.fromtimestamp(float(expires_on), tz=UTC)


@dataclass
class CachedToken:
    """
    Token with acquisition timestamp and optional expiry.

    Attributes:
        value: The access token string
        acquired_at: UTC timestamp when token was cached
        expires_on: UTC expiry reported by the credential, if any
    """

    value: str
    acquired_at: datetime
    expires_on: datetime | None = None

    def is_valid(
        self,
        refresh_before_expiry_mins: int = REFRESH_BEFORE_EXPIRY_MINS,
        max_age_mins: int = TOKEN_REFRESH_MINS,
    ) -> bool:
        now = datetime.now(UTC)
        if self.expires_on is not None:
            return now < self.expires_on - timedelta(minutes=refresh_before_expiry_mins)
        return now - self.acquired_at < timedelta(minutes=max_age_mins)


class TokenCache:
    """
    Thread-safe cache for bearer tokens.

    All operations (get/set/clear) are protected by a threading.Lock so one
    cache can be shared between a sync policy and worker threads.
    """

    def __init__(self):
        self._tokens: dict[str, CachedToken] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        """Return the cached token for key if it is still valid, else None."""
        with self._lock:
            cached = self._tokens.get(key)
            if cached and cached.is_valid():
                return cached.value
            return None

    def set(
        self,
        key: str,
        token: str,
        expires_on: datetime | int | float | None = None,
    ) -> None:
        with self._lock:
            self._tokens[key] = CachedToken(
                value=token,
                acquired_at=datetime.now(UTC),
                expires_on=_to_datetime(expires_on),
            )

    def clear(self, key: str | None = None) -> None:
        """
        Clear one or all cached tokens.

        Args:
            key: Specific scope key to clear. If None, clears all tokens.
        """
        with self._lock:
            if key:
                self._tokens.pop(key, None)
            else:
                self._tokens.clear()

    def get_age(self, key: str) -> timedelta | None:
        """Age of the cached token for diagnostics, or None if not cached."""
        with self._lock:
            cached = self._tokens.get(key)
            if cached:
                return datetime.now(UTC) - cached.acquired_at
            return None


__all__ = [
    "CachedToken",
    "REFRESH_BEFORE_EXPIRY_MINS",
    "TOKEN_REFRESH_MINS",
    "TokenCache",
]
