"""
Bearer token authentication policies.

Tokens come from an azure-identity credential, are cached per scope set in
a TokenCache, and are refreshed once when the service answers 401 with a
WWW-Authenticate challenge.
"""

import asyncio
import inspect
import logging

from azure.core.exceptions import ClientAuthenticationError

from sdk_core.auth.token_cache import TokenCache
from sdk_core.errors.exceptions import AuthError
from sdk_core.http.headers import HttpHeader
from sdk_core.http.request import Request
from sdk_core.http.response import Response
from sdk_core.pipeline.policies.base import AsyncHTTPPolicy, HTTPPolicy
from sdk_core.resilience.retry import AUTH_RETRY, with_retry, with_retry_async
from sdk_core.types import AsyncTokenProvider, TokenProvider

logger = logging.getLogger(__name__)


class _BearerTokenPolicyBase:
    def __init__(
        self,
        credential,
        *scopes: str,
        cache: TokenCache | None = None,
        enforce_https: bool = True,
    ):
        super().__init__()
        if credential is None:
            raise ValueError("credential is required")
        if not scopes:
            raise ValueError("at least one scope is required")
        self._credential = credential
        self._scopes = scopes
        self._cache_key = " ".join(scopes)
        self._cache = cache or TokenCache()
        self._enforce_https = enforce_https

    @property
    def scopes(self) -> tuple[str, ...]:
        return self._scopes

    def _check_https(self, request: Request) -> None:
        if self._enforce_https and request.uri.scheme.lower() != "https":
            raise AuthError(
                "Bearer token authentication is not permitted for non-TLS protected "
                f"(non-https) URLs: {request.uri.scheme}://{request.uri.host}"
            )

    def _clear_cached_token(self) -> None:
        self._cache.clear(self._cache_key)

    def _store(self, access_token) -> str:
        self._cache.set(self._cache_key, access_token.token, expires_on=access_token.expires_on)
        logger.debug(
            "Acquired access token",
            extra={
                "scopes": self._cache_key,
                "credential_type": type(self._credential).__name__,
            },
        )
        return access_token.token

    def _auth_error(self, e: Exception) -> AuthError:
        return AuthError(
            f"Failed to acquire token for scopes: {self._cache_key}",
            cause=e,
            context={
                "scopes": self._cache_key,
                "credential_type": type(self._credential).__name__,
            },
        )

    @staticmethod
    def _is_challenge(response: Response) -> bool:
        return response.status == 401 and HttpHeader.WWW_AUTHENTICATE in response.headers

    @staticmethod
    def _authorize(request: Request, token: str) -> None:
        request.headers[HttpHeader.AUTHORIZATION] = f"Bearer {token}"


class BearerTokenCredentialPolicy(_BearerTokenPolicyBase, HTTPPolicy):
    """
    Adds ``Authorization: Bearer <token>`` to each request.

    Args:
        credential: azure-identity credential (TokenProvider)
        *scopes: Scopes requested from the credential
        cache: Optional shared TokenCache
        enforce_https: Reject non-https URLs with AuthError (default True)
    """

    def __init__(
        self,
        credential: TokenProvider,
        *scopes: str,
        cache: TokenCache | None = None,
        enforce_https: bool = True,
    ):
        super().__init__(credential, *scopes, cache=cache, enforce_https=enforce_https)
        self._fetch_token = with_retry(
            config=AUTH_RETRY,
            on_auth_error=self._clear_cached_token,
        )(self._acquire_token)

    def _acquire_token(self) -> str:
        try:
            access_token = self._credential.get_token(*self._scopes)
        except ClientAuthenticationError as e:
            raise self._auth_error(e) from e
        return self._store(access_token)

    def _get_token(self) -> str:
        cached = self._cache.get(self._cache_key)
        if cached:
            return cached
        return self._fetch_token()

    def send(self, request: Request) -> Response:
        self._check_https(request)
        self._authorize(request, self._get_token())
        response = self.next.send(request)

        if self._is_challenge(response):
            logger.info(
                "Received authentication challenge, refreshing token",
                extra={"http_status": response.status, "scopes": self._cache_key},
            )
            self._clear_cached_token()
            self._authorize(request, self._get_token())
            response = self.next.send(request)
        return response


class AsyncBearerTokenCredentialPolicy(_BearerTokenPolicyBase, AsyncHTTPPolicy):
    """Asyncio twin of BearerTokenCredentialPolicy; accepts azure.identity.aio credentials."""

    def __init__(
        self,
        credential: AsyncTokenProvider | TokenProvider,
        *scopes: str,
        cache: TokenCache | None = None,
        enforce_https: bool = True,
    ):
        super().__init__(credential, *scopes, cache=cache, enforce_https=enforce_https)
        self._refresh_lock = asyncio.Lock()
        self._fetch_token = with_retry_async(
            config=AUTH_RETRY,
            on_auth_error=self._clear_cached_token,
        )(self._acquire_token)

    async def _acquire_token(self) -> str:
        try:
            get_token = self._credential.get_token
            if inspect.iscoroutinefunction(get_token):
                access_token = await get_token(*self._scopes)
            else:
                # Blocking azure-identity credentials run off the event loop
                access_token = await asyncio.to_thread(get_token, *self._scopes)
                if inspect.isawaitable(access_token):
                    access_token = await access_token
        except ClientAuthenticationError as e:
            raise self._auth_error(e) from e
        return self._store(access_token)

    async def _get_token(self) -> str:
        cached = self._cache.get(self._cache_key)
        if cached:
            return cached
        async with self._refresh_lock:
            # Another task may have refreshed while this one waited
            cached = self._cache.get(self._cache_key)
            if cached:
                return cached
            return await self._fetch_token()

    async def send(self, request: Request) -> Response:
        self._check_https(request)
        self._authorize(request, await self._get_token())
        response = await self.next.send(request)

        if self._is_challenge(response):
            logger.info(
                "Received authentication challenge, refreshing token",
                extra={"http_status": response.status, "scopes": self._cache_key},
            )
            self._clear_cached_token()
            self._authorize(request, await self._get_token())
            response = await self.next.send(request)
        return response


__all__ = ["AsyncBearerTokenCredentialPolicy", "BearerTokenCredentialPolicy"]
