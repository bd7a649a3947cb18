"""
Async transport built on aiohttp.

Handles connection pooling, timeouts and SSL verification, and converts
aiohttp failures into sdk_core transient errors.
"""

import asyncio

import aiohttp

from sdk_core.errors.exceptions import ConnectionError, TimeoutError
from sdk_core.http.request import Request
from sdk_core.http.response import Response
from sdk_core.transport.base import AsyncHttpTransport


def create_session(
    max_connections: int = 100,
    max_connections_per_host: int = 10,
    enable_ssl: bool = True,
    timeout_total: float = 300,
    timeout_connect: float = 30,
    timeout_sock_read: float = 60,
) -> aiohttp.ClientSession:
    """
    Create aiohttp ClientSession with pooled connections and bounded timeouts.

    Args:
        max_connections: Total connection pool size (default: 100)
        max_connections_per_host: Per-host connection limit (default: 10)
        enable_ssl: Enable SSL verification (default: True)
        timeout_total: Total timeout in seconds (default: 300)
        timeout_connect: Connection timeout in seconds (default: 30)
        timeout_sock_read: Socket read timeout in seconds (default: 60)

    Returns:
        Configured aiohttp.ClientSession; the caller owns its lifecycle.
    """
    connector = aiohttp.TCPConnector(
        limit=max_connections,
        limit_per_host=max_connections_per_host,
        ssl=enable_ssl,
        ttl_dns_cache=300,
        enable_cleanup_closed=True,
    )

    timeout = aiohttp.ClientTimeout(
        total=timeout_total,
        connect=timeout_connect,
        sock_read=timeout_sock_read,
    )

    return aiohttp.ClientSession(connector=connector, timeout=timeout)


class AioHttpTransport(AsyncHttpTransport):
    """
    AsyncHttpTransport over an aiohttp.ClientSession.

    The session is created lazily on first send (or open) unless one is
    injected. Injected sessions belong to the caller and are not closed.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        max_connections: int = 100,
        max_connections_per_host: int = 10,
        enable_ssl: bool = True,
        timeout_total: float = 300,
        timeout_connect: float = 30,
        timeout_sock_read: float = 60,
        allow_redirects: bool = True,
    ):
        self._session = session
        self._owns_session = session is None
        self._session_kwargs = {
            "max_connections": max_connections,
            "max_connections_per_host": max_connections_per_host,
            "enable_ssl": enable_ssl,
            "timeout_total": timeout_total,
            "timeout_connect": timeout_connect,
            "timeout_sock_read": timeout_sock_read,
        }
        self.allow_redirects = allow_redirects

    async def open(self) -> None:
        if self._session is None:
            self._session = create_session(**self._session_kwargs)
            self._owns_session = True

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def send(self, request: Request) -> Response:
        await self.open()
        try:
            async with self._session.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                data=request.content,
                allow_redirects=self.allow_redirects,
            ) as raw:
                body = await raw.read()
                return Response(
                    status=raw.status,
                    headers=dict(raw.headers),
                    body=body,
                    reason=raw.reason,
                    request=request,
                )
        except (asyncio.TimeoutError, aiohttp.ServerTimeoutError) as e:
            raise TimeoutError(
                "Request timed out",
                cause=e,
                context={"http_method": request.method},
            ) from e
        except aiohttp.ClientError as e:
            raise ConnectionError(
                f"Connection error: {e}",
                cause=e,
                context={"http_method": request.method},
            ) from e


__all__ = ["AioHttpTransport", "create_session"]
