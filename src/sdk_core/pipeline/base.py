"""
Pipeline: an ordered chain of policies ending in a transport.

The first policy sees the request first and the response last. Any stage
may short-circuit by returning a response without calling ``next``, and
exceptions raised further down propagate back through every earlier stage.
"""

from collections.abc import Iterable
from typing import Union

from sdk_core.diagnostics.scope import DiagnosticScopeFactory
from sdk_core.http.request import Request
from sdk_core.http.response import Response
from sdk_core.pipeline.policies.base import (
    AsyncHTTPPolicy,
    HTTPPolicy,
    SansIOHTTPPolicy,
    _AsyncSansIOHTTPPolicyRunner,
    _AsyncTransportRunner,
    _SansIOHTTPPolicyRunner,
    _TransportRunner,
)
from sdk_core.transport.base import AsyncHttpTransport, HttpTransport

SyncPolicy = Union[HTTPPolicy, SansIOHTTPPolicy]
AsyncPolicy = Union[AsyncHTTPPolicy, SansIOHTTPPolicy]


def _link(chain: list) -> None:
    for current, following in zip(chain, chain[1:]):
        current.next = following


class Pipeline:
    """
    Blocking pipeline.

    Usage:
        with Pipeline(RequestsTransport(), [RequestIdPolicy(), RetryPolicy()]) as pipeline:
            request = pipeline.create_request("GET", "https://example.org/items")
            response = pipeline.run(request)
    """

    def __init__(
        self,
        transport: HttpTransport,
        policies: Iterable[SyncPolicy] | None = None,
        diagnostics: DiagnosticScopeFactory | None = None,
    ):
        self._transport = transport
        self._impl_policies: list[HTTPPolicy] = []
        for policy in policies or []:
            if isinstance(policy, SansIOHTTPPolicy):
                self._impl_policies.append(_SansIOHTTPPolicyRunner(policy))
            elif isinstance(policy, HTTPPolicy):
                self._impl_policies.append(policy)
            else:
                raise TypeError(
                    f"Unsupported policy for a sync pipeline: {type(policy).__name__}"
                )
        self._impl_policies.append(_TransportRunner(transport))
        _link(self._impl_policies)
        self.diagnostics = diagnostics or DiagnosticScopeFactory()

    @property
    def transport(self) -> HttpTransport:
        return self._transport

    def create_request(self, method: str, url: str | None = None) -> Request:
        return Request(method, url)

    def run(self, request: Request) -> Response:
        return self._impl_policies[0].send(request)

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> "Pipeline":
        self._transport.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class AsyncPipeline:
    """Asyncio pipeline; same ordering rules as Pipeline."""

    def __init__(
        self,
        transport: AsyncHttpTransport,
        policies: Iterable[AsyncPolicy] | None = None,
        diagnostics: DiagnosticScopeFactory | None = None,
    ):
        self._transport = transport
        self._impl_policies: list[AsyncHTTPPolicy] = []
        for policy in policies or []:
            if isinstance(policy, SansIOHTTPPolicy):
                self._impl_policies.append(_AsyncSansIOHTTPPolicyRunner(policy))
            elif isinstance(policy, AsyncHTTPPolicy):
                self._impl_policies.append(policy)
            else:
                raise TypeError(
                    f"Unsupported policy for an async pipeline: {type(policy).__name__}"
                )
        self._impl_policies.append(_AsyncTransportRunner(transport))
        _link(self._impl_policies)
        self.diagnostics = diagnostics or DiagnosticScopeFactory()

    @property
    def transport(self) -> AsyncHttpTransport:
        return self._transport

    def create_request(self, method: str, url: str | None = None) -> Request:
        return Request(method, url)

    async def run(self, request: Request) -> Response:
        return await self._impl_policies[0].send(request)

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> "AsyncPipeline":
        await self._transport.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False


__all__ = ["AsyncPipeline", "Pipeline"]
