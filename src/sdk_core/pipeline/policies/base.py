"""
Policy base classes.

A policy is one link in the pipeline's chain of responsibility:

- HTTPPolicy / AsyncHTTPPolicy own the call to ``self.next.send`` and can
  therefore re-send (retry), short-circuit, or wrap the rest of the chain.
- SansIOHTTPPolicy only observes or mutates the request and response; it
  never performs I/O, so one instance can serve both sync and async
  pipelines.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from sdk_core.http.request import Request
from sdk_core.http.response import Response

if TYPE_CHECKING:
    from sdk_core.transport.base import AsyncHttpTransport, HttpTransport


class HTTPPolicy(ABC):
    """Blocking policy; ``next`` is wired by the Pipeline."""

    def __init__(self) -> None:
        self.next: Any = None

    @abstractmethod
    def send(self, request: Request) -> Response:
        """Process the request, forward it with ``self.next.send``, return the response."""
        pass


class AsyncHTTPPolicy(ABC):
    """Asyncio policy; ``next`` is wired by the AsyncPipeline."""

    def __init__(self) -> None:
        self.next: Any = None

    @abstractmethod
    async def send(self, request: Request) -> Response:
        pass


class SansIOHTTPPolicy:
    """
    Hook-only policy.

    on_exception is informational: the exception is always re-raised to
    the previous stage after the hook returns.
    """

    def on_request(self, request: Request) -> None:
        pass

    def on_response(self, request: Request, response: Response) -> None:
        pass

    def on_exception(self, request: Request, exc: Exception) -> None:
        pass


class _SansIOHTTPPolicyRunner(HTTPPolicy):
    """Adapts a SansIOHTTPPolicy into a sync chain link."""

    def __init__(self, policy: SansIOHTTPPolicy):
        super().__init__()
        self._policy = policy

    def send(self, request: Request) -> Response:
        self._policy.on_request(request)
        try:
            response = self.next.send(request)
        except Exception as e:
            self._policy.on_exception(request, e)
            raise
        self._policy.on_response(request, response)
        return response


class _AsyncSansIOHTTPPolicyRunner(AsyncHTTPPolicy):
    """Adapts a SansIOHTTPPolicy into an async chain link."""

    def __init__(self, policy: SansIOHTTPPolicy):
        super().__init__()
        self._policy = policy

    async def send(self, request: Request) -> Response:
        self._policy.on_request(request)
        try:
            response = await self.next.send(request)
        except Exception as e:
            self._policy.on_exception(request, e)
            raise
        self._policy.on_response(request, response)
        return response


class _TransportRunner(HTTPPolicy):
    """Terminal link: hands the request to the transport."""

    def __init__(self, transport: "HttpTransport"):
        super().__init__()
        self._transport = transport

    def send(self, request: Request) -> Response:
        return self._transport.send(request)


class _AsyncTransportRunner(AsyncHTTPPolicy):
    def __init__(self, transport: "AsyncHttpTransport"):
        super().__init__()
        self._transport = transport

    async def send(self, request: Request) -> Response:
        return await self._transport.send(request)


__all__ = ["AsyncHTTPPolicy", "HTTPPolicy", "SansIOHTTPPolicy"]
