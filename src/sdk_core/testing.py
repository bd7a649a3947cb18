"""
In-memory transports for unit tests.

Usage:
    transport = MockTransport(mock_response(503), mock_response(200, {"value": []}))
    pipeline = build_pipeline(transport=transport)
    ...
    assert len(transport.requests) == 2
"""

import copy
import inspect
import json
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any

from sdk_core.http.headers import HttpHeader
from sdk_core.http.request import Request
from sdk_core.http.response import Response
from sdk_core.transport.base import AsyncHttpTransport, HttpTransport


def mock_response(
    status: int,
    body: Any = None,
    headers: dict[str, str] | None = None,
    reason: str | None = None,
) -> Response:
    """Build a Response; dict/list bodies are JSON-encoded with a JSON Content-Type."""
    headers = dict(headers or {})
    if body is None:
        content = b""
    elif isinstance(body, bytes):
        content = body
    elif isinstance(body, str):
        content = body.encode("utf-8")
    else:
        content = json.dumps(body).encode("utf-8")
        headers.setdefault(HttpHeader.CONTENT_TYPE, HttpHeader.JSON_UTF8)
    return Response(status, headers=headers, body=content, reason=reason)


class _RecordingTransport:
    def __init__(self, *responses: Response | Exception, handler=None):
        self._queue: deque = deque(responses)
        self._handler = handler
        self.requests: list[Request] = []
        self.opened = False
        self.closed = False

    def _record(self, request: Request) -> None:
        # Snapshot so later mutation by policies doesn't rewrite history
        snapshot = Request(request.method, request.url, dict(request.headers), request.content)
        snapshot.context = copy.copy(request.context)
        self.requests.append(snapshot)

    def add(self, *responses: Response | Exception) -> None:
        self._queue.extend(responses)

    def _next_from_queue(self, request: Request) -> Response:
        if not self._queue:
            raise AssertionError(f"MockTransport has no response queued for {request!r}")
        item = self._queue.popleft()
        if isinstance(item, Exception):
            raise item
        item.request = request
        return item

    @property
    def last_request(self) -> Request | None:
        return self.requests[-1] if self.requests else None


class MockTransport(_RecordingTransport, HttpTransport):
    """
    Blocking transport answering from a queue or a handler.

    Queued items may be Responses or exceptions (which are raised).
    A handler ``handler(request) -> Response`` takes precedence over the queue.
    """

    def __init__(
        self,
        *responses: Response | Exception,
        handler: Callable[[Request], Response] | None = None,
    ):
        super().__init__(*responses, handler=handler)

    def open(self) -> None:
        self.opened = True

    def close(self) -> None:
        self.closed = True

    def send(self, request: Request) -> Response:
        self._record(request)
        if self._handler is not None:
            response = self._handler(request)
            response.request = request
            return response
        return self._next_from_queue(request)


class AsyncMockTransport(_RecordingTransport, AsyncHttpTransport):
    """Asyncio twin of MockTransport; the handler may be sync or async."""

    def __init__(
        self,
        *responses: Response | Exception,
        handler: Callable[[Request], Response | Awaitable[Response]] | None = None,
    ):
        super().__init__(*responses, handler=handler)

    async def open(self) -> None:
        self.opened = True

    async def close(self) -> None:
        self.closed = True

    async def send(self, request: Request) -> Response:
        self._record(request)
        if self._handler is not None:
            response = self._handler(request)
            if inspect.isawaitable(response):
                response = await response
            response.request = request
            return response
        return self._next_from_queue(request)


__all__ = ["AsyncMockTransport", "MockTransport", "mock_response"]
