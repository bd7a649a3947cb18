"""Terminal pipeline stages that perform the network call."""

from sdk_core.transport.aiohttp_transport import AioHttpTransport, create_session
from sdk_core.transport.base import AsyncHttpTransport, HttpTransport
from sdk_core.transport.requests_transport import RequestsTransport

__all__ = [
    "AioHttpTransport",
    "AsyncHttpTransport",
    "HttpTransport",
    "RequestsTransport",
    "create_session",
]
