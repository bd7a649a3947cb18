"""Transport interfaces: the terminal stage of every pipeline."""

from abc import ABC, abstractmethod

from sdk_core.http.request import Request
from sdk_core.http.response import Response


class HttpTransport(ABC):
    """
    Abstract base class for blocking transports.

    Implementations perform the network call, read the full body, and
    translate client library failures into sdk_core TransientError
    subclasses so the retry stage can classify them.
    """

    @abstractmethod
    def send(self, request: Request) -> Response:
        """
        Send the request and return the buffered response.

        Raises:
            TimeoutError: The request timed out
            ConnectionError: The service could not be reached
        """
        pass

    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    def __enter__(self) -> "HttpTransport":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class AsyncHttpTransport(ABC):
    """Abstract base class for asyncio transports."""

    @abstractmethod
    async def send(self, request: Request) -> Response:
        pass

    async def open(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def __aenter__(self) -> "AsyncHttpTransport":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False


__all__ = ["AsyncHttpTransport", "HttpTransport"]
