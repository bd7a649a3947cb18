"""Blocking transport built on requests."""

import requests

from sdk_core.errors.exceptions import ConnectionError, TimeoutError, wrap_exception
from sdk_core.http.request import Request
from sdk_core.http.response import Response
from sdk_core.transport.base import HttpTransport


class RequestsTransport(HttpTransport):
    """
    HttpTransport over a requests.Session.

    A session passed in by the caller is left open on close(); a session
    created here is owned and closed by the transport.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        connection_timeout: float = 30.0,
        read_timeout: float = 300.0,
        verify: bool = True,
        allow_redirects: bool = True,
    ):
        self._session = session
        self._owns_session = session is None
        self.connection_timeout = connection_timeout
        self.read_timeout = read_timeout
        self.verify = verify
        self.allow_redirects = allow_redirects

    def open(self) -> None:
        if self._session is None:
            self._session = requests.Session()
            self._owns_session = True

    def close(self) -> None:
        if self._session is not None and self._owns_session:
            self._session.close()
            self._session = None

    def send(self, request: Request) -> Response:
        self.open()
        try:
            raw = self._session.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                data=request.content,
                timeout=(self.connection_timeout, self.read_timeout),
                verify=self.verify,
                allow_redirects=self.allow_redirects,
            )
        except requests.Timeout as e:
            raise TimeoutError(
                f"Request timed out after {self.read_timeout}s",
                cause=e,
                context={"http_method": request.method},
            ) from e
        except requests.ConnectionError as e:
            raise ConnectionError(
                "Connection failed",
                cause=e,
                context={"http_method": request.method},
            ) from e
        except requests.RequestException as e:
            raise wrap_exception(e, context={"http_method": request.method}) from e

        return Response(
            status=raw.status_code,
            headers=dict(raw.headers),
            body=raw.content,
            reason=raw.reason,
            request=request,
        )


__all__ = ["RequestsTransport"]
