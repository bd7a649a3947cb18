"""Header-stamping policies: static headers, api-version, User-Agent, request ids."""

import platform
import uuid
from collections.abc import Mapping

from sdk_core._version import VERSION
from sdk_core.http.headers import HttpHeader
from sdk_core.http.request import Request
from sdk_core.pipeline.policies.base import SansIOHTTPPolicy

MAX_APPLICATION_ID_LENGTH = 24

# request.context key holding per-call headers for CustomHeadersPolicy
CONTEXT_HEADERS_KEY = "headers"


class HeadersPolicy(SansIOHTTPPolicy):
    """Adds static headers; values the caller already set are left alone."""

    def __init__(self, headers: Mapping[str, str] | None = None):
        self.headers = dict(headers or {})

    def add_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def on_request(self, request: Request) -> None:
        for name, value in self.headers.items():
            request.headers.setdefault(name, value)


class ApiVersionPolicy(SansIOHTTPPolicy):
    """Appends ``api-version=<version>`` unless the URI already carries one."""

    QUERY_NAME = "api-version"

    def __init__(self, api_version: str):
        if not api_version:
            raise ValueError("api_version must be a non-empty string")
        self.api_version = api_version

    def on_request(self, request: Request) -> None:
        if not request.uri.has_query(self.QUERY_NAME):
            request.uri.append_query(self.QUERY_NAME, self.api_version)


class UserAgentPolicy(SansIOHTTPPolicy):
    """
    Stamps the User-Agent header.

    Format: ``[<application_id> ]sdk-core/<version> Python/<x.y.z> (<platform>)``.
    With overwrite=False a caller-supplied User-Agent is kept and our value
    is appended to it.
    """

    def __init__(
        self,
        application_id: str | None = None,
        sdk_moniker: str = f"sdk-core/{VERSION}",
        overwrite: bool = True,
    ):
        if application_id and len(application_id) > MAX_APPLICATION_ID_LENGTH:
            raise ValueError(
                f"application_id must be at most {MAX_APPLICATION_ID_LENGTH} "
                f"characters, got {len(application_id)}"
            )
        self.application_id = application_id
        self.overwrite = overwrite
        self._user_agent = self._build(application_id, sdk_moniker)

    @staticmethod
    def _build(application_id: str | None, sdk_moniker: str) -> str:
        user_agent = (
            f"{sdk_moniker} Python/{platform.python_version()} ({platform.platform()})"
        )
        if application_id:
            user_agent = f"{application_id} {user_agent}"
        return user_agent

    @property
    def user_agent(self) -> str:
        return self._user_agent

    def on_request(self, request: Request) -> None:
        existing = request.headers.get(HttpHeader.USER_AGENT)
        if existing and not self.overwrite:
            request.headers[HttpHeader.USER_AGENT] = f"{existing} {self._user_agent}"
        else:
            request.headers[HttpHeader.USER_AGENT] = self._user_agent


class RequestIdPolicy(SansIOHTTPPolicy):
    """
    Sets x-ms-client-request-id once per logical request.

    Sits before the retry stage, so every attempt carries the same id.
    A ``client_request_id`` entry in request.context takes precedence over
    a generated value.
    """

    def __init__(self, header_name: str = HttpHeader.CLIENT_REQUEST_ID):
        self.header_name = header_name

    def on_request(self, request: Request) -> None:
        if self.header_name in request.headers:
            return
        request_id = request.context.get("client_request_id") or str(uuid.uuid4())
        request.headers[self.header_name] = request_id


class CustomHeadersPolicy(SansIOHTTPPolicy):
    """
    Copies per-call headers from ``request.context["headers"]``.

    Per-call values win over anything set earlier, including the
    generated client request id.
    """

    def on_request(self, request: Request) -> None:
        headers = request.context.get(CONTEXT_HEADERS_KEY)
        if not headers:
            return
        for name, value in headers.items():
            request.headers[name] = value


__all__ = [
    "ApiVersionPolicy",
    "CONTEXT_HEADERS_KEY",
    "CustomHeadersPolicy",
    "HeadersPolicy",
    "RequestIdPolicy",
    "UserAgentPolicy",
]
