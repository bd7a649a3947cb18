"""Buffered HTTP response returned by transports."""

import json
from typing import TYPE_CHECKING, Any

from requests.structures import CaseInsensitiveDict

from sdk_core.http.headers import HttpHeader

if TYPE_CHECKING:
    from sdk_core.http.request import Request


class Response:
    """
    Fully-read HTTP response.

    Transports read the whole body before returning, so a Response can be
    inspected any number of times and after the connection is released.
    """

    def __init__(
        self,
        status: int,
        headers: dict[str, str] | None = None,
        body: bytes = b"",
        reason: str | None = None,
        request: "Request | None" = None,
    ):
        self.status = status
        self.headers: CaseInsensitiveDict = CaseInsensitiveDict(headers or {})
        self.body = body or b""
        self.reason = reason
        self.request = request

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str | None:
        return self.headers.get(HttpHeader.CONTENT_TYPE)

    def _charset(self) -> str:
        content_type = self.content_type or ""
        for param in content_type.split(";")[1:]:
            key, _, value = param.strip().partition("=")
            if key.lower() == "charset" and value:
                return value.strip('"')
        return "utf-8"

    def text(self, encoding: str | None = None) -> str:
        return self.body.decode(encoding or self._charset(), errors="replace")

    def json(self) -> Any:
        if not self.body:
            return None
        return json.loads(self.text())

    def __repr__(self) -> str:
        return f"<Response [{self.status}]>"


__all__ = ["Response"]
