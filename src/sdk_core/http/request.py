"""Outgoing HTTP request model shared by every pipeline stage."""

import json
from typing import Any

from requests.structures import CaseInsensitiveDict

from sdk_core.http.headers import HttpHeader
from sdk_core.http.uri import RequestUriBuilder


class Request:
    """
    A request travelling through the pipeline.

    Policies mutate the same instance, so headers added before the retry
    stage are present on every attempt.

    Attributes:
        method: Upper-case HTTP verb
        uri: RequestUriBuilder holding the target URI
        headers: Case-insensitive header map
        content: Request body bytes, or None
        context: Per-call options read by policies (custom headers,
                 retry overrides, retry statistics)
    """

    def __init__(
        self,
        method: str,
        url: str | None = None,
        headers: dict[str, str] | None = None,
        content: bytes | str | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.method = method.upper()
        self.uri = RequestUriBuilder(url)
        self.headers: CaseInsensitiveDict = CaseInsensitiveDict(headers or {})
        self.content = content.encode("utf-8") if isinstance(content, str) else content
        self.context: dict[str, Any] = dict(context or {})

    @property
    def url(self) -> str:
        return self.uri.to_uri()

    def set_json_body(self, data: Any) -> None:
        self.content = json.dumps(data, separators=(",", ":")).encode("utf-8")
        self.headers[HttpHeader.CONTENT_TYPE] = HttpHeader.JSON_UTF8

    def add_match_conditions(
        self,
        if_match: str | None = None,
        if_none_match: str | None = None,
    ) -> None:
        """Set conditional headers; ETags are quoted, '*' is passed through."""
        if if_match:
            self.headers[HttpHeader.IF_MATCH] = _quote_etag(if_match)
        if if_none_match:
            self.headers[HttpHeader.IF_NONE_MATCH] = _quote_etag(if_none_match)

    def __repr__(self) -> str:
        return f"<Request [{self.method}] {self.url}>"


def _quote_etag(etag: str) -> str:
    if etag == "*" or (etag.startswith('"') and etag.endswith('"')):
        return etag
    return f'"{etag}"'


__all__ = ["Request"]
