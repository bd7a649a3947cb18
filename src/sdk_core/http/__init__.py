"""HTTP request/response models and URI building."""

from sdk_core.http.headers import HttpHeader, parse_retry_after
from sdk_core.http.request import Request
from sdk_core.http.response import Response
from sdk_core.http.uri import RequestUriBuilder

__all__ = [
    "HttpHeader",
    "Request",
    "RequestUriBuilder",
    "Response",
    "parse_retry_after",
]
