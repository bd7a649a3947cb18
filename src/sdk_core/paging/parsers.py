"""Turn list responses into Pages."""

import re
from collections.abc import Callable
from typing import Any

from sdk_core.errors.exceptions import PermanentError
from sdk_core.http.headers import HttpHeader
from sdk_core.http.response import Response
from sdk_core.paging.pager import Page

ItemFactory = Callable[[Any], Any]

# One entry of an RFC 8288 Link header: <uri>; param; param
_LINK_ENTRY = re.compile(r"<([^>]*)>\s*((?:;\s*[^;,]+)*)")
_REL_PARAM = re.compile(r"""rel\s*=\s*"?([^";,]+)"?""", re.IGNORECASE)


def parse_link_header(value: str | None) -> str | None:
    """
    Return the target of the rel="next" entry of a Link header.

    >>> parse_link_header('</kv?after=5>;rel="next"')
    '/kv?after=5'
    """
    if not value:
        return None
    for match in _LINK_ENTRY.finditer(value):
        rel = _REL_PARAM.search(match.group(2) or "")
        if rel and "next" in rel.group(1).lower().split():
            return match.group(1).strip() or None
    return None


def _json_body(response: Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise PermanentError(
            "List response body is not valid JSON",
            cause=e,
            context={"http_status": response.status},
        ) from e


def _json_object(payload: Any, response: Response) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise PermanentError(
            f"Expected a JSON object or array, got {type(payload).__name__}",
            context={"http_status": response.status},
        )
    return payload


def _build_items(raw_items: Any, item_factory: ItemFactory | None) -> list:
    if raw_items is None:
        return []
    if not isinstance(raw_items, list):
        raise PermanentError(
            f"Expected a JSON array of items, got {type(raw_items).__name__}"
        )
    if item_factory is None:
        return list(raw_items)
    return [item_factory(raw) for raw in raw_items]


def parse_json_page(
    response: Response,
    item_factory: ItemFactory | None = None,
    items_key: str = "value",
    next_link_key: str = "nextLink",
) -> Page:
    """
    Parse ``{"value": [...], "nextLink": "..."}`` style bodies.

    A body that is itself a JSON array is treated as a single final page.
    """
    payload = _json_body(response)
    if isinstance(payload, list):
        return Page(_build_items(payload, item_factory), None, response)

    payload = _json_object(payload, response)
    items = _build_items(payload.get(items_key), item_factory)
    return Page(items, payload.get(next_link_key) or None, response)


def parse_link_header_page(
    response: Response,
    item_factory: ItemFactory | None = None,
    items_key: str = "items",
) -> Page:
    """Items from the JSON body, next link from the Link response header."""
    payload = _json_body(response)
    if isinstance(payload, list):
        raw_items = payload
    else:
        raw_items = _json_object(payload, response).get(items_key)
    next_link = parse_link_header(response.headers.get(HttpHeader.LINK))
    return Page(_build_items(raw_items, item_factory), next_link, response)


__all__ = ["parse_json_page", "parse_link_header", "parse_link_header_page"]
