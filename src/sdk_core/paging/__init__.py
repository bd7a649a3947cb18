"""Continuation-token paging."""

from sdk_core.paging.pager import AsyncItemPaged, ItemPaged, Page
from sdk_core.paging.parsers import parse_json_page, parse_link_header, parse_link_header_page

__all__ = [
    "AsyncItemPaged",
    "ItemPaged",
    "Page",
    "parse_json_page",
    "parse_link_header",
    "parse_link_header_page",
]
