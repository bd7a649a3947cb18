"""
Lazy, restartable pagination over continuation tokens.

A pager is built from a ``fetch_page(continuation_token, page_size_hint)``
callable. Nothing is fetched until iteration starts, each page is fetched
only after the previous one has been consumed, and every new iteration
starts again from the first page (or the token passed to by_page).
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from sdk_core.errors.exceptions import PagingError
from sdk_core.http.response import Response

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """
    One page of results.

    A None or empty continuation_token marks the last page.
    """

    values: list[T] = field(default_factory=list)
    continuation_token: str | None = None
    response: Response | None = None

    @property
    def has_next(self) -> bool:
        return bool(self.continuation_token)

    def __iter__(self) -> Iterator[T]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)


FetchPage = Callable[[str | None, int | None], Page]
AsyncFetchPage = Callable[[str | None, int | None], Awaitable[Page]]


def _check_progress(requested: str | None, page: Page) -> None:
    if page.continuation_token and page.continuation_token == requested:
        raise PagingError(
            "Service returned the same continuation token that was requested",
            context={"continuation_token": requested},
        )


def _log_done(page_count: int, item_count: int) -> None:
    logger.debug(
        "Paging complete",
        extra={"page_count": page_count, "item_count": item_count},
    )


class ItemPaged(Generic[T]):
    """
    Iterable of items spread over service pages.

    Usage:
        for item in pager:
            ...
        for page in pager.by_page():
            print(page.continuation_token, len(page))
    """

    def __init__(self, fetch_page: FetchPage, page_size_hint: int | None = None):
        self._fetch_page = fetch_page
        self._page_size_hint = page_size_hint

    def by_page(
        self,
        continuation_token: str | None = None,
        page_size_hint: int | None = None,
    ) -> Iterator[Page[T]]:
        """Yield pages starting at continuation_token (first page when None)."""
        return self._iter_pages(
            continuation_token,
            page_size_hint if page_size_hint is not None else self._page_size_hint,
        )

    def _iter_pages(self, token: str | None, page_size_hint: int | None) -> Iterator[Page[T]]:
        page_count = item_count = 0
        while True:
            page = self._fetch_page(token, page_size_hint)
            _check_progress(token, page)
            page_count += 1
            item_count += len(page.values)
            yield page
            if not page.continuation_token:
                break
            token = page.continuation_token
        _log_done(page_count, item_count)

    def __iter__(self) -> Iterator[T]:
        for page in self.by_page():
            yield from page.values


class AsyncItemPaged(Generic[T]):
    """
    Async iterable of items spread over service pages.

    Usage:
        async for item in pager:
            ...
        async for page in pager.by_page():
            ...
    """

    def __init__(self, fetch_page: AsyncFetchPage, page_size_hint: int | None = None):
        self._fetch_page = fetch_page
        self._page_size_hint = page_size_hint

    def by_page(
        self,
        continuation_token: str | None = None,
        page_size_hint: int | None = None,
    ) -> AsyncIterator[Page[T]]:
        return self._iter_pages(
            continuation_token,
            page_size_hint if page_size_hint is not None else self._page_size_hint,
        )

    async def _iter_pages(
        self, token: str | None, page_size_hint: int | None
    ) -> AsyncIterator[Page[T]]:
        page_count = item_count = 0
        while True:
            page = await self._fetch_page(token, page_size_hint)
            _check_progress(token, page)
            page_count += 1
            item_count += len(page.values)
            yield page
            if not page.continuation_token:
                break
            token = page.continuation_token
        _log_done(page_count, item_count)

    async def _iter_items(self) -> AsyncIterator[T]:
        async for page in self.by_page():
            for item in page.values:
                yield item

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iter_items()

    async def to_list(self) -> list[Any]:
        return [item async for item in self]


__all__ = ["AsyncItemPaged", "ItemPaged", "Page"]
