"""Tests for ItemPaged and AsyncItemPaged."""

import pytest

from sdk_core.errors import PagingError
from sdk_core.paging import AsyncItemPaged, ItemPaged, Page


class FakeService:
    """Serves pages keyed by continuation token and records each fetch."""

    def __init__(self, pages: dict):
        self.pages = pages
        self.calls: list[tuple] = []

    def fetch(self, token, page_size_hint):
        self.calls.append((token, page_size_hint))
        values, next_token = self.pages[token]
        return Page(list(values), next_token)

    async def fetch_async(self, token, page_size_hint):
        return self.fetch(token, page_size_hint)


THREE_PAGES = {
    None: ([1, 2], "p2"),
    "p2": ([3], "p3"),
    "p3": ([4, 5], None),
}


class TestPage:
    def test_has_next(self):
        assert Page([1], "next").has_next
        assert not Page([1], None).has_next
        assert not Page([1], "").has_next

    def test_iter_and_len(self):
        page = Page(["a", "b"])
        assert list(page) == ["a", "b"]
        assert len(page) == 2


class TestItemPaged:
    def test_iterates_all_items(self):
        service = FakeService(THREE_PAGES)
        assert list(ItemPaged(service.fetch)) == [1, 2, 3, 4, 5]
        assert [token for token, _ in service.calls] == [None, "p2", "p3"]

    def test_nothing_fetched_until_iteration(self):
        service = FakeService(THREE_PAGES)
        pager = ItemPaged(service.fetch)
        assert service.calls == []

        iterator = iter(pager)
        assert next(iterator) == 1
        assert len(service.calls) == 1

    def test_next_page_fetched_only_after_current_consumed(self):
        service = FakeService(THREE_PAGES)
        iterator = iter(ItemPaged(service.fetch))
        next(iterator)
        next(iterator)
        assert len(service.calls) == 1
        next(iterator)
        assert len(service.calls) == 2

    def test_each_iteration_restarts(self):
        service = FakeService(THREE_PAGES)
        pager = ItemPaged(service.fetch)
        assert list(pager) == list(pager)
        assert [token for token, _ in service.calls] == [None, "p2", "p3", None, "p2", "p3"]

    def test_by_page_from_continuation_token(self):
        service = FakeService(THREE_PAGES)
        pages = list(ItemPaged(service.fetch).by_page("p2"))
        assert [page.values for page in pages] == [[3], [4, 5]]
        assert pages[-1].continuation_token is None

    def test_page_size_hint_passed_through(self):
        service = FakeService(THREE_PAGES)
        pager = ItemPaged(service.fetch, page_size_hint=10)

        list(pager)
        list(pager.by_page(page_size_hint=2))

        assert {hint for _, hint in service.calls[:3]} == {10}
        assert {hint for _, hint in service.calls[3:]} == {2}

    def test_empty_page_with_token_continues(self):
        service = FakeService({None: ([], "p2"), "p2": ([7], None)})
        assert list(ItemPaged(service.fetch)) == [7]

    def test_empty_string_token_ends_paging(self):
        service = FakeService({None: ([1], "")})
        assert list(ItemPaged(service.fetch)) == [1]
        assert len(service.calls) == 1

    def test_repeated_token_raises(self):
        service = FakeService({None: ([1], "p2"), "p2": ([2], "p2")})
        with pytest.raises(PagingError):
            list(ItemPaged(service.fetch))

    def test_fetch_error_propagates(self):
        def fetch(token, hint):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            list(ItemPaged(fetch))


class TestAsyncItemPaged:
    @pytest.mark.asyncio
    async def test_iterates_all_items(self):
        service = FakeService(THREE_PAGES)
        items = [item async for item in AsyncItemPaged(service.fetch_async)]
        assert items == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_to_list_restarts(self):
        service = FakeService(THREE_PAGES)
        pager = AsyncItemPaged(service.fetch_async)
        assert await pager.to_list() == await pager.to_list()
        assert len(service.calls) == 6

    @pytest.mark.asyncio
    async def test_by_page(self):
        service = FakeService(THREE_PAGES)
        tokens = [page.continuation_token async for page in AsyncItemPaged(service.fetch_async).by_page()]
        assert tokens == ["p2", "p3", None]

    @pytest.mark.asyncio
    async def test_repeated_token_raises(self):
        service = FakeService({None: ([1], "same"), "same": ([2], "same")})
        with pytest.raises(PagingError):
            await AsyncItemPaged(service.fetch_async).to_list()
