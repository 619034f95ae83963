"""
Listing service tests: unpaged bypass, read-through caching of paged
listings, cache keys and invalidation on writes.
"""

import json
from unittest.mock import MagicMock

import pytest

from bookshelf.core.exceptions.exceptions import CacheError, NotFoundError, StoreError
from bookshelf.schemas.book import BookCreate, BookUpdate
from bookshelf.schemas.listing import Paged, Unpaged
from bookshelf.services.book_store import BookStore
from bookshelf.services.listing_service import ListingService

from conftest import make_book


class CountingStore:
    """Wraps a real store and counts list queries."""

    def __init__(self, store: BookStore):
        self._store = store
        self.list_all_calls = 0
        self.list_page_calls = []

    def list_all(self):
        self.list_all_calls += 1
        return self._store.list_all()

    def list_page(self, offset, limit):
        self.list_page_calls.append((offset, limit))
        return self._store.list_page(offset, limit)


@pytest.fixture
def counting(seeded_store: BookStore) -> CountingStore:
    return CountingStore(seeded_store)


@pytest.fixture
def counted_listing(counting: CountingStore, cache) -> ListingService:
    return ListingService(counting, cache, ttl_seconds=300, namespace="test")


class TestUnpaged:

    async def test_returns_every_book_and_total(self, listing: ListingService) -> None:
        payload = await listing.list_books(Unpaged())

        assert payload["totalBooks"] == 5
        assert [b["title"] for b in payload["results"]] == ["Book 5", "Book 4", "Book 3", "Book 2", "Book 1"]
        assert "info" not in payload

    async def test_never_populates_cache(self, listing: ListingService, cache) -> None:
        await listing.list_books(Unpaged(raw_body=b"{}"))

        assert len(cache) == 0

    async def test_repeated_requests_always_hit_store(self, counted_listing, counting) -> None:
        await counted_listing.list_books(Unpaged())
        await counted_listing.list_books(Unpaged())

        assert counting.list_all_calls == 2

    async def test_ignores_cached_pages(self, counted_listing, counting) -> None:
        await counted_listing.list_books(Paged(page=1, limit=2))

        payload = await counted_listing.list_books(Unpaged())

        assert payload["totalBooks"] == 5
        assert counting.list_all_calls == 1


class TestPaged:

    async def test_first_page(self, listing: ListingService) -> None:
        payload = await listing.list_books(Paged(page=1, limit=2))

        assert payload["info"] == {
            "totalItems": 5,
            "itemsPerPage": 2,
            "currentPage": 1,
            "totalPages": 3,
            "offset": 0,
        }
        assert [b["pathUrl"] for b in payload["results"]] == ["book-5", "book-4"]

    async def test_last_partial_page(self, listing: ListingService) -> None:
        payload = await listing.list_books(Paged(page=3, limit=2))

        assert [b["pathUrl"] for b in payload["results"]] == ["book-1"]
        assert payload["info"]["offset"] == 4

    async def test_miss_populates_with_ttl(self, listing: ListingService, cache, clock) -> None:
        request = Paged(page=1, limit=2, raw_body=b"{}")
        payload = await listing.list_books(request)
        key = await listing.cache_key(request)

        assert json.loads(await cache.get(key)) == payload

        clock.advance(300)
        assert await cache.get(key) is None

    async def test_repeat_request_is_served_from_cache(self, counted_listing, counting) -> None:
        request = Paged(page=2, limit=2)

        first = await counted_listing.list_books(request)
        second = await counted_listing.list_books(request)

        assert first == second
        assert counting.list_page_calls == [(2, 2)]

    async def test_expired_entry_is_refetched(self, counted_listing, counting, clock) -> None:
        request = Paged(page=1, limit=2)
        await counted_listing.list_books(request)

        clock.advance(301)
        await counted_listing.list_books(request)

        assert len(counting.list_page_calls) == 2

    async def test_cached_payload_is_returned_verbatim(self, listing: ListingService, cache) -> None:
        request = Paged(page=1, limit=2)
        key = await listing.cache_key(request)
        await cache.set(key, json.dumps({"info": {"totalItems": 99}, "results": []}), ttl=300)

        payload = await listing.list_books(request)

        assert payload["info"]["totalItems"] == 99


class TestCacheKeys:

    async def test_same_body_different_pages_do_not_collide(self, listing: ListingService, cache) -> None:
        first = await listing.list_books(Paged(page=1, limit=2, raw_body=b"{}"))
        second = await listing.list_books(Paged(page=2, limit=2, raw_body=b"{}"))

        key_1 = await listing.cache_key(Paged(page=1, limit=2, raw_body=b"{}"))
        key_2 = await listing.cache_key(Paged(page=2, limit=2, raw_body=b"{}"))

        assert key_1 != key_2
        assert json.loads(await cache.get(key_1)) == first
        assert json.loads(await cache.get(key_2)) == second

    async def test_limit_and_body_take_part_in_key(self, listing: ListingService) -> None:
        base = await listing.cache_key(Paged(page=1, limit=2, raw_body=b"a"))

        assert base != await listing.cache_key(Paged(page=1, limit=3, raw_body=b"a"))
        assert base != await listing.cache_key(Paged(page=1, limit=2, raw_body=b"b"))
        assert base == await listing.cache_key(Paged(page=1, limit=2, raw_body=b"a"))

    async def test_key_carries_namespace_and_version(self, listing: ListingService) -> None:
        key = await listing.cache_key(Paged(page=1, limit=2))

        assert key.startswith("test:list:v0:")
        assert key.endswith(":p1:l2")


class TestInvalidation:

    async def test_invalidate_changes_keys(self, listing: ListingService) -> None:
        request = Paged(page=1, limit=2)
        before = await listing.cache_key(request)

        assert await listing.invalidate() == 1
        assert await listing.cache_key(request) != before

    async def test_invalidate_forces_refetch(self, counted_listing, counting) -> None:
        request = Paged(page=1, limit=2)
        await counted_listing.list_books(request)

        await counted_listing.invalidate()
        await counted_listing.list_books(request)

        assert len(counting.list_page_calls) == 2

    async def test_create_makes_next_listing_fresh(self, listing: ListingService, book_service) -> None:
        request = Paged(page=1, limit=2)
        stale = await listing.list_books(request)

        await book_service.create(BookCreate(**make_book(6)))
        fresh = await listing.list_books(request)

        assert stale["info"]["totalItems"] == 5
        assert fresh["info"]["totalItems"] == 6
        assert fresh["results"][0]["pathUrl"] == "book-6"

    async def test_update_and_delete_invalidate(self, listing: ListingService, book_service) -> None:
        await book_service.update(5, BookUpdate(title="Renamed"))
        # any successful write bumps the version
        assert await listing.current_version() == 1

        await book_service.delete(4)
        assert await listing.current_version() == 2

    async def test_superseded_entries_are_purged_after_ttl(self, listing: ListingService, cache, clock) -> None:
        request = Paged(page=1, limit=2)
        for _ in range(50):
            await listing.list_books(request)
            await listing.invalidate()

        clock.advance(10_000)
        await listing.list_books(request)

        # the version counter and the one live page
        assert set(cache._store) == {listing.version_key, await listing.cache_key(request)}

    async def test_failed_write_does_not_invalidate(self, listing: ListingService, book_service) -> None:
        with pytest.raises(NotFoundError):
            await book_service.delete(999)

        assert await listing.current_version() == 0


class TestEmptyPage:

    async def test_empty_page_raises_not_found_and_is_not_cached(self, store: BookStore, cache) -> None:
        listing = ListingService(store, cache, empty_page_not_found=True)

        with pytest.raises(NotFoundError):
            await listing.list_books(Paged(page=1, limit=10))

        assert len(cache) == 0

    async def test_page_beyond_range_raises_not_found(self, listing: ListingService) -> None:
        with pytest.raises(NotFoundError):
            await listing.list_books(Paged(page=4, limit=2))

    async def test_empty_page_as_success_when_policy_is_off(self, store: BookStore, cache) -> None:
        listing = ListingService(store, cache, empty_page_not_found=False)

        payload = await listing.list_books(Paged(page=1, limit=10))

        assert payload["results"] == []
        assert payload["info"]["totalPages"] == 0
        assert payload["info"]["totalItems"] == 0


class TestFailures:

    async def test_store_error_propagates(self, cache) -> None:
        store = MagicMock()
        store.list_page.side_effect = StoreError("list_page", "connection lost")
        listing = ListingService(store, cache)

        with pytest.raises(StoreError):
            await listing.list_books(Paged(page=1, limit=2))

        assert len(cache) == 0

    async def test_cache_error_propagates(self, seeded_store: BookStore) -> None:
        cache = MagicMock()

        async def broken_get(key):
            raise CacheError("get", "timeout")

        cache.get = broken_get
        listing = ListingService(seeded_store, cache)

        with pytest.raises(CacheError):
            await listing.list_books(Paged(page=1, limit=2))
