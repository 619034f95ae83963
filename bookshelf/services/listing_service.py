import asyncio
import hashlib
import json
from typing import Any, Dict, List

from bookshelf.config.settings import settings
from bookshelf.core.exceptions.exceptions import NotFoundError
from bookshelf.schemas.book import BookOut
from bookshelf.schemas.listing import ListingRequest, Paged, PagedListing, UnpagedListing
from bookshelf.services.book_store import BookStore
from bookshelf.services.cache import CacheBackend
from bookshelf.services.pagination import compute_pagination, offset_for
from bookshelf.utils.log import app_logger


class ListingService:
    """Answers "list books" requests with a read-through cache for paged listings.

    - Unpaged listings always go to the store and never touch the cache.
    - Paged listings are looked up under a key derived from the request body,
      page, limit and the current listing version; a miss queries the store
      and stores the payload with a single set-with-TTL.
    - `invalidate()` bumps the listing version, so every cached page becomes
      unreachable at once and ages out through its TTL.

    There is no locking and no deduplication of concurrent misses: two
    concurrent misses both query the store and the last write wins.
    """

    def __init__(
        self,
        store: BookStore,
        cache: CacheBackend,
        ttl_seconds: int = settings.LISTING_CACHE_TTL,
        namespace: str = settings.CACHE_NAMESPACE,
        empty_page_not_found: bool = settings.EMPTY_PAGE_NOT_FOUND,
    ):
        self.store = store
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.namespace = namespace
        self.empty_page_not_found = empty_page_not_found

    @property
    def version_key(self) -> str:
        return f"{self.namespace}:list:version"

    async def current_version(self) -> int:
        raw = await self.cache.get(self.version_key)
        return int(raw) if raw else 0

    async def cache_key(self, request: Paged) -> str:
        digest = hashlib.sha256(request.raw_body).hexdigest()
        version = await self.current_version()
        return f"{self.namespace}:list:v{version}:{digest}:p{request.page}:l{request.limit}"

    @staticmethod
    def _serialize(records: List[BookOut]) -> List[Dict[str, Any]]:
        return [r.model_dump(by_alias=True, mode="json") for r in records]

    async def list_books(self, request: ListingRequest) -> Dict[str, Any]:
        if not isinstance(request, Paged):
            results, total = await asyncio.to_thread(self.store.list_all)
            app_logger.debug("listing.unpaged", total=total)
            return UnpagedListing(total_books=total, results=self._serialize(results)).model_dump(by_alias=True)

        key = await self.cache_key(request)
        cached = await self.cache.get(key)
        if cached is not None:
            app_logger.debug("listing.cache.hit", key=key)
            return json.loads(cached)

        app_logger.debug("listing.cache.miss", key=key)
        offset = offset_for(request.page, request.limit)
        results, total = await asyncio.to_thread(self.store.list_page, offset, request.limit)
        info = compute_pagination(request.page, request.limit, total)
        payload = PagedListing(info=info, results=self._serialize(results)).model_dump(by_alias=True)

        if not results and self.empty_page_not_found:
            raise NotFoundError("no more books found")

        await self.cache.set(key, json.dumps(payload), ttl=self.ttl_seconds)
        return payload

    async def invalidate(self) -> int:
        """Make every cached listing stale; returns the new listing version."""
        version = await self.cache.incr(self.version_key)
        app_logger.info("listing.cache.invalidated", version=version)
        return version
