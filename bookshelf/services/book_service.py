import asyncio
from typing import Any, Dict, List

from bookshelf.core.exceptions.exceptions import BadRequestError, InvalidDetailError, NotFoundError
from bookshelf.schemas.book import BookCreate, BookUpdate, DetailEnum
from bookshelf.services.book_store import BookStore
from bookshelf.services.listing_service import ListingService
from bookshelf.utils.log import app_logger


def _dump(record) -> Dict[str, Any]:
    return record.model_dump(by_alias=True, mode="json")


class BookService:
    """Single-item reads, auxiliary listings and writes.

    Lookups that miss raise `NotFoundError`, rejected input raises
    `BadRequestError`; store and cache failures propagate untouched.
    Every successful write invalidates the listing cache.
    """

    def __init__(self, store: BookStore, listing: ListingService):
        self.store = store
        self.listing = listing

    async def find_by_id(self, book_id: int) -> Dict[str, Any]:
        book = await asyncio.to_thread(self.store.find_by_id, book_id)
        if book is None:
            raise NotFoundError("book not found")
        return _dump(book)

    async def find_by_slug(self, path_url: str) -> Dict[str, Any]:
        book = await asyncio.to_thread(self.store.find_by_slug, path_url)
        if book is None:
            raise NotFoundError("book not found")
        return _dump(book)

    async def search(self, query: str) -> List[Dict[str, Any]]:
        if not query or not query.strip():
            raise BadRequestError("search query is required")
        results = await asyncio.to_thread(self.store.search, query)
        if not results:
            raise NotFoundError(f"no results found for: {query}")
        return [_dump(r) for r in results]

    async def group_fields(self) -> Dict[str, Any]:
        options = await asyncio.to_thread(self.store.group_fields)
        return options.model_dump()

    async def random(self) -> List[Dict[str, Any]]:
        return [_dump(r) for r in await asyncio.to_thread(self.store.random)]

    async def related(self, book_id: int) -> List[Dict[str, Any]]:
        results = await asyncio.to_thread(self.store.related, book_id)
        if results is None:
            raise NotFoundError("book not found")
        return [_dump(r) for r in results]

    async def more_by_author(self, book_id: int) -> List[Dict[str, Any]]:
        results = await asyncio.to_thread(self.store.more_by_author, book_id)
        if results is None:
            raise NotFoundError("book not found")
        return [_dump(r) for r in results]

    async def most_viewed(self, detail: str) -> List[Dict[str, Any]]:
        try:
            detail = DetailEnum(detail).value
        except ValueError:
            raise InvalidDetailError(detail)
        return [_dump(r) for r in await asyncio.to_thread(self.store.most_viewed, detail)]

    async def create(self, payload: BookCreate) -> Dict[str, Any]:
        book = await asyncio.to_thread(self.store.create, payload.model_dump())
        if book is None:
            raise BadRequestError("could not create the book, the request is empty or conflicts with an existing book")
        app_logger.info("book.created", book_id=book.id, path_url=book.path_url)
        await self.listing.invalidate()
        return _dump(book)

    async def update(self, book_id: int, payload: BookUpdate) -> Dict[str, Any]:
        changes = payload.model_dump(exclude_unset=True)
        book = await asyncio.to_thread(self.store.update, book_id, changes)
        if book is None:
            raise BadRequestError("could not update the book")
        app_logger.info("book.updated", book_id=book_id, fields=sorted(changes))
        await self.listing.invalidate()
        return _dump(book)

    async def delete(self, book_id: int) -> Dict[str, Any]:
        deleted = await asyncio.to_thread(self.store.delete, book_id)
        if not deleted:
            raise NotFoundError("book not found")
        app_logger.info("book.deleted", book_id=book_id)
        await self.listing.invalidate()
        return {"success": {"message": "book deleted"}}
