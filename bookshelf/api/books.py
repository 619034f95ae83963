from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request, status

from bookshelf.middleware.pagination import Pagination
from bookshelf.schemas.book import BookCreate, BookUpdate
from bookshelf.services.book_service import BookService
from bookshelf.services.listing_service import ListingService

router = APIRouter(prefix="/api", tags=["Books"])


def get_listing_service(request: Request) -> ListingService:
    return request.app.state.listing_service


def get_book_service(request: Request) -> BookService:
    return request.app.state.book_service


@router.get("/books")
async def list_books(
    request: Request,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    listing: ListingService = Depends(get_listing_service),
) -> Dict[str, Any]:
    """List books.

    With a positive `page` and `limit` the response is `{info, results}` and is
    served through the listing cache; otherwise `{totalBooks, results}` with
    every book, straight from the store.
    """
    raw_body = await request.body()
    listing_request = Pagination().resolve(page, limit, raw_body)
    return await listing.list_books(listing_request)


@router.get("/books/search")
async def search_books(q: Optional[str] = None, books: BookService = Depends(get_book_service)) -> List[Dict[str, Any]]:
    return await books.search(q)


@router.get("/books/options")
async def book_options(books: BookService = Depends(get_book_service)) -> Dict[str, Any]:
    """Distinct authors, categories, languages, formats and years."""
    return await books.group_fields()


@router.get("/books/random")
async def random_books(books: BookService = Depends(get_book_service)) -> List[Dict[str, Any]]:
    return await books.random()


@router.get("/books/most-viewed")
async def most_viewed_books(
    detail: Optional[str] = None, books: BookService = Depends(get_book_service)
) -> List[Dict[str, Any]]:
    """Most viewed books; `detail` must be `summary` or `full`."""
    return await books.most_viewed(detail)


@router.get("/books/slug/{path_url}")
async def get_book_by_slug(path_url: str, books: BookService = Depends(get_book_service)) -> Dict[str, Any]:
    return await books.find_by_slug(path_url)


@router.get("/books/{book_id}")
async def get_book(book_id: int, books: BookService = Depends(get_book_service)) -> Dict[str, Any]:
    return await books.find_by_id(book_id)


@router.get("/books/{book_id}/related")
async def related_books(book_id: int, books: BookService = Depends(get_book_service)) -> List[Dict[str, Any]]:
    return await books.related(book_id)


@router.get("/books/{book_id}/more-by-author")
async def more_books_by_author(book_id: int, books: BookService = Depends(get_book_service)) -> List[Dict[str, Any]]:
    return await books.more_by_author(book_id)


@router.post("/books", status_code=status.HTTP_201_CREATED)
async def create_book(payload: BookCreate, books: BookService = Depends(get_book_service)) -> Dict[str, Any]:
    return await books.create(payload)


@router.put("/books/{book_id}")
async def update_book(
    book_id: int, payload: BookUpdate, books: BookService = Depends(get_book_service)
) -> Dict[str, Any]:
    return await books.update(book_id, payload)


@router.delete("/books/{book_id}")
async def delete_book(book_id: int, books: BookService = Depends(get_book_service)) -> Dict[str, Any]:
    return await books.delete(book_id)
