from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bookshelf.api.books import router as books_router
from bookshelf.core.exceptions.exceptions import AppError, InfrastructureError
from bookshelf.services.book_service import BookService
from bookshelf.services.book_store import BookStore
from bookshelf.services.cache import CacheBackend, create_cache
from bookshelf.services.database import init_db
from bookshelf.services.listing_service import ListingService
from bookshelf.utils.log import app_logger


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map application errors to their HTTP status with an `{"error": ...}` body."""
    if isinstance(exc, InfrastructureError):
        app_logger.error("api.error", path=request.url.path, exc_type=type(exc).__name__, error=exc.message)
    else:
        app_logger.info("api.rejected", path=request.url.path, status_code=exc.status_code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def create_app(store: Optional[BookStore] = None, cache: Optional[CacheBackend] = None) -> FastAPI:
    """Build the API. Without arguments the configured database and cache are used."""
    owns_store = store is None
    store = store or BookStore()
    cache = cache or create_cache()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup logic
        if owns_store:
            init_db()
        app_logger.info("app.started")
        yield
        # Shutdown logic
        await cache.close()
        app_logger.info("app.stopped")

    app = FastAPI(title="Bookshelf API", lifespan=lifespan)

    listing_service = ListingService(store, cache)
    app.state.listing_service = listing_service
    app.state.book_service = BookService(store, listing_service)

    app.add_exception_handler(AppError, app_error_handler)

    @app.get("/")
    async def health_check():
        return {"status": "ok", "books": "/api/books"}

    # include routes
    app.include_router(books_router)
    return app


app = create_app()
