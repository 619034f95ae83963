"""
Bookshelf API: test configuration and shared fixtures

Every test runs against a fresh in-memory SQLite database and the in-process
cache backend. Redis-backed tests live in test_cache.py and skip themselves
when no server is reachable.
"""

import os
from typing import Any, Dict

# Set test environment before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from bookshelf.main import create_app
from bookshelf.services.book_service import BookService
from bookshelf.services.book_store import BookStore
from bookshelf.services.cache import MemoryCache
from bookshelf.services.database import init_db, make_engine
from bookshelf.services.listing_service import ListingService


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_book(n: int, **overrides: Any) -> Dict[str, Any]:
    """Build a valid create payload (snake_case) for book number `n`."""
    payload = {
        "title": f"Book {n}",
        "authors": [f"Author {n % 3}"],
        "synopsis": f"Synopsis of book {n}",
        "description": None,
        "year": 1990 + n,
        "category": [f"Category {n % 2}"],
        "number_pages": 100 + n,
        "source_link": None,
        "language": "es" if n % 2 else "en",
        "format": "pdf",
        "path_url": f"book-{n}",
        "image": {"url": [1, 2, 3], "public_id": f"img-{n}"},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    engine.dispose()


@pytest.fixture
def store(session_factory) -> BookStore:
    return BookStore(session_factory, random_limit=3, related_limit=5, most_viewed_limit=3)


@pytest.fixture
def seeded_store(store: BookStore) -> BookStore:
    """Store holding books 1..5."""
    for n in range(1, 6):
        store.create(make_book(n))
    return store


@pytest.fixture
def cache(clock: FakeClock) -> MemoryCache:
    return MemoryCache(clock=clock)


@pytest.fixture
def listing(seeded_store: BookStore, cache: MemoryCache) -> ListingService:
    return ListingService(seeded_store, cache, ttl_seconds=300, namespace="test", empty_page_not_found=True)


@pytest.fixture
def book_service(seeded_store: BookStore, listing: ListingService) -> BookService:
    return BookService(seeded_store, listing)


@pytest.fixture
def client(seeded_store: BookStore, cache: MemoryCache):
    app = create_app(store=seeded_store, cache=cache)
    with TestClient(app) as test_client:
        yield test_client
