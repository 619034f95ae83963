from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Unpaged(BaseModel):
    """Listing without pagination: every book, never cached."""
    model_config = ConfigDict(frozen=True)

    raw_body: bytes = b""


class Paged(BaseModel):
    """Listing of one page; `raw_body` takes part in the cache key."""
    model_config = ConfigDict(frozen=True)

    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    raw_body: bytes = b""


ListingRequest = Union[Unpaged, Paged]


class PaginationInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_items: int = Field(ge=0)
    items_per_page: int
    current_page: int
    total_pages: int
    offset: int


class PagedListing(BaseModel):
    info: PaginationInfo
    results: List[Dict[str, Any]]


class UnpagedListing(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_books: int
    results: List[Dict[str, Any]]
