"""Request and response models for book records.

Field names are snake_case in Python and camelCase on the wire
(``numberPages``, ``pathUrl``...). ``image.public_id`` keeps the name used by
the image host.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from validators import url as validate_url
from validators.utils import ValidationError


class DetailEnum(str, Enum):
    SUMMARY = "summary"
    FULL = "full"


class BookImage(BaseModel):
    url: List[int]
    public_id: str


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _non_blank_items(values: List[str], field: str) -> List[str]:
    cleaned = [v.strip() for v in values]
    if not cleaned or any(not v for v in cleaned):
        raise ValueError(f"{field} must be a non-empty list of non-empty strings")
    return cleaned


def _check_source_link(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    try:
        if validate_url(value) is not True:
            raise ValueError(f"sourceLink is not a valid URL: {value}")
    except ValidationError:
        raise ValueError(f"sourceLink is not a valid URL: {value}")
    return value


class BookCreate(_CamelModel):
    title: str = Field(min_length=1)
    authors: List[str]
    synopsis: str = Field(min_length=1)
    description: Optional[str] = None
    year: int = Field(ge=1800, le=2050)
    category: List[str]
    # 49 is the minimum page count for a publication to count as a book
    number_pages: int = Field(ge=49)
    source_link: Optional[str] = None
    language: str = Field(min_length=1)
    format: str = Field(min_length=1)
    path_url: str = Field(min_length=1)
    image: BookImage

    @field_validator("authors")
    @classmethod
    def _authors(cls, v: List[str]) -> List[str]:
        return _non_blank_items(v, "authors")

    @field_validator("category")
    @classmethod
    def _category(cls, v: List[str]) -> List[str]:
        return _non_blank_items(v, "category")

    @field_validator("source_link")
    @classmethod
    def _source_link(cls, v: Optional[str]) -> Optional[str]:
        return _check_source_link(v)


class BookUpdate(_CamelModel):
    """Partial update: only the fields sent by the client are applied."""

    title: Optional[str] = Field(default=None, min_length=1)
    authors: Optional[List[str]] = None
    synopsis: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1800, le=2050)
    category: Optional[List[str]] = None
    number_pages: Optional[int] = Field(default=None, ge=49)
    source_link: Optional[str] = None
    language: Optional[str] = Field(default=None, min_length=1)
    format: Optional[str] = Field(default=None, min_length=1)
    path_url: Optional[str] = Field(default=None, min_length=1)
    image: Optional[BookImage] = None

    @field_validator("authors")
    @classmethod
    def _authors(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return None if v is None else _non_blank_items(v, "authors")

    @field_validator("category")
    @classmethod
    def _category(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return None if v is None else _non_blank_items(v, "category")

    @field_validator("source_link")
    @classmethod
    def _source_link(cls, v: Optional[str]) -> Optional[str]:
        return _check_source_link(v)


class BookOut(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    title: str
    authors: List[str]
    synopsis: str
    description: Optional[str] = None
    year: int
    category: List[str]
    number_pages: int
    source_link: Optional[str] = None
    language: str
    format: str
    path_url: str
    image: BookImage
    views: int = 0
    created_at: Optional[datetime] = None


class BookSummary(_CamelModel):
    """Card-sized projection used by the most-viewed listing."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    title: str
    authors: List[str]
    path_url: str
    image: BookImage
    views: int = 0


class BookOptions(BaseModel):
    authors: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    formats: List[str] = Field(default_factory=list)
    years: List[int] = Field(default_factory=list)
