from typing import Optional, List, Dict, Any
from datetime import datetime

from sqlmodel import Field, Column, DateTime, SQLModel
from sqlalchemy import JSON, Integer, Text


class Book(SQLModel, table=True):
    __tablename__ = "books"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True, nullable=False)
    # list columns are stored as JSON documents
    authors: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    synopsis: str = Field(sa_column=Column(Text, nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    category: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    year: int = Field(nullable=False)
    language: str = Field(nullable=False)
    format: str = Field(nullable=False)
    number_pages: int = Field(nullable=False)
    source_link: Optional[str] = Field(default=None)
    # public slug used by the front-end detail page
    path_url: str = Field(index=True, unique=True, nullable=False)
    image: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    views: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime, nullable=False))
