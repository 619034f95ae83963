from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from sqlalchemy import String, cast, func, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlmodel import select

from bookshelf.config.settings import settings
from bookshelf.core.exceptions.exceptions import StoreError
from bookshelf.models.book import Book
from bookshelf.schemas.book import BookOptions, BookOut, BookSummary
from bookshelf.services.database import SessionLocal
from bookshelf.utils.log import app_logger


class BookStore:
    """Store adapter encapsulating every query against the `books` table.

    Each public method opens its own session, so calls are safe to run from
    worker threads (`asyncio.to_thread`). Rows are converted to pydantic
    outputs before the session closes. Any SQLAlchemy failure surfaces as
    `StoreError`; "not found" is reported with `None`/`False`, never raised.
    """

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        random_limit: int = settings.RANDOM_LIMIT,
        related_limit: int = settings.RELATED_LIMIT,
        most_viewed_limit: int = settings.MOST_VIEWED_LIMIT,
    ):
        self._session_factory = session_factory
        self.random_limit = random_limit
        self.related_limit = related_limit
        self.most_viewed_limit = most_viewed_limit

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            app_logger.error("store.error", operation=operation, exc_type=type(e).__name__, error=str(e))
            raise StoreError(operation, str(e)) from e
        finally:
            db.close()

    @staticmethod
    def _newest_first(stmt):
        # stable ordering so OFFSET/LIMIT pages never overlap
        return stmt.order_by(Book.created_at.desc(), Book.id.desc())

    @staticmethod
    def _count(db: Session) -> int:
        stmt = select(func.count()).select_from(Book)
        return int(db.execute(stmt).scalar_one())

    @staticmethod
    def _escape_like(text: str) -> str:
        # LIKE wildcards in user input match literally
        return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

    @staticmethod
    def _out(rows) -> List[BookOut]:
        return [BookOut.model_validate(r) for r in rows]

    # ------------ listing ------------

    def list_all(self) -> Tuple[List[BookOut], int]:
        """Return every book (newest first) and the total count."""
        with self._session("list_all") as db:
            rows = db.execute(self._newest_first(select(Book))).scalars().all()
            return self._out(rows), self._count(db)

    def list_page(self, offset: int, limit: int) -> Tuple[List[BookOut], int]:
        """Return one OFFSET/LIMIT page and the total number of books."""
        with self._session("list_page") as db:
            stmt = self._newest_first(select(Book)).offset(offset).limit(limit)
            rows = db.execute(stmt).scalars().all()
            return self._out(rows), self._count(db)

    # ------------ single item ------------

    def find_by_id(self, book_id: int) -> Optional[BookOut]:
        with self._session("find_by_id") as db:
            book = db.get(Book, book_id)
            return BookOut.model_validate(book) if book else None

    def find_by_slug(self, path_url: str) -> Optional[BookOut]:
        """Look a book up by its slug and count the visit."""
        with self._session("find_by_slug") as db:
            # increment in SQL so concurrent lookups do not lose counts
            stmt = (
                update(Book)
                .where(Book.path_url == path_url)
                .values(views=Book.views + 1)
                .execution_options(synchronize_session=False)
            )
            if db.execute(stmt).rowcount == 0:
                return None
            db.commit()
            book = db.execute(select(Book).where(Book.path_url == path_url)).scalars().one_or_none()
            return BookOut.model_validate(book) if book else None

    # ------------ auxiliary listings ------------

    def search(self, query: str) -> List[BookOut]:
        """Case-insensitive substring match on title, synopsis and authors."""
        pattern = f"%{self._escape_like(query.strip())}%"
        with self._session("search") as db:
            stmt = self._newest_first(
                select(Book).where(
                    or_(
                        Book.title.ilike(pattern, escape="\\"),
                        Book.synopsis.ilike(pattern, escape="\\"),
                        cast(Book.authors, String).ilike(pattern, escape="\\"),
                    )
                )
            )
            return self._out(db.execute(stmt).scalars().all())

    def group_fields(self) -> BookOptions:
        """Distinct values used to build the front-end filter menus."""
        with self._session("group_fields") as db:
            stmt = select(Book.authors, Book.category, Book.language, Book.format, Book.year)
            authors, categories, languages, formats, years = set(), set(), set(), set(), set()
            for row_authors, row_category, language, fmt, year in db.execute(stmt).all():
                authors.update(row_authors or [])
                categories.update(row_category or [])
                languages.add(language)
                formats.add(fmt)
                years.add(year)
        return BookOptions(
            authors=sorted(authors),
            categories=sorted(categories),
            languages=sorted(languages),
            formats=sorted(formats),
            years=sorted(years),
        )

    def random(self) -> List[BookOut]:
        with self._session("random") as db:
            stmt = select(Book).order_by(func.random()).limit(self.random_limit)
            return self._out(db.execute(stmt).scalars().all())

    def _sharing(self, operation: str, book_id: int, field: str) -> Optional[List[BookOut]]:
        # JSON list overlap is not portable across backends, so it is filtered here
        with self._session(operation) as db:
            base = db.get(Book, book_id)
            if base is None:
                return None
            wanted = set(getattr(base, field) or [])
            stmt = self._newest_first(select(Book).where(Book.id != book_id))
            matches = []
            for book in db.execute(stmt).scalars():
                if wanted.intersection(getattr(book, field) or []):
                    matches.append(book)
                    if len(matches) >= self.related_limit:
                        break
            return self._out(matches)

    def related(self, book_id: int) -> Optional[List[BookOut]]:
        """Books sharing at least one category; None if `book_id` is unknown."""
        return self._sharing("related", book_id, "category")

    def more_by_author(self, book_id: int) -> Optional[List[BookOut]]:
        """Books sharing at least one author; None if `book_id` is unknown."""
        return self._sharing("more_by_author", book_id, "authors")

    def most_viewed(self, detail: str) -> List[Union[BookSummary, BookOut]]:
        """Top books by views, as summaries (`detail="summary"`) or full records."""
        model = BookSummary if detail == "summary" else BookOut
        with self._session("most_viewed") as db:
            stmt = select(Book).order_by(Book.views.desc(), Book.id.asc()).limit(self.most_viewed_limit)
            return [model.model_validate(r) for r in db.execute(stmt).scalars().all()]

    # ------------ writes ------------

    def create(self, payload: Dict[str, Any]) -> Optional[BookOut]:
        """Insert a book. Returns None when the payload is empty or rejected (duplicate slug)."""
        if not payload:
            return None
        with self._session("create") as db:
            book = Book(**payload)
            db.add(book)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                app_logger.warning("store.create.rejected", path_url=payload.get("path_url"), error=str(e.orig))
                return None
            db.refresh(book)
            return BookOut.model_validate(book)

    def update(self, book_id: int, changes: Dict[str, Any]) -> Optional[BookOut]:
        """Apply a partial update. Returns None if the id is unknown or the change is rejected."""
        with self._session("update") as db:
            book = db.get(Book, book_id)
            if book is None:
                return None
            for field, value in changes.items():
                setattr(book, field, value)
            db.add(book)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                app_logger.warning("store.update.rejected", book_id=book_id, error=str(e.orig))
                return None
            db.refresh(book)
            return BookOut.model_validate(book)

    def delete(self, book_id: int) -> bool:
        with self._session("delete") as db:
            book = db.get(Book, book_id)
            if book is None:
                return False
            db.delete(book)
            db.commit()
            return True
