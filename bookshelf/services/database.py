from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from bookshelf.config.settings import settings


def make_engine(url: str) -> Engine:
    """Create the SQLAlchemy engine for `url`.

    SQLite URLs (local runs, tests) share one connection across threads;
    everything else gets a regular connection pool.
    """
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        echo=False
    )


engine = make_engine(settings.database_url)

# session factory; the store opens one session per call so it is safe from worker threads
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(bind: Engine = engine) -> None:
    """Create missing tables (alembic is the source of truth in production)."""
    # register table models on SQLModel.metadata
    import bookshelf.models.book  # noqa: F401
    SQLModel.metadata.create_all(bind=bind)
