"""Engine and session plumbing for the sync store.

Postgres gets a bounded connection pool; SQLite (tests, local runs) gets the
pool it needs to behave like a single database.
"""

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from src.shared.config import config

MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def create_db_engine(url: str | None = None, echo: bool = False) -> Engine:
    """Create the SQLAlchemy engine (Postgres by default, from Config)."""
    url = url or config.database_url

    # In-memory SQLite must share a single connection or every checkout sees an empty DB
    if url in MEMORY_URLS:
        return create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=echo,
        )
    if url.startswith("sqlite"):
        return create_engine(url, echo=echo)

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
        echo=echo,
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@contextmanager
def session_scope(session_factory: sessionmaker):
    """One unit of work: commit on success, roll back and re-raise on error."""
    session: Session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
