"""Database engines and session management."""

from contextlib import contextmanager
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool

from toolforge.infra.config import config


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    SQLite gets a single shared connection (in-memory databases would
    otherwise be empty per connection); everything else is pooled.
    """
    if url.startswith("sqlite"):
        return create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=echo,
        )

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=5,  # Number of connections to maintain
        max_overflow=10,  # Max connections beyond pool_size
        pool_timeout=30,  # Seconds to wait for connection from pool
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_pre_ping=True,  # Verify connections before using
        echo=echo,
    )


engine = create_db_engine(config.DATABASE_URL, echo=config.DEBUG)

# Sampled data lives in the catalog database unless configured otherwise
if config.DATA_SOURCE_URL == config.DATABASE_URL:
    data_engine = engine
else:
    data_engine = create_db_engine(config.DATA_SOURCE_URL, echo=config.DEBUG)

SessionLocal = sessionmaker(autoflush=False, bind=engine)


def session_scope_for(factory: sessionmaker):
    """Build a transactional session context manager over a session factory."""

    @contextmanager
    def session_scope() -> Generator[Session, None, None]:
        session = factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return session_scope


get_db_session = session_scope_for(SessionLocal)
