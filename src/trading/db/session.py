"""Database engine and session lifecycle.

One ``DatabaseSession`` is created at application startup, shared by every
store, and disposed at shutdown.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from trading.db.models import Base

logger = logging.getLogger(__name__)


class DatabaseSession:
    """Owns the SQLAlchemy engine and hands out transactional sessions."""

    def __init__(self, database_url: str):
        """Initialize the engine.

        Args:
            database_url: SQLAlchemy URL, e.g. ``postgresql://...`` or
                ``sqlite:///path/to.db``.
        """
        self.database_url = database_url
        self._engine = self._create_engine(database_url)
        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @staticmethod
    def _create_engine(database_url: str) -> Engine:
        if database_url.startswith("sqlite"):
            # Threads share the file; writers wait on the lock instead of failing.
            return create_engine(
                database_url,
                connect_args={"check_same_thread": False, "timeout": 30},
            )
        return create_engine(
            database_url,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_tables(self) -> None:
        """Create tables if they don't exist."""
        Base.metadata.create_all(bind=self._engine)
        logger.info("Database tables ensured")

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Get a database session with automatic commit/rollback."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()
        logger.info("Database engine disposed")
