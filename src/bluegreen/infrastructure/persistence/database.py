"""Database engine and session management."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import Session, sessionmaker

from bluegreen.config import DatabaseSettings
from bluegreen.infrastructure.persistence.models import Base


class DatabaseManager:
    """Manages database connections with connection pooling."""

    def __init__(self, settings: DatabaseSettings) -> None:
        self._settings = settings
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    def initialize(self) -> None:
        url = self._settings.sync_url
        pool_options = {}
        if not url.startswith("sqlite"):
            pool_options = {
                "pool_size": self._settings.pool_size,
                "max_overflow": self._settings.max_overflow,
                "pool_timeout": self._settings.pool_timeout,
            }
        self._engine = create_engine(url, pool_pre_ping=True, echo=False, **pool_options)
        self._session_factory = sessionmaker(
            bind=self._engine,
            class_=Session,
            expire_on_commit=False,
        )

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    def close(self) -> None:
        if self._engine:
            self._engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """One transaction: commits on normal exit, rolls back on any error."""
        if self._session_factory is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        with self._session_factory() as session:
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database not initialized.")
        return self._engine
