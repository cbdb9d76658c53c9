"""Database engine, session factory and declarative base."""

from __future__ import annotations

import threading
from contextlib import contextmanager, nullcontext
from typing import ContextManager, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import get_settings

Base = declarative_base()

_IN_MEMORY_SQLITE = ("sqlite://", "sqlite:///:memory:")


def _build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        # In-memory databases live on a single connection; share it.
        if database_url in _IN_MEMORY_SQLITE:
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


class DatabaseManager:
    def __init__(self, database_url: str) -> None:
        self.engine = _build_engine(database_url)
        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
        # Sessions on a shared connection must not interleave across threads.
        self._single_connection = database_url in _IN_MEMORY_SQLITE
        self._lock = threading.RLock()

    def _serialized(self) -> ContextManager:
        return self._lock if self._single_connection else nullcontext()

    @contextmanager
    def db_session(self) -> Iterator[Session]:
        """Yield a session; roll back on error and always close."""
        with self._serialized():
            db = self.SessionLocal()
            try:
                yield db
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

    def init_db(self) -> None:
        # Import models so they register on Base.metadata
        import app.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)


db_manager = DatabaseManager(get_settings().database_url)
