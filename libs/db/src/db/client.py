"""SQLAlchemy engine/session helpers shared by the workspace.

Usage
-----
from db.client import session_scope

with session_scope() as s:
    s.add(...)

Engines are created lazily, one per database URL, and cached for the life of
the process. The URL is the explicit ``database_url`` argument or the
``DATABASE_URL`` environment variable. SQLite connections run with
``PRAGMA foreign_keys = ON`` so ``ON DELETE SET NULL`` matches Postgres.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

# url -> (engine, session factory)
_REGISTRY: dict[str, tuple[Engine, sessionmaker[Session]]] = {}


def resolve_database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; cannot initialize database client")
    return url


def _on_sqlite_connect(dbapi_conn, _record) -> None:  # pragma: no cover - tiny bridge
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def _entry(database_url: str | None) -> tuple[Engine, sessionmaker[Session]]:
    url = resolve_database_url(database_url)
    cached = _REGISTRY.get(url)
    if cached is not None:
        return cached
    engine = create_engine(url, pool_pre_ping=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _on_sqlite_connect)
    factory = sessionmaker(bind=engine, expire_on_commit=False, class_=Session)
    _REGISTRY[url] = (engine, factory)
    return engine, factory


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the cached engine for the resolved URL, creating it on first use."""

    return _entry(database_url)[0]


def get_session(*, database_url: str | None = None) -> Session:
    """Return a new session bound to the engine for the resolved URL."""

    return _entry(database_url)[1]()


def reset_engine() -> None:
    """Dispose every cached engine (tests, or after forking a worker)."""

    while _REGISTRY:
        _url, (engine, _factory) = _REGISTRY.popitem()
        engine.dispose()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Transactional scope: commit on success, roll back and re-raise on error."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "get_engine",
    "get_session",
    "reset_engine",
    "resolve_database_url",
    "session_scope",
]
