from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .settings import settings

logger = logging.getLogger("mealweek.db")


class Base(DeclarativeBase):
    pass


_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # Scripts and local runs share one SQLite file across threads
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


def init_engine(database_url: str | None = None) -> Engine:
    """(Re)bind the module engine and session factory to `database_url`."""
    global _engine, _session_factory
    url = database_url or settings.database_url
    _engine = create_engine(url, **_engine_options(url))
    _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=_engine)
    logger.info(f"Database engine bound to {_engine.url.render_as_string(hide_password=True)}")
    return _engine


def get_sessionmaker() -> sessionmaker:
    if _session_factory is None:
        init_engine()
    return _session_factory


def get_db() -> Iterator[Session]:
    """One session per request, closed when the request completes."""
    db = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for scripts: commits on success, rolls back on error."""
    db = get_sessionmaker()()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
