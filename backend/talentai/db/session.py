# backend/talentai/db/session.py
"""
SQLAlchemy session/engine bootstrap.
- Reads DATABASE_URL from env (optional).
- Exposes: Base, engine, SessionLocal, DB_ENABLED, make_session_factory(), session_scope(), ensure_tables().
- Keeps the app fail-open: if DATABASE_URL is missing or invalid, the SQL store is
  disabled and the API falls back to the in-memory candidate store.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session, DeclarativeBase
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# --- config from env ---------------------------------------------------------

DATABASE_URL = (os.getenv("DATABASE_URL") or "").strip()
DB_ECHO = (os.getenv("DB_ECHO") or "false").lower() == "true"

# --- SQLAlchemy base ---------------------------------------------------------

class Base(DeclarativeBase):
    pass

# --- engine & session --------------------------------------------------------

def make_engine(url: str, echo: bool = False) -> Engine:
    if url == "sqlite://" or (url.startswith("sqlite") and ":memory:" in url):
        # one shared connection so every session sees the same in-memory db
        return create_engine(
            url, echo=echo, future=True,
            connect_args={"check_same_thread": False}, poolclass=StaticPool,
        )
    return create_engine(url, echo=echo, pool_pre_ping=True, future=True)


def make_session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=bind, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False)


engine: Optional[Engine] = None
SessionLocal: Optional[sessionmaker[Session]] = None
DB_ENABLED = False

if DATABASE_URL:
    try:
        engine = make_engine(DATABASE_URL, echo=DB_ECHO)
        SessionLocal = make_session_factory(engine)
        DB_ENABLED = True
    except Exception as e:
        # Fail-open: API should still run without DB
        logger.warning("could not initialize engine: %s", e)
        engine = None
        SessionLocal = None
        DB_ENABLED = False
else:
    logger.info("DATABASE_URL not set; using the in-memory candidate store.")

# --- helpers ----------------------------------------------------------------

@contextmanager
def session_scope(factory: Optional[sessionmaker[Session]] = None) -> Iterator[Session]:
    """
    Context manager for a DB session: commit on success, rollback on error.
    Example:
        with session_scope(factory) as s:
            s.add(obj)
    """
    factory = factory or SessionLocal
    if factory is None:
        raise RuntimeError("Database is not enabled (missing DATABASE_URL)")
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def ensure_tables(bind: Optional[Engine] = None) -> None:
    """
    Create tables if needed. Import models lazily to avoid circulars.
    """
    bind = bind or engine
    if bind is None:
        return
    # local import to prevent circular import during module import
    from . import models  # noqa: F401
    Base.metadata.create_all(bind=bind)


__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "DB_ENABLED",
    "make_engine",
    "make_session_factory",
    "session_scope",
    "ensure_tables",
]
