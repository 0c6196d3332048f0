"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import UnboundExecutionError
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.config import settings

logger = logging.getLogger(__name__)

# PostgreSQL pool settings; statement_timeout is set per connection below.
_DEFAULT_POOL_KWARGS: dict[str, Any] = {
    "pool_size": 5,
    "max_overflow": 5,
    "pool_timeout": 5,
    "pool_recycle": 300,
    "pool_pre_ping": True,
}


def _is_sqlite(db_url: str) -> bool:
    return db_url.startswith("sqlite")


def _is_in_memory_sqlite(db_url: str) -> bool:
    return db_url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in db_url


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Engine options for the dialect behind ``db_url``."""
    if _is_sqlite(db_url):
        # SQLite serializes writers; wait on a locked database instead of failing at once.
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False, "timeout": 15}}
        if _is_in_memory_sqlite(db_url):
            kwargs["poolclass"] = StaticPool
        return kwargs

    kwargs = dict(_DEFAULT_POOL_KWARGS)
    kwargs["connect_args"] = {
        "connect_timeout": 5,
        "options": f"-c statement_timeout={settings.statement_timeout_ms}",
        "application_name": "podcast_studio",
    }
    return kwargs


def build_engine(db_url: str) -> Engine:
    """Create an engine for ``db_url`` with the connection events installed."""
    new_engine = create_engine(db_url, **_build_engine_kwargs(db_url))

    @event.listens_for(new_engine, "connect")
    def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
        connection_record.info["connect_time"] = datetime.now()
        if _is_sqlite(db_url):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
        logger.debug("Database connection established")

    return new_engine


engine: Engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Create all tables on ``bind`` (the default engine when omitted)."""
    from .. import models  # noqa: F401  (register mappers on Base.metadata)

    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info("Database schema ensured on %s", target.url.render_as_string(hide_password=True))


def get_dialect_name(session: Session, default: str = "sqlite") -> str:
    """Name of the dialect behind ``session`` (``default`` if it is unbound)."""
    try:
        bind = session.get_bind()
    except UnboundExecutionError:
        return default
    return getattr(getattr(bind, "dialect", None), "name", None) or default
