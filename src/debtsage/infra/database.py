"""Engine and session plumbing for the debt store."""

from __future__ import annotations

from contextlib import contextmanager
from functools import partial
from typing import Any, Callable, ContextManager, Iterator, Tuple

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from .. import models  # noqa: F401  (registers the debt tables on SQLModel.metadata)
from ..config import BaseConfig

SessionFactory = Callable[[], ContextManager[Session]]


def enable_sqlite_pragmas(engine: Engine, busy_timeout_ms: int) -> None:
    """Enforce payment -> debt foreign keys and let SQLite writers wait for locks.

    A no-op for other backends.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_pragmas(dbapi_connection: Any, _connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
        cursor.close()


def create_db_engine(config: BaseConfig) -> Engine:
    """Engine for ``config.DATABASE_URL`` with the debt store's SQLite pragmas."""
    engine = create_engine(config.DATABASE_URL, **config.sqlalchemy_engine_options())
    enable_sqlite_pragmas(engine, config.SQLITE_BUSY_TIMEOUT_MS)
    return engine


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """One transaction: commit on success, roll back on any error."""
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_session_factory(engine: Engine) -> SessionFactory:
    """Zero-argument factory the repositories open sessions with."""
    return partial(session_scope, engine)


def bootstrap_database(config: BaseConfig) -> Tuple[Engine, SessionFactory]:
    """Create the engine, ensure the debt tables exist and return (engine, factory)."""
    engine = create_db_engine(config)
    SQLModel.metadata.create_all(engine)
    return engine, create_session_factory(engine)
