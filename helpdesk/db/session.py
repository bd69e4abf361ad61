from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from helpdesk.core.config import settings
from helpdesk.core.errors import DependencyError

logger = logging.getLogger(__name__)


def _install_sqlite_hooks(engine: Engine) -> None:
    """Enable foreign keys and SAVEPOINT support on pysqlite connections."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself so nested transactions work.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str) -> Engine:
    """Create an engine with store timeouts applied for the given backend."""
    url = make_url(database_url)
    backend = url.get_backend_name()

    if backend == "sqlite":
        connect_args = {
            "check_same_thread": False,
            "timeout": settings.DB_LOCK_TIMEOUT_MS / 1000,
        }
        kwargs = {}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, connect_args=connect_args, **kwargs)
        _install_sqlite_hooks(engine)
        return engine

    connect_args = {}
    if backend.startswith("postgresql"):
        connect_args["options"] = (
            "-c timezone=utc"
            f" -c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"
            f" -c lock_timeout={settings.DB_LOCK_TIMEOUT_MS}"
        )
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_timeout=settings.DB_POOL_TIMEOUT_SECONDS,
        connect_args=connect_args,
    )


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def unit_of_work(db: Session, *, commit: bool = True) -> Iterator[Session]:
    """
    Run a block as one all-or-nothing unit against the store.

    Commits on success when `commit` is set (callers composing several
    operations pass commit=False and commit once). Any exception rolls the
    whole transaction back; store outages surface as DependencyError so the
    caller can retry safely.
    """
    try:
        yield db
        if commit:
            db.commit()
    except (OperationalError, PoolTimeoutError) as exc:
        db.rollback()
        logger.warning("Store unavailable, transaction rolled back: %s", exc.__class__.__name__)
        raise DependencyError("Customer/ticket store unavailable") from exc
    except Exception:
        db.rollback()
        raise
