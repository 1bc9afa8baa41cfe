"""
cakebot.database.engine — Database Connection & Async Helper
=============================================================

The ledger services are plain synchronous functions that take an
:class:`Engine`.  The bot calls them through :func:`run_db`, which moves
the work onto a worker thread; the API calls them directly from its
threadpool endpoints.

The engine is built explicitly and handed around; nothing opens a
connection at import time, so tests can point everything at an in-memory
database.

SQLite specifics:

* ``PRAGMA foreign_keys = ON`` on every connection (member rows cascade).
* ``PRAGMA journal_mode = WAL`` so readers never wait on the writer.
* Write sessions open with ``BEGIN IMMEDIATE``: the writer lock is taken
  up front, so a throw and an erasure for the same user can never
  interleave.  Reads use a plain deferred ``BEGIN``.

Usage::

    from cakebot.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    # Inside an async Cog method:
    result = await run_db(record_action, engine, user_id, guild_id, name, 5, 3)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cakebot.constants import DEFAULT_DATABASE_URL
from cakebot.database.models import Base
from cakebot.errors import StorageError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

# Execution option read by the ``begin`` hook to pick the SQLite BEGIN mode
SQLITE_BEGIN_OPTION = "cakebot_sqlite_begin"


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine(url: str | None = None, **kwargs) -> Engine:
    """Build a SQLAlchemy :class:`Engine`.

    Parameters
    ----------
    url:
        Database URL.  Falls back to the ``DATABASE_URL`` env var, then to
        ``sqlite:///cake.sqlite3`` in the working directory.
    **kwargs:
        Forwarded to :func:`sqlalchemy.create_engine` (tests pass
        ``poolclass=StaticPool`` for a shared in-memory database).

    Returns
    -------
    Engine
        A configured SQLAlchemy engine instance.
    """
    url = url or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL

    engine = create_engine(
        url,
        echo=False,        # Set True for SQL debugging
        **kwargs,
    )
    if engine.dialect.name == "sqlite":
        _configure_sqlite(engine)
    logger.info("Database engine created → %s", engine.url.database or "(memory)")
    return engine


def _configure_sqlite(engine: Engine) -> None:
    """Install the pragma and transaction hooks on a SQLite engine."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        # Disable pysqlite's own BEGIN handling; ``_on_begin`` emits it instead.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.execute("PRAGMA journal_mode = WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn) -> None:
        mode = conn.get_execution_options().get(SQLITE_BEGIN_OPTION, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")


# ---------------------------------------------------------------------------
# Schema initialization / teardown
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create all tables defined in :mod:`cakebot.database.models`.

    This is safe to call on every startup — ``CREATE TABLE IF NOT EXISTS``
    under the hood.

    .. note::

        Deployed databases can also be managed by Alembic (``alembic
        upgrade head``).  ``create_all`` is retained as a safety net for
        dev/test environments where Alembic may not have run.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")


def close_db(engine: Engine) -> None:
    """Release every pooled connection held by *engine*."""
    engine.dispose()
    logger.info("Database engine disposed.")


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine, *, write: bool = False) -> Iterator[Session]:
    """Yield a :class:`Session` that auto-commits on success and rolls back
    on exception.

    ``write=True`` takes the SQLite writer lock at ``BEGIN`` time.  Objects
    stay readable after the block (``expire_on_commit=False``), so services
    can hand detached snapshots back to callers.

    Any :class:`~sqlalchemy.exc.SQLAlchemyError` is re-raised as
    :class:`~cakebot.errors.StorageError` after the rollback.  The rollback
    is only logged at DEBUG; callers decide how loudly to report it.

    Usage::

        with get_session(engine, write=True) as session:
            session.add(User(id="123"))
            # commit happens automatically on block exit
    """
    bind = engine.execution_options(**{SQLITE_BEGIN_OPTION: "IMMEDIATE"}) if write else engine
    session = Session(bind, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.debug("Transaction rolled back: %s", exc)
        raise StorageError(str(exc)) from exc
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Await a blocking service call without stalling the event loop.

    ``await run_db(top_entries, engine, Kind.USER, SortKey.POINTS, 10)``

    No timeout is applied; the SQLite busy timeout bounds how long a write
    waits for the lock.
    """
    return await asyncio.to_thread(func, *args, **kwargs)
