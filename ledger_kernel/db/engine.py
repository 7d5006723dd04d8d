"""
Database connection setup for the ledger.

One process-wide engine, created by ``init_engine_from_url``.  Balance
writers lock the account row (``SELECT ... FOR UPDATE``) so PostgreSQL runs
at READ COMMITTED.  SQLite backs the tests and local runs: one shared
connection so ``:memory:`` databases survive across sessions, and foreign
keys switched on.
"""

import atexit
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ledger_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def _sqlite_pragmas(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def _build_engine(database_url: str, echo: bool, pool_options: dict) -> Engine:
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        event.listen(engine, "connect", _sqlite_pragmas)
        return engine
    return create_engine(
        database_url,
        echo=echo,
        isolation_level="READ COMMITTED",
        **pool_options,
    )


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """Create the engine and session factory, replacing any previous ones.

    The pool arguments only apply to server databases.
    """
    global _engine, _session_factory

    reset_engine()
    _engine = _build_engine(
        database_url,
        echo,
        {
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_pre_ping": pool_pre_ping,
            "pool_timeout": pool_timeout,
            "pool_recycle": pool_recycle,
        },
    )
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info("engine_initialized", extra={"dialect": _engine.dialect.name, "echo": echo})
    return _engine


def _require_factory() -> sessionmaker[Session]:
    if _session_factory is None:
        raise RuntimeError("Database not initialized; call init_engine_from_url() first")
    return _session_factory


def get_engine() -> Engine:
    _require_factory()
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    return _require_factory()


def get_session() -> Session:
    return _require_factory()()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Commit on success, roll back and re-raise on any error.

    Services only flush; this is where a unit of work becomes durable::

        with session_scope() as session:
            TransferService(session).transfer(...)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    from ledger_kernel.db.base import Base
    import ledger_kernel.models  # noqa: F401  registers the tables

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    from ledger_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the current engine, if any. Tests call this between cases."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


atexit.register(reset_engine)
