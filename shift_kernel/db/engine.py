"""
Module: shift_kernel.db.engine
Responsibility: the process-wide SQLAlchemy engine and session factory, and
    the transactional scope every SQL store call runs in.
Architecture position: Kernel > DB.  May import from db/base.py and models/.
    MUST NOT import from stores/, services/, selectors/, or domain/.

Invariants enforced:
    - One engine per process; init_engine_from_url() disposes any previous one.
    - File-backed SQLite runs in WAL mode with a busy timeout so a reader
      (a widget, a backup) never blocks a punch write.  Its parent directory
      is created on first use.
    - In-memory SQLite shares one connection (StaticPool), otherwise every
      session would see an empty database.
    - session_scope() commits on success, rolls back on any exception.

Failure modes:
    - RuntimeError if a session is requested before init_engine_from_url().
"""

import atexit
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from shift_kernel.logging_config import get_logger

logger = get_logger("db.engine")

SQLITE_BUSY_TIMEOUT_MS = 5000

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _sqlite_file(database_url: str) -> Path | None:
    """The database file for a file-backed SQLite URL, else None."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return None
    if not url.database or url.database == ":memory:" or "mode=memory" in str(url):
        return None
    return Path(url.database)


def _tune_sqlite_file(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
        cursor.close()


def init_engine_from_url(database_url: str, echo: bool = False) -> Engine:
    """
    Create the engine for ``database_url`` and make it current.

    Args:
        database_url: ``sqlite:///shifts.db`` (file), ``sqlite://`` (memory),
            or any other URL SQLAlchemy understands.
        echo: Log every SQL statement.
    """
    global _engine, _SessionFactory

    kwargs: dict = {"echo": echo, "pool_pre_ping": True}
    is_sqlite = make_url(database_url).get_backend_name() == "sqlite"
    db_file = _sqlite_file(database_url)
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if db_file is None:
            kwargs["poolclass"] = StaticPool
        else:
            db_file.parent.mkdir(parents=True, exist_ok=True)

    reset_engine()
    _engine = create_engine(database_url, **kwargs)
    if db_file is not None:
        _tune_sqlite_file(_engine)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={
            "dialect": _engine.dialect.name,
            "database": str(db_file) if db_file is not None else None,
            "echo": echo,
        },
    )
    return _engine


def _require_factory() -> sessionmaker[Session]:
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory


def get_engine() -> Engine:
    _require_factory()
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    return _require_factory()


@contextmanager
def session_scope(
    factory: sessionmaker[Session] | None = None,
) -> Generator[Session, None, None]:
    """
    One transaction: commit on normal exit, roll back and re-raise otherwise.

    Usage:
        with session_scope() as session:
            session.add(entry)
    """
    session = (factory or _require_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables(engine: Engine | None = None) -> None:
    """Create the kernel's tables if they do not exist."""
    from shift_kernel.db.base import Base
    from shift_kernel.models import import_all_models

    import_all_models()
    Base.metadata.create_all(engine or get_engine())


def drop_tables(engine: Engine | None = None) -> None:
    """Drop the kernel's tables.  Tests only."""
    from shift_kernel.db.base import Base

    Base.metadata.drop_all(engine or get_engine())


def reset_engine() -> None:
    """Dispose the current engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


atexit.register(reset_engine)
