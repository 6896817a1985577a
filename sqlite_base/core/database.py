"""
Database connection management for SQLite data files.

This module opens the long-lived SQLAlchemy engine that the rest of the
process shares, and probes whether the backing file already exists.

- open_database(): pooled engine with bounded size, idle timeout and lifetime
- database_exists(): existence probe selecting create-vs-validate mode
"""

import logging
import time
from pathlib import Path
from typing import Optional, Union

from sqlalchemy import create_engine, event, exc, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool

from .config import Settings, get_settings, sqlite_url

logger = logging.getLogger(__name__)

_LAST_CHECKIN_KEY = "sqlite_base_last_checkin"


class DatabaseInitError(Exception):
    """Base class for every failure during database initialization."""


class DatabaseConnectionError(DatabaseInitError):
    """Raised when the database connection cannot be established."""

    def __init__(self, db_path: Union[str, Path], reason: str):
        self.db_path = str(db_path)
        self.reason = reason
        super().__init__(f"Error opening database connection to '{self.db_path}': {reason}")


class DatabaseProbeError(DatabaseInitError):
    """Raised when the database file status cannot be determined."""

    def __init__(self, db_path: Union[str, Path], reason: str):
        self.db_path = str(db_path)
        self.reason = reason
        super().__init__(f"Error checking database file status for '{self.db_path}': {reason}")


def _install_idle_timeout(engine: Engine, idle_timeout: float) -> None:
    """
    Expire pooled connections that sat idle longer than idle_timeout seconds.

    QueuePool has no idle limit of its own. Connections are stamped on checkin;
    a stale stamp on checkout raises DisconnectionError, which makes the pool
    discard that DBAPI connection and transparently open a new one.

    Expiry is lazy: an idle connection stays open in the pool until the next
    checkout reaches it or the engine is disposed. Nothing closes it on a timer.
    """

    @event.listens_for(engine, "checkin")
    def _stamp_checkin(dbapi_connection, connection_record):
        if connection_record is not None:
            connection_record.info[_LAST_CHECKIN_KEY] = time.monotonic()

    @event.listens_for(engine, "checkout")
    def _expire_idle(dbapi_connection, connection_record, connection_proxy):
        last_checkin = connection_record.info.pop(_LAST_CHECKIN_KEY, None)
        if last_checkin is None:
            return
        idle_for = time.monotonic() - last_checkin
        if idle_for > idle_timeout:
            logger.debug(f"Discarding connection idle for {idle_for:.1f}s (limit {idle_timeout}s)")
            raise exc.DisconnectionError(f"connection idle for {idle_for:.1f}s")


def create_database_engine(db_path: Union[str, Path], settings: Optional[Settings] = None) -> Engine:
    """
    Create a pooled SQLAlchemy engine for a SQLite file without connecting.

    Args:
        db_path: Path to the SQLite database file
        settings: Pool configuration (defaults to get_settings())

    Returns:
        Engine: Engine whose pool holds at most pool_size + max_overflow
        connections, recycles them after pool_recycle seconds and expires
        them after pool_idle_timeout idle seconds.
    """
    settings = settings or get_settings()

    engine = create_engine(
        sqlite_url(db_path),
        echo=settings.echo_sql,
        pool_pre_ping=True,  # Verify connections before using
        poolclass=QueuePool,
        pool_size=settings.pool_size,  # Also the max number of idle connections
        max_overflow=settings.max_overflow,
        pool_recycle=settings.pool_recycle,  # Max connection lifetime
        pool_timeout=settings.pool_timeout,
        connect_args={
            "check_same_thread": False,  # Pooled connections move between threads
        },
    )
    _install_idle_timeout(engine, settings.pool_idle_timeout)

    return engine


def open_database(db_path: Union[str, Path], settings: Optional[Settings] = None) -> Engine:
    """
    Open the database file and return a ready-to-use engine.

    The first connection is established eagerly, so the file exists on disk
    once this returns. Probe with database_exists() *before* calling this.

    Raises:
        DatabaseConnectionError: If the connection cannot be established.
            There is no retry; the caller decides whether to abort.
    """
    engine = create_database_engine(db_path, settings)

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except exc.SQLAlchemyError as e:
        engine.dispose()
        logger.error(f"Error opening database connection to '{db_path}': {e}")
        raise DatabaseConnectionError(db_path, str(e)) from e

    logger.debug(f"INIT: DB - Opened database '{db_path}'")
    return engine


def dispose_database(engine: Engine) -> None:
    """Close every pooled connection held by the engine."""
    engine.dispose()


def check_db_connection(engine: Engine) -> bool:
    """
    Check if the database connection is healthy.

    Returns:
        bool: True if a SELECT 1 round trip succeeds, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except exc.SQLAlchemyError as e:
        logger.warning(f"Database health check failed: {e}")
        return False


def database_exists(db_path: Union[str, Path]) -> bool:
    """
    Report whether the database file currently exists.

    The answer is only a hint for choosing create-vs-validate mode at
    startup: the file may appear or vanish right after the check.

    Raises:
        DatabaseProbeError: For any filesystem error other than "not found".
    """
    try:
        Path(db_path).stat()
    except FileNotFoundError:
        logger.debug(f"INIT: DB - Database file '{db_path}' not found. It will be created.")
        return False
    except OSError as e:
        logger.error(f"Error checking database file status for '{db_path}': {e}")
        raise DatabaseProbeError(db_path, str(e)) from e

    return True
