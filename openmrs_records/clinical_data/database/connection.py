"""Database connection manager for SQLite."""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path

from openmrs_records.config import DB_PATH

from .errors import StorageError
from .schema import SCHEMA

logger = logging.getLogger(__name__)


def get_connection(db_path: str | Path = DB_PATH) -> sqlite3.Connection:
    """Get a database connection with row factory enabled."""
    # Lazy tasks read from worker threads; Database serialises access.
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


class Database:
    """
    Shared handle to the embedded store.

    One handle is created by the application and passed to every repository.
    All access goes through ``connection()`` for reads and ``transaction()``
    for writes; both hold a re-entrant lock, so repositories may call each
    other inside a transaction and join it instead of committing early.

    Lazy read tasks started by the thread that holds the lock run on that
    thread (see ``held_by_current_thread``) rather than on the worker pool.
    """

    def __init__(self, path: str | Path = DB_PATH):
        self.path = Path(path)
        self._conn = get_connection(self.path)
        self._lock = threading.RLock()
        self._depth = 0
        self._owner: int | None = None
        self._holds = 0

    @contextmanager
    def _hold(self):
        """Acquire the lock and record the owning thread."""
        with self._lock:
            self._owner = threading.get_ident()
            self._holds += 1
            try:
                yield
            finally:
                self._holds -= 1
                if self._holds == 0:
                    self._owner = None

    def held_by_current_thread(self) -> bool:
        """True while the calling thread is inside connection() or transaction()."""
        return self._owner == threading.get_ident()

    @contextmanager
    def connection(self):
        """Yield the connection for reads, translating driver errors."""
        with self._hold():
            try:
                yield self._conn
            except sqlite3.Error as exc:
                logger.error("Read failed on %s: %s", self.path, exc)
                raise StorageError(str(exc)) from exc

    @contextmanager
    def transaction(self):
        """
        Yield the connection inside a transaction scope.

        The outermost scope commits on success and rolls back on any
        exception. Nested scopes join the outer one.
        """
        with self._hold():
            self._depth += 1
            try:
                yield self._conn
            except BaseException as exc:
                self._depth -= 1
                if self._depth == 0:
                    self._conn.rollback()
                    logger.debug("Rolled back transaction on %s", self.path)
                if isinstance(exc, sqlite3.Error):
                    logger.error("Write failed on %s: %s", self.path, exc)
                    raise StorageError(str(exc)) from exc
                raise
            else:
                self._depth -= 1
                if self._depth == 0:
                    try:
                        self._conn.commit()
                    except sqlite3.Error as exc:
                        logger.error("Commit failed on %s: %s", self.path, exc)
                        raise StorageError(str(exc)) from exc

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def init_database(db: Database) -> None:
    """Initialize the database with schema."""
    with db.transaction() as conn:
        conn.executescript(SCHEMA)
    logger.debug("Schema initialised at %s", db.path)
