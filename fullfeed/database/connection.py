"""
FullFeed Database Connection Management
=======================================

Pooled SQLite access shared by the repositories. Connections are opened
lazily up to ``pool_size``; callers that find the pool drained get an
overflow connection which is closed instead of being returned.
"""

import sqlite3
import threading
import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Generator, List, Dict, Any
from queue import LifoQueue, Empty, Full

from .schema import EXPECTED_TABLES

logger = logging.getLogger(__name__)

# PRAGMAs applied to every new connection
CONNECTION_PRAGMAS = (
    "PRAGMA foreign_keys = ON",
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
)

POOL_WAIT_SECONDS = 5.0
LOCK_TIMEOUT_SECONDS = 30.0


class DatabaseConnection:
    """Thread-safe SQLite connection pool."""

    def __init__(self, db_path: str = "data/fullfeed.db", pool_size: int = 5):
        self.db_path = Path(db_path)
        self.pool_size = pool_size
        self._idle: LifoQueue = LifoQueue(maxsize=pool_size)
        self._lock = threading.Lock()
        self._opened = 0

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=LOCK_TIMEOUT_SECONDS)
        for pragma in CONNECTION_PRAGMAS:
            conn.execute(pragma)
        conn.row_factory = sqlite3.Row

        with self._lock:
            self._opened += 1
            opened = self._opened
        logger.debug(f"Opened SQLite connection #{opened} to {self.db_path}")
        return conn

    def _acquire(self) -> sqlite3.Connection:
        try:
            return self._idle.get_nowait()
        except Empty:
            pass

        with self._lock:
            can_open = self._opened < self.pool_size
        if can_open:
            return self._open()

        started = time.monotonic()
        try:
            conn = self._idle.get(timeout=POOL_WAIT_SECONDS)
        except Empty:
            logger.warning(
                f"Connection pool exhausted after {POOL_WAIT_SECONDS:.0f}s, opening overflow connection"
            )
            return self._open()

        waited = time.monotonic() - started
        if waited > 1.0:
            logger.warning(f"Waited {waited:.2f}s for a pooled database connection")
        return conn

    def _release(self, conn: sqlite3.Connection) -> None:
        try:
            self._idle.put_nowait(conn)
        except Full:
            conn.close()
            with self._lock:
                self._opened -= 1

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Borrow a pooled connection for the duration of the block.

        Usage:
            with db.get_connection() as conn:
                rows = conn.execute("SELECT * FROM entries").fetchall()
        """
        conn = self._acquire()
        try:
            yield conn
        except sqlite3.Error as e:
            logger.error(f"Database error on {self.db_path}: {e}")
            conn.rollback()
            raise
        finally:
            self._release(conn)

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Run the block inside ``BEGIN IMMEDIATE``; commit on success, roll back otherwise."""
        with self.get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except Exception as e:
                conn.rollback()
                logger.error(f"Transaction rolled back: {e}")
                raise
            conn.commit()

    def execute_query(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        with self.get_connection() as conn:
            return conn.execute(query, params).fetchall()

    def execute_one(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        with self.get_connection() as conn:
            return conn.execute(query, params).fetchone()

    def execute_update(self, query: str, params: tuple = ()) -> int:
        """Run a write statement and commit. Returns the affected row count."""
        with self.get_connection() as conn:
            cursor = conn.execute(query, params)
            conn.commit()
            return cursor.rowcount

    def get_database_info(self) -> Dict[str, Any]:
        """Report file size, row counts and pool usage."""
        with self.get_connection() as conn:
            page_count = conn.execute("PRAGMA page_count").fetchone()[0]
            page_size = conn.execute("PRAGMA page_size").fetchone()[0]

            table_counts = {}
            for table in sorted(EXPECTED_TABLES):
                try:
                    table_counts[table] = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
                except sqlite3.OperationalError:
                    table_counts[table] = 0

        return {
            "database_size_mb": page_count * page_size / (1024 * 1024),
            "page_size": page_size,
            "table_counts": table_counts,
            "idle_connections": self._idle.qsize(),
            "open_connections": self._opened,
        }

    def close_all_connections(self) -> None:
        """Close every idle connection in the pool."""
        closed = 0
        while True:
            try:
                conn = self._idle.get_nowait()
            except Empty:
                break
            conn.close()
            closed += 1

        with self._lock:
            self._opened = max(0, self._opened - closed)
        logger.info(f"Closed {closed} database connection(s)")


_db_manager: Optional[DatabaseConnection] = None


def get_db_manager(db_path: str = "data/fullfeed.db", pool_size: int = 5) -> DatabaseConnection:
    """Return the process-wide connection pool, creating it on first use."""
    global _db_manager

    if _db_manager is None:
        _db_manager = DatabaseConnection(db_path, pool_size=pool_size)

    return _db_manager
