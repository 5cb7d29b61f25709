"""
FeedScribe Database Connection Management
========================================

SQLite connection and transaction management backing the tabular and
property stores. The pipeline is single-threaded, so one long-lived
connection is shared by all repositories built on the same manager.
"""

import sqlite3
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Generator, List

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """SQLite database connection manager."""

    def __init__(self, db_path: str = "data/feedscribe.db"):
        """Initialize database connection manager.

        Args:
            db_path: Path to SQLite database file, or ":memory:"
        """
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None

        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    def _create_connection(self) -> sqlite3.Connection:
        """Create a new SQLite connection."""
        conn = sqlite3.connect(self.db_path, timeout=30.0)

        conn.execute("PRAGMA foreign_keys = ON")
        if self.db_path != ":memory:":
            conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")

        conn.row_factory = sqlite3.Row

        logger.debug(f"Opened database connection: {self.db_path}")
        return conn

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get the shared connection.

        Usage:
            with db.get_connection() as conn:
                rows = conn.execute("SELECT * FROM sheet_tables").fetchall()
        """
        if self._conn is None:
            self._conn = self._create_connection()

        try:
            yield self._conn
        except sqlite3.Error as e:
            logger.error(f"Database connection error: {e}")
            self._conn.rollback()
            raise

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Execute operations within a database transaction.

        Usage:
            with db.transaction() as conn:
                conn.execute("INSERT INTO sheet_rows ...")
                conn.execute("UPDATE sheet_rows ...")
                # Commit on success, rollback on exception
        """
        with self.get_connection() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")
                yield conn
                conn.commit()
            except Exception as e:
                conn.rollback()
                logger.error(f"Transaction rolled back due to error: {e}")
                raise

    def execute_query(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        """Execute a SELECT query and return results."""
        with self.get_connection() as conn:
            cursor = conn.execute(query, params)
            return cursor.fetchall()

    def execute_one(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        """Execute a query and return single result."""
        with self.get_connection() as conn:
            cursor = conn.execute(query, params)
            return cursor.fetchone()

    def execute_update(self, query: str, params: tuple = ()) -> int:
        """Execute an INSERT/UPDATE/DELETE query and return affected rows."""
        with self.get_connection() as conn:
            cursor = conn.execute(query, params)
            conn.commit()
            return cursor.rowcount

    def close(self) -> None:
        """Close the shared connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug("Closed database connection")
