"""
FeedScribe Database Schema
=========================

SQLite schema backing the stores the pipeline talks to:
- sheet_tables: named tables (one per pending/archive set, plus generated content)
- sheet_rows: ordered rows of each named table, cells stored as a JSON array
- properties: key/value configuration and secrets
"""

import sqlite3
import logging

from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


class DatabaseSchema:
    """Database schema manager for the FeedScribe SQLite database."""

    TABLES = ("sheet_tables", "sheet_rows", "properties")

    def __init__(self, db: DatabaseConnection):
        """Initialize database schema manager.

        Args:
            db: Connection manager the schema is created through
        """
        self.db = db

    def create_tables(self) -> None:
        """Create all database tables (idempotent)."""
        with self.db.get_connection() as conn:
            conn.execute("PRAGMA foreign_keys = ON")

            self._create_sheet_tables_table(conn)
            self._create_sheet_rows_table(conn)
            self._create_properties_table(conn)
            self._create_indexes(conn)

            conn.commit()
            logger.info("Database schema created successfully")

    def _create_sheet_tables_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS sheet_tables (
                name TEXT PRIMARY KEY,
                header TEXT NOT NULL DEFAULT '[]',  -- JSON array of column names
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

    def _create_sheet_rows_table(self, conn: sqlite3.Connection) -> None:
        # id order is the row order within a table
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS sheet_rows (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                table_name TEXT NOT NULL,
                cells TEXT NOT NULL,  -- JSON array of cell values
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (table_name) REFERENCES sheet_tables(name) ON UPDATE CASCADE
            )
        """
        )

    def _create_properties_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS properties (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

    def _create_indexes(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_sheet_rows_table ON sheet_rows(table_name, id)"
        )

    def verify_schema(self) -> bool:
        """Check that every expected table exists."""
        with self.db.get_connection() as conn:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            ).fetchall()

        existing = {row["name"] for row in rows}
        missing = [table for table in self.TABLES if table not in existing]
        if missing:
            logger.error(f"Missing tables: {missing}")
            return False
        return True
