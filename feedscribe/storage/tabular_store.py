"""
Tabular Store
=============

Spreadsheet-like store of named tables with ordered rows. This is the
persistence collaborator of the pipeline: pending and archived records per
feed type, plus the generated-content reference table.
"""

import json
from typing import List, Sequence, Any

from ..database.connection import DatabaseConnection
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import StorageError, ErrorCode


class TabularStore:
    """Named tables of rows persisted in SQLite."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize tabular store.

        Args:
            db_connection: Database connection manager (schema already created)
        """
        self.db = db_connection
        self.logger = get_logger_for_component("tabular_store")

    def table_exists(self, name: str) -> bool:
        """Check whether a named table exists."""
        row = self.db.execute_one("SELECT 1 FROM sheet_tables WHERE name = ?", (name,))
        return row is not None

    def ensure_table(self, name: str, header: Sequence[str]) -> bool:
        """Create a table with the given header if it does not exist.

        Args:
            name: Table name
            header: Column names

        Returns:
            True if the table was created, False if it already existed
        """
        if self.table_exists(name):
            return False

        try:
            self.db.execute_update(
                "INSERT INTO sheet_tables (name, header) VALUES (?, ?)",
                (name, json.dumps(list(header))),
            )
        except Exception as e:
            raise StorageError(
                f"Failed to create table '{name}': {e}",
                table=name,
                error_code=ErrorCode.DATABASE_SCHEMA,
            ) from e

        self.logger.info(f"Created table '{name}' with {len(header)} columns")
        return True

    def get_header(self, name: str) -> List[str]:
        """Column names of a table."""
        row = self.db.execute_one("SELECT header FROM sheet_tables WHERE name = ?", (name,))
        if row is None:
            raise StorageError(
                f"Table '{name}' does not exist",
                table=name,
                error_code=ErrorCode.TABLE_NOT_FOUND,
            )
        return json.loads(row["header"])

    def append_rows(self, name: str, rows: Sequence[Sequence[Any]]) -> int:
        """Append rows to the end of a table.

        Args:
            name: Table name (must exist)
            rows: Rows of cell values

        Returns:
            Number of rows appended

        Raises:
            StorageError: If the table is missing or the write fails
        """
        if not rows:
            return 0

        if not self.table_exists(name):
            raise StorageError(
                f"Cannot append to missing table '{name}'",
                table=name,
                error_code=ErrorCode.TABLE_NOT_FOUND,
            )

        try:
            with self.db.transaction() as conn:
                conn.executemany(
                    "INSERT INTO sheet_rows (table_name, cells) VALUES (?, ?)",
                    [(name, json.dumps([_cell(value) for value in row])) for row in rows],
                )
        except Exception as e:
            raise StorageError(
                f"Failed to append {len(rows)} rows to '{name}': {e}",
                table=name,
                error_code=ErrorCode.DATABASE_TRANSACTION,
            ) from e

        self.logger.debug(f"Appended {len(rows)} rows to '{name}'")
        return len(rows)

    def read_rows(self, name: str) -> List[List[str]]:
        """All data rows of a table in insertion order (header excluded)."""
        rows = self.db.execute_query(
            "SELECT cells FROM sheet_rows WHERE table_name = ? ORDER BY id",
            (name,),
        )
        return [json.loads(row["cells"]) for row in rows]

    def read_column(self, name: str, col_index: int) -> List[str]:
        """Values of one column across all data rows.

        A missing table reads as empty. Rows shorter than ``col_index`` are
        skipped.

        Args:
            name: Table name
            col_index: Zero-based column index

        Returns:
            Column values in row order
        """
        if col_index < 0:
            raise ValueError("col_index must be non-negative")

        if not self.table_exists(name):
            self.logger.debug(f"Table '{name}' not found, column reads as empty")
            return []

        return [
            row[col_index]
            for row in self.read_rows(name)
            if len(row) > col_index
        ]

    def row_count(self, name: str) -> int:
        """Number of data rows in a table."""
        row = self.db.execute_one(
            "SELECT COUNT(*) AS n FROM sheet_rows WHERE table_name = ?", (name,)
        )
        return row["n"] if row else 0

    def move_all_rows(self, from_table: str, to_table: str) -> int:
        """Move every row of one table to the end of another.

        The destination is created with the source header if missing. The
        move is atomic and keeps row order.

        Returns:
            Number of rows moved
        """
        if from_table == to_table:
            raise ValueError("Source and destination tables must differ")

        if not self.table_exists(from_table):
            self.logger.info(f"Nothing to move: table '{from_table}' does not exist")
            return 0

        self.ensure_table(to_table, self.get_header(from_table))

        try:
            with self.db.transaction() as conn:
                rows = conn.execute(
                    "SELECT cells FROM sheet_rows WHERE table_name = ? ORDER BY id",
                    (from_table,),
                ).fetchall()
                conn.executemany(
                    "INSERT INTO sheet_rows (table_name, cells) VALUES (?, ?)",
                    [(to_table, row["cells"]) for row in rows],
                )
                conn.execute("DELETE FROM sheet_rows WHERE table_name = ?", (from_table,))
                moved = len(rows)
        except Exception as e:
            raise StorageError(
                f"Failed to move rows from '{from_table}' to '{to_table}': {e}",
                table=from_table,
                error_code=ErrorCode.DATABASE_TRANSACTION,
            ) from e

        self.logger.info(f"Moved {moved} rows from '{from_table}' to '{to_table}'")
        return moved

    def list_tables(self) -> List[str]:
        """Names of all tables, oldest first."""
        rows = self.db.execute_query("SELECT name FROM sheet_tables ORDER BY created_at, name")
        return [row["name"] for row in rows]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
