"""
Property Store
==============

Key/value configuration store with explicit read/write methods. Holds the
AI service credential and any operator-set properties; injected into the
pipeline instead of being read from global state.
"""

from typing import Optional, Dict

from ..database.connection import DatabaseConnection
from ..config.settings import FeedScribeSettings
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import StorageError, ErrorCode


class PropertyStore:
    """Properties persisted in SQLite with an environment fallback for secrets."""

    def __init__(self, db_connection: DatabaseConnection,
                 settings: Optional[FeedScribeSettings] = None):
        """Initialize property store.

        Args:
            db_connection: Database connection manager (schema already created)
            settings: Settings consulted when a secret has not been stored
        """
        self.db = db_connection
        self.settings = settings
        self.logger = get_logger_for_component("property_store")

    def get_property(self, key: str) -> Optional[str]:
        """Read a property, or None when unset."""
        row = self.db.execute_one("SELECT value FROM properties WHERE key = ?", (key,))
        return row["value"] if row else None

    def set_property(self, key: str, value: str) -> None:
        """Create or overwrite a property."""
        if not key:
            raise ValueError("Property key must not be empty")

        try:
            self.db.execute_update(
                """
                INSERT INTO properties (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                               updated_at = excluded.updated_at
                """,
                (key, value),
            )
        except Exception as e:
            raise StorageError(
                f"Failed to write property '{key}': {e}",
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e

        self.logger.debug(f"Property '{key}' updated")

    def delete_property(self, key: str) -> bool:
        """Remove a property. Returns True if it existed."""
        return self.db.execute_update("DELETE FROM properties WHERE key = ?", (key,)) > 0

    def get_all_properties(self) -> Dict[str, str]:
        rows = self.db.execute_query("SELECT key, value FROM properties ORDER BY key")
        return {row["key"]: row["value"] for row in rows}

    def get_secret(self, key: str) -> Optional[str]:
        """Resolve a secret: stored property first, then settings.

        Returns:
            The secret, or None if it is not configured anywhere
        """
        value = self.get_property(key)
        if value:
            return value

        if self.settings is not None and key == self.settings.ai.credential_key:
            return self.settings.ai.gemini_api_key or None

        return None

    def set_secret(self, key: str, value: str) -> None:
        """Store a secret. The value is never logged."""
        if not value:
            raise ValueError("Secret value must not be empty")
        self.set_property(key, value)
        self.logger.info(f"Secret '{key}' stored")
