"""Database schema creation.

Creates the scrape session and smart set tables and records the
schema version.
"""

from __future__ import annotations

import logging
import sqlite3
import time

logger = logging.getLogger("smartsets.database")

__all__ = ["SchemaMixin"]

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at INTEGER NOT NULL,
    description TEXT
);

CREATE TABLE IF NOT EXISTS scrape_sessions (
    session_id TEXT PRIMARY KEY,
    profile_name TEXT NOT NULL DEFAULT '',
    timestamp INTEGER NOT NULL,
    items_scanned INTEGER NOT NULL DEFAULT 0,
    created_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS property_entries (
    entry_id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id TEXT NOT NULL REFERENCES scrape_sessions(session_id) ON DELETE CASCADE,
    item_id TEXT NOT NULL,
    category TEXT NOT NULL,
    property TEXT NOT NULL,
    value TEXT NOT NULL DEFAULT ''
);

CREATE INDEX IF NOT EXISTS idx_entries_session ON property_entries(session_id);

CREATE TABLE IF NOT EXISTS set_folders (
    folder_id INTEGER PRIMARY KEY AUTOINCREMENT,
    parent_id INTEGER REFERENCES set_folders(folder_id) ON DELETE CASCADE,
    name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS smart_sets (
    set_id INTEGER PRIMARY KEY AUTOINCREMENT,
    folder_id INTEGER REFERENCES set_folders(folder_id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    kind TEXT NOT NULL,
    rules TEXT NOT NULL DEFAULT '',
    created_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS smart_set_items (
    set_id INTEGER NOT NULL REFERENCES smart_sets(set_id) ON DELETE CASCADE,
    item_id TEXT NOT NULL,
    PRIMARY KEY (set_id, item_id)
);
"""


class SchemaMixin:
    """Mixin providing schema creation logic.

    Requires ConnectionBase attributes: conn, SCHEMA_VERSION.
    """

    def _ensure_schema(self) -> None:
        """Create the schema if the database is new."""
        current_version = self._get_schema_version()

        if current_version == 0:
            self._create_schema()
            self._set_schema_version(self.SCHEMA_VERSION)
        elif current_version > self.SCHEMA_VERSION:
            logger.warning(
                "Database schema version %d is newer than supported version %d",
                current_version,
                self.SCHEMA_VERSION,
            )

    def _get_schema_version(self) -> int:
        """Get current database schema version."""
        try:
            cursor = self.conn.execute("SELECT MAX(version) FROM schema_version")
            result = cursor.fetchone()
            return result[0] if result[0] is not None else 0
        except sqlite3.OperationalError:
            return 0

    def _set_schema_version(self, version: int) -> None:
        """Set database schema version."""
        self.conn.execute(
            """
            INSERT OR REPLACE INTO schema_version (version, applied_at, description)
            VALUES (?, ?, ?)
            """,
            (version, int(time.time()), "Initial smart set schema"),
        )
        self.conn.commit()

    def _create_schema(self) -> None:
        """Create the initial database schema."""
        try:
            self.conn.executescript(_SCHEMA_SQL)
            self.conn.commit()
            logger.info("Created database schema v%d", self.SCHEMA_VERSION)
        except sqlite3.Error as e:
            logger.error("Failed to create database schema: %s", e)
            raise
