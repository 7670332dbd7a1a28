"""SQLite connection for the scrape session and smart set store.

One ``Database`` instance wraps one connection. Sessions can hold many
thousands of property entries, so writes are batched by the callers and
committed explicitly; the context manager commits once on exit.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any

logger = logging.getLogger("smartsets.database")

__all__ = ["ConnectionBase"]

# Seconds to wait on a locked database (a second batch run writing sets)
_BUSY_TIMEOUT = 10.0


class ConnectionBase:
    """Base class owning the SQLite connection.

    Enables WAL and foreign keys (deleting a session or folder cascades to
    its entries, sets and memberships), then calls ``_ensure_schema()``
    from SchemaMixin.
    """

    SCHEMA_VERSION = 1

    conn: sqlite3.Connection
    db_path: Path

    def __init__(self, db_path: Path) -> None:
        """Open (and if needed create) the database.

        Args:
            db_path: Path to the SQLite file; parent folders are created.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(str(self.db_path), timeout=_BUSY_TIMEOUT)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self.conn.execute("PRAGMA journal_mode = WAL")
        logger.debug("Opened database %s", self.db_path)

        self._ensure_schema()

    def commit(self) -> None:
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> ConnectionBase:
        return self

    def __exit__(self, exc_type: Any, *args: Any) -> None:
        """Commit unless the block raised, then close."""
        if exc_type is None:
            self.commit()
        else:
            self.conn.rollback()
        self.close()
