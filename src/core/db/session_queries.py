"""Scrape session database operations.

Stores property snapshots (sessions and their raw entries) so that a
scan can be evaluated again without re-scanning the model.
"""

from __future__ import annotations

import logging
import time

from src.core.property_store import PropertyEntry, ScrapeSession

logger = logging.getLogger("smartsets.database")

__all__ = ["ScrapeSessionMixin"]


class ScrapeSessionMixin:
    """Mixin providing scrape session operations.

    Requires ConnectionBase attributes: conn.
    """

    def save_session(self, session: ScrapeSession) -> int:
        """Stores a session and all its entries, replacing any previous copy.

        Args:
            session: The session to store.

        Returns:
            Number of entries written.
        """
        self.conn.execute("DELETE FROM scrape_sessions WHERE session_id = ?", (session.session_id,))
        self.conn.execute(
            """
            INSERT INTO scrape_sessions (session_id, profile_name, timestamp, items_scanned, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                session.session_id,
                session.profile_name,
                session.timestamp,
                session.items_scanned,
                int(time.time()),
            ),
        )
        rows = [(session.session_id, e.item_id, e.category, e.property, e.value) for e in session.entries_list]
        self.conn.executemany(
            "INSERT INTO property_entries (session_id, item_id, category, property, value) VALUES (?, ?, ?, ?, ?)",
            rows,
        )
        logger.info("Stored session %s (%s) with %d entries", session.session_id, session.profile_name, len(rows))
        return len(rows)

    def load_session(self, session_id: str) -> ScrapeSession | None:
        """Loads a session with all its entries.

        Args:
            session_id: The session to load.

        Returns:
            The ScrapeSession, or None if not found.
        """
        row = self.conn.execute("SELECT * FROM scrape_sessions WHERE session_id = ?", (session_id,)).fetchone()
        if not row:
            return None

        cursor = self.conn.execute(
            "SELECT item_id, category, property, value FROM property_entries WHERE session_id = ? ORDER BY entry_id",
            (session_id,),
        )
        entries = [PropertyEntry(r["item_id"], r["category"], r["property"], r["value"]) for r in cursor.fetchall()]
        return ScrapeSession(
            entries_list=entries,
            session_id=row["session_id"],
            profile_name=row["profile_name"],
            timestamp=row["timestamp"],
            items_scanned=row["items_scanned"],
        )

    def get_latest_session(self, profile_name: str | None = None) -> ScrapeSession | None:
        """Loads the most recent session, optionally for one profile.

        Args:
            profile_name: Restrict to this profile (case-insensitive) when given.

        Returns:
            The newest ScrapeSession, or None if there is none.
        """
        if profile_name:
            row = self.conn.execute(
                """
                SELECT session_id FROM scrape_sessions
                WHERE profile_name = ? COLLATE NOCASE
                ORDER BY timestamp DESC LIMIT 1
                """,
                (profile_name,),
            ).fetchone()
        else:
            row = self.conn.execute("SELECT session_id FROM scrape_sessions ORDER BY timestamp DESC LIMIT 1").fetchone()
        return self.load_session(row["session_id"]) if row else None

    def list_sessions(self) -> list[dict]:
        """Lists stored sessions without their entries, newest first.

        Returns:
            List of dicts with session_id, profile_name, timestamp, items_scanned.
        """
        cursor = self.conn.execute(
            "SELECT session_id, profile_name, timestamp, items_scanned FROM scrape_sessions ORDER BY timestamp DESC"
        )
        return [dict(row) for row in cursor.fetchall()]

    def delete_session(self, session_id: str) -> None:
        """Deletes a session and its entries.

        Args:
            session_id: The session to delete.
        """
        self.conn.execute("DELETE FROM property_entries WHERE session_id = ?", (session_id,))
        self.conn.execute("DELETE FROM scrape_sessions WHERE session_id = ?", (session_id,))
