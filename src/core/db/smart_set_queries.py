"""Smart set database operations.

Handles the folder tree and the saved smart sets inside it: search-backed
sets keep their rules JSON, snapshot sets keep their item memberships.
"""

from __future__ import annotations

import logging
import time

logger = logging.getLogger("smartsets.database")

__all__ = ["SmartSetMixin"]


class SmartSetMixin:
    """Mixin providing folder and smart set operations.

    Requires ConnectionBase attributes: conn. The root folder is
    represented by ``None``.
    """

    def find_folder(self, parent_id: int | None, name: str) -> int | None:
        """Finds a child folder by name (case-insensitive).

        Args:
            parent_id: The parent folder, or None for the root.
            name: Folder name to look for.

        Returns:
            The folder_id, or None if not found.
        """
        if parent_id is None:
            row = self.conn.execute(
                "SELECT folder_id FROM set_folders WHERE parent_id IS NULL AND name = ? COLLATE NOCASE",
                (name,),
            ).fetchone()
        else:
            row = self.conn.execute(
                "SELECT folder_id FROM set_folders WHERE parent_id = ? AND name = ? COLLATE NOCASE",
                (parent_id, name),
            ).fetchone()
        return row["folder_id"] if row else None

    def create_folder(self, parent_id: int | None, name: str) -> int:
        """Creates a folder under a parent.

        Args:
            parent_id: The parent folder, or None for the root.
            name: Folder name.

        Returns:
            The new folder_id.
        """
        cursor = self.conn.execute("INSERT INTO set_folders (parent_id, name) VALUES (?, ?)", (parent_id, name))
        return cursor.lastrowid or 0

    def get_folder_child_names(self, folder_id: int | None) -> list[str]:
        """Returns the names of all sub-folders and sets inside a folder.

        Args:
            folder_id: The folder to inspect, or None for the root.

        Returns:
            List of display names.
        """
        if folder_id is None:
            folders = self.conn.execute("SELECT name FROM set_folders WHERE parent_id IS NULL").fetchall()
            sets = self.conn.execute("SELECT name FROM smart_sets WHERE folder_id IS NULL").fetchall()
        else:
            folders = self.conn.execute("SELECT name FROM set_folders WHERE parent_id = ?", (folder_id,)).fetchall()
            sets = self.conn.execute("SELECT name FROM smart_sets WHERE folder_id = ?", (folder_id,)).fetchall()
        return [row["name"] for row in folders] + [row["name"] for row in sets]

    def create_smart_set(
        self,
        folder_id: int | None,
        name: str,
        kind: str,
        rules_json: str = "",
        item_ids: list[str] | None = None,
    ) -> int:
        """Creates a smart set and, for snapshots, its memberships.

        Args:
            folder_id: The containing folder, or None for the root.
            name: Display name (already made unique by the caller).
            kind: ``"search"`` or ``"snapshot"``.
            rules_json: Serialized rules for search-backed sets.
            item_ids: Member item ids for snapshot sets.

        Returns:
            The new set_id.
        """
        cursor = self.conn.execute(
            "INSERT INTO smart_sets (folder_id, name, kind, rules, created_at) VALUES (?, ?, ?, ?, ?)",
            (folder_id, name, kind, rules_json, int(time.time())),
        )
        set_id = cursor.lastrowid or 0
        if item_ids:
            self.conn.executemany(
                "INSERT OR IGNORE INTO smart_set_items (set_id, item_id) VALUES (?, ?)",
                [(set_id, item_id) for item_id in item_ids],
            )
        return set_id

    def get_smart_set(self, set_id: int) -> dict | None:
        """Retrieves a single smart set by ID.

        Args:
            set_id: The set to retrieve.

        Returns:
            Dict with set fields, or None if not found.
        """
        row = self.conn.execute("SELECT * FROM smart_sets WHERE set_id = ?", (set_id,)).fetchone()
        return dict(row) if row else None

    def get_smart_sets_in_folder(self, folder_id: int | None) -> list[dict]:
        """Retrieves all smart sets in a folder ordered by name.

        Args:
            folder_id: The folder to list, or None for the root.

        Returns:
            List of dicts with set fields.
        """
        if folder_id is None:
            cursor = self.conn.execute("SELECT * FROM smart_sets WHERE folder_id IS NULL ORDER BY name")
        else:
            cursor = self.conn.execute("SELECT * FROM smart_sets WHERE folder_id = ? ORDER BY name", (folder_id,))
        return [dict(row) for row in cursor.fetchall()]

    def get_smart_set_items(self, set_id: int) -> list[str]:
        """Retrieves the member item ids of a snapshot set.

        Args:
            set_id: The set to query.

        Returns:
            Sorted list of item ids.
        """
        cursor = self.conn.execute("SELECT item_id FROM smart_set_items WHERE set_id = ? ORDER BY item_id", (set_id,))
        return [row["item_id"] for row in cursor.fetchall()]

    def delete_smart_set(self, set_id: int) -> None:
        """Deletes a smart set and its memberships.

        Args:
            set_id: The set to delete.
        """
        self.conn.execute("DELETE FROM smart_set_items WHERE set_id = ?", (set_id,))
        self.conn.execute("DELETE FROM smart_sets WHERE set_id = ?", (set_id,))
