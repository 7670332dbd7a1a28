"""Set output adapters: persist match sets as named collections.

``SetOutputAdapter`` is the contract the engine materializes through.
``SqliteSetOutput`` is the reference adapter: folders and sets live in the
application database, search-backed sets keep their rules and snapshot
sets keep their member item ids.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from src.services.smart_sets.models import SmartSetRule, rule_to_dict
from src.utils.name_utils import make_unique_name, split_folder_path

if TYPE_CHECKING:
    from src.core.database import Database

__all__ = ["SetOutputAdapter", "SqliteSetOutput"]

logger = logging.getLogger("smartsets.set_output")

SEARCH_KIND = "search"
SNAPSHOT_KIND = "snapshot"


@runtime_checkable
class SetOutputAdapter(Protocol):
    """Creates named collections in the host."""

    def create_search_set(self, folder_path: str, name: str, rules: Sequence[SmartSetRule]) -> tuple[int, str]: ...

    def create_snapshot_set(self, folder_path: str, name: str, item_ids: Iterable[str]) -> tuple[int, str]: ...


class SqliteSetOutput:
    """Stores smart sets in the application database.

    Attributes:
        database: The application database.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    def ensure_folder(self, folder_path: str) -> int | None:
        """Returns the folder for a path, creating missing folders.

        Existing folders are matched case-insensitively.

        Args:
            folder_path: ``/``- or ``\\``-separated path; blank means the root.

        Returns:
            The folder_id of the last path part, or None for the root.
        """
        current: int | None = None
        for part in split_folder_path(folder_path):
            existing = self.database.find_folder(current, part)
            if existing is None:
                existing = self.database.create_folder(current, part)
                logger.debug("Created folder '%s' (id=%d)", part, existing)
            current = existing
        return current

    def create_search_set(self, folder_path: str, name: str, rules: Sequence[SmartSetRule]) -> tuple[int, str]:
        """Creates a search-backed set that stores its rules.

        Args:
            folder_path: Target folder path.
            name: Desired name (made unique within the folder).
            rules: The rules the set re-evaluates.

        Returns:
            Tuple of (set_id, final name).
        """
        folder_id = self.ensure_folder(folder_path)
        unique = make_unique_name(self.database.get_folder_child_names(folder_id), name)
        rules_json = json.dumps([rule_to_dict(r) for r in rules], ensure_ascii=False)
        set_id = self.database.create_smart_set(folder_id, unique, SEARCH_KIND, rules_json=rules_json)
        self.database.commit()
        logger.info("Created search set '%s' in '%s'", unique, folder_path)
        return set_id, unique

    def create_snapshot_set(self, folder_path: str, name: str, item_ids: Iterable[str]) -> tuple[int, str]:
        """Creates a snapshot set holding a fixed list of items.

        Args:
            folder_path: Target folder path.
            name: Desired name (made unique within the folder).
            item_ids: The member items.

        Returns:
            Tuple of (set_id, final name).
        """
        folder_id = self.ensure_folder(folder_path)
        unique = make_unique_name(self.database.get_folder_child_names(folder_id), name)
        members = sorted(set(item_ids))
        set_id = self.database.create_smart_set(folder_id, unique, SNAPSHOT_KIND, item_ids=members)
        self.database.commit()
        logger.info("Created snapshot set '%s' in '%s' with %d items", unique, folder_path, len(members))
        return set_id, unique
