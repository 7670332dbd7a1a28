# src/services/smart_sets/property_index.py

"""Lazily built, per-session property index.

Maps ``category::property`` (case-insensitive) to ``item_id -> values`` so
that repeated rule evaluations never rescan the property store.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

from src.services.smart_sets.cancellation import NEVER_CANCELLED, CancellationToken

if TYPE_CHECKING:
    from src.core.property_store import PropertyStore

__all__ = ["PropertyIndex", "index_key"]

logger = logging.getLogger("smartsets.index")

ItemValues = Mapping[str, tuple[str, ...]]


def index_key(category: str, prop: str) -> str:
    """Returns the case-insensitive cache key for a (category, property) pair."""
    return f"{category or ''}::{prop or ''}".casefold()


class PropertyIndex:
    """Per-session cache of property indices built from one property store.

    Indices are built on first access by a single linear scan and are
    read-only afterwards. Builds are serialized by a lock so a key is never
    computed twice; readers of already built keys do not lock.

    Attributes:
        store: The property store the indices are derived from.
    """

    def __init__(self, store: PropertyStore) -> None:
        """Initializes an empty index over a property store.

        Args:
            store: The session's property store.
        """
        self.store = store
        self._indices: dict[str, ItemValues] = {}
        self._all_item_ids: frozenset[str] | None = None
        self._build_lock = threading.Lock()

    @property
    def cached_keys(self) -> list[str]:
        return list(self._indices)

    def all_item_ids(self) -> frozenset[str]:
        """Returns the full item-id universe of the store (cached)."""
        if self._all_item_ids is None:
            with self._build_lock:
                if self._all_item_ids is None:
                    self._all_item_ids = frozenset(self.store.all_item_ids())
        return self._all_item_ids

    def get_index(
        self,
        category: str,
        prop: str,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> ItemValues | None:
        """Returns the item -> values index for one (category, property).

        Args:
            category: Property category (matched case-insensitively).
            prop: Property name (matched case-insensitively).
            cancel: Token checked while scanning the store.

        Returns:
            A read-only mapping of item id to its values, or None when the
            build was cancelled (nothing is cached in that case).
        """
        key = index_key(category, prop)
        cached = self._indices.get(key)
        if cached is not None:
            return cached

        with self._build_lock:
            cached = self._indices.get(key)
            if cached is not None:
                return cached

            built = self._build(category, prop, cancel)
            if built is None:
                logger.debug("Index build for %s cancelled", key)
                return None

            self._indices[key] = built
            logger.debug("Built index for %s (%d items)", key, len(built))
            return built

    def clear(self) -> None:
        """Drops every cached index."""
        with self._build_lock:
            self._indices.clear()
            self._all_item_ids = None

    def _build(self, category: str, prop: str, cancel: CancellationToken) -> ItemValues | None:
        """Scans the store once, collecting values for the requested key.

        Args:
            category: Property category.
            prop: Property name.
            cancel: Token checked once per scanned entry.

        Returns:
            The built read-only index, or None if cancelled.
        """
        wanted_category = (category or "").casefold()
        wanted_property = (prop or "").casefold()
        collected: dict[str, list[str]] = {}

        for entry in self.store.entries():
            if cancel.cancelled:
                return None

            if (entry.category or "").casefold() != wanted_category:
                continue
            if (entry.property or "").casefold() != wanted_property:
                continue

            item = entry.item_id or ""
            if not item.strip():
                continue

            collected.setdefault(item, []).append(entry.value or "")

        return MappingProxyType({item: tuple(values) for item, values in collected.items()})
