"""Property snapshots harvested from a model scan.

A ``ScrapeSession`` is one immutable snapshot of (item, category, property,
value) facts. It is the property store the smart set engine reads from: the
engine never writes to it, and every index derived from it lives exactly as
long as the session does.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

__all__ = [
    "PropertyEntry",
    "PropertyStore",
    "ScrapeSession",
    "ScrapedPropertyDescriptor",
    "session_from_dict",
    "session_to_dict",
]

logger = logging.getLogger("smartsets.property_store")

_SAMPLE_VALUES = 5


@dataclass(frozen=True)
class PropertyEntry:
    """One (item, category, property, value) fact from a scan snapshot.

    Attributes:
        item_id: Stable per-item identifier.
        category: Property category (tab) name.
        property: Property name within the category.
        value: Display string of the value (may be blank).
    """

    item_id: str
    category: str
    property: str
    value: str = ""


@runtime_checkable
class PropertyStore(Protocol):
    """Read-only source of property entries for one session."""

    def entries(self) -> Iterable[PropertyEntry]: ...

    def all_item_ids(self) -> set[str]: ...


@dataclass(frozen=True)
class ScrapedPropertyDescriptor:
    """Summary of one (category, property) pair observed in a session."""

    category: str
    name: str
    item_count: int
    distinct_count: int
    sample_values: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        return f"{self.category}::{self.name}"


@dataclass
class ScrapeSession:
    """An in-memory property store for one scan snapshot.

    Attributes:
        entries_list: The raw property entries in scan order.
        session_id: Unique identifier of the snapshot (hex string).
        profile_name: Name of the scan profile that produced the snapshot.
        timestamp: Unix timestamp of the scan.
        items_scanned: Number of items the scan visited.
    """

    entries_list: list[PropertyEntry] = field(default_factory=list)
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    profile_name: str = ""
    timestamp: int = field(default_factory=lambda: int(time.time()))
    items_scanned: int = 0

    def __post_init__(self) -> None:
        if not self.items_scanned:
            self.items_scanned = len(self.all_item_ids())

    def entries(self) -> Iterator[PropertyEntry]:
        """Iterates all raw entries in scan order."""
        return iter(self.entries_list)

    def all_item_ids(self) -> set[str]:
        """Returns every non-blank item id present in the snapshot."""
        return {e.item_id for e in self.entries_list if e.item_id and e.item_id.strip()}

    @property
    def session_key(self) -> str:
        """Identity of the snapshot, used to invalidate derived indices."""
        if self.session_id:
            return self.session_id
        return f"{self.profile_name}|{self.timestamp}|{self.items_scanned}"

    @property
    def session_label(self) -> str:
        """Human-readable label such as ``"Default @ 2026-10-18 09:30"``."""
        profile = self.profile_name.strip() or "Unknown"
        if not self.timestamp:
            return profile
        stamp = time.strftime("%Y-%m-%d %H:%M", time.localtime(self.timestamp))
        return f"{profile} @ {stamp}"

    def describe_properties(self) -> list[ScrapedPropertyDescriptor]:
        """Summarizes every (category, property) pair in the snapshot.

        Keys are grouped case-insensitively; the first spelling seen is kept
        for display.

        Returns:
            Descriptors ordered by category then property name.
        """
        names: dict[str, tuple[str, str]] = {}
        items: dict[str, set[str]] = {}
        values: dict[str, dict[str, str]] = {}

        for entry in self.entries_list:
            if not entry.item_id or not entry.item_id.strip():
                continue
            key = f"{entry.category}::{entry.property}".casefold()
            names.setdefault(key, (entry.category, entry.property))
            items.setdefault(key, set()).add(entry.item_id)
            value = (entry.value or "").strip()
            if value:
                values.setdefault(key, {}).setdefault(value.casefold(), value)

        result = []
        for key, (category, name) in names.items():
            distinct = values.get(key, {})
            samples = tuple(sorted(distinct.values(), key=str.casefold)[:_SAMPLE_VALUES])
            result.append(
                ScrapedPropertyDescriptor(
                    category=category,
                    name=name,
                    item_count=len(items[key]),
                    distinct_count=len(distinct),
                    sample_values=samples,
                )
            )
        result.sort(key=lambda d: (d.category.casefold(), d.name.casefold()))
        return result


def session_to_dict(session: ScrapeSession) -> dict:
    """Serializes a ScrapeSession to a JSON-compatible dict.

    Args:
        session: The session to serialize.

    Returns:
        Dict with session metadata and an ``entries`` list.
    """
    return {
        "session_id": session.session_id,
        "profile_name": session.profile_name,
        "timestamp": session.timestamp,
        "items_scanned": session.items_scanned,
        "entries": [
            {"item_id": e.item_id, "category": e.category, "property": e.property, "value": e.value}
            for e in session.entries_list
        ],
    }


def session_from_dict(data: dict) -> ScrapeSession:
    """Deserializes a ScrapeSession from a dict.

    Entries missing an item id, category or property are skipped.

    Args:
        data: Dict as produced by ``session_to_dict``.

    Returns:
        A ScrapeSession instance.

    Raises:
        ValueError: If ``entries`` is not a list.
    """
    raw_entries = data.get("entries", [])
    if not isinstance(raw_entries, list):
        msg = "'entries' must be a list"
        raise ValueError(msg)

    entries: list[PropertyEntry] = []
    for raw in raw_entries:
        try:
            entries.append(
                PropertyEntry(
                    item_id=str(raw["item_id"]),
                    category=str(raw["category"]),
                    property=str(raw["property"]),
                    value="" if raw.get("value") is None else str(raw.get("value")),
                )
            )
        except (KeyError, TypeError, AttributeError) as exc:
            logger.warning("Skipping invalid property entry %r: %s", raw, exc)

    kwargs: dict = {
        "entries_list": entries,
        "profile_name": data.get("profile_name", ""),
        "items_scanned": data.get("items_scanned", 0),
    }
    if data.get("session_id"):
        kwargs["session_id"] = data["session_id"]
    if data.get("timestamp"):
        kwargs["timestamp"] = int(data["timestamp"])
    return ScrapeSession(**kwargs)
