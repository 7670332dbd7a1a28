"""Live item repository contract and an in-memory reference host.

The smart set engine talks to the host model only through the
``LiveRepository`` protocol: run a native query, read an item's values for
one property. ``InMemoryLiveRepository`` implements the protocol over
per-item property trees, the way a host exposes them (categories holding
named properties), and is what the test-suite and offline batch runs use.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from src.core.property_store import PropertyEntry
from src.services.smart_sets.errors import HostError
from src.services.smart_sets.matching import matches_values
from src.services.smart_sets.models import Operator
from src.services.smart_sets.query_translator import (
    ALL_PREDICATES,
    NativeCondition,
    NativePredicate,
    NativeQuery,
)

__all__ = [
    "HostError",
    "InMemoryLiveRepository",
    "LiveItem",
    "LiveRepository",
]

logger = logging.getLogger("smartsets.live_repository")

_PREDICATE_TO_OPERATOR: dict[NativePredicate, Operator] = {
    NativePredicate.HAS_PROPERTY: Operator.DEFINED,
    NativePredicate.LACKS_PROPERTY: Operator.UNDEFINED,
    NativePredicate.EQUALS: Operator.EQUALS,
    NativePredicate.NOT_EQUALS: Operator.NOT_EQUALS,
    NativePredicate.CONTAINS: Operator.CONTAINS,
    NativePredicate.WILDCARD: Operator.WILDCARD,
}


@runtime_checkable
class LiveRepository(Protocol):
    """Access to the host's live items."""

    @property
    def supported_predicates(self) -> frozenset[NativePredicate]: ...

    def run_native_query(self, query: NativeQuery) -> set[str]: ...

    def read_property(self, item_id: str, category: str, prop: str) -> list[str]: ...


@dataclass
class LiveItem:
    """One live item: categories, each holding (property, value) pairs.

    Names keep the host's own spelling; lookups are case-insensitive.
    """

    item_id: str
    categories: dict[str, list[tuple[str, str]]] = field(default_factory=dict)

    def add(self, category: str, prop: str, value: str) -> None:
        self.categories.setdefault(category, []).append((prop, value))


class InMemoryLiveRepository:
    """Reference live host holding its items in memory.

    Attributes:
        items: Live items keyed by item id.
    """

    def __init__(
        self,
        items: Iterable[LiveItem] = (),
        supported_predicates: Iterable[NativePredicate] = ALL_PREDICATES,
    ) -> None:
        """Initializes the repository.

        Args:
            items: The live items.
            supported_predicates: Predicates this host executes natively.
        """
        self.items: dict[str, LiveItem] = {item.item_id: item for item in items}
        self._supported = frozenset(supported_predicates)

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[PropertyEntry],
        supported_predicates: Iterable[NativePredicate] = ALL_PREDICATES,
    ) -> InMemoryLiveRepository:
        """Builds a live host whose items mirror a set of property entries.

        Args:
            entries: Property entries (e.g. a scrape session's raw entries).
            supported_predicates: Predicates this host executes natively.

        Returns:
            A repository with one LiveItem per distinct item id.
        """
        items: dict[str, LiveItem] = {}
        for entry in entries:
            if not entry.item_id or not entry.item_id.strip():
                continue
            item = items.setdefault(entry.item_id, LiveItem(entry.item_id))
            item.add(entry.category, entry.property, entry.value)
        return cls(items.values(), supported_predicates)

    @property
    def supported_predicates(self) -> frozenset[NativePredicate]:
        return self._supported

    def run_native_query(self, query: NativeQuery) -> set[str]:
        """Executes a native query over all items.

        Args:
            query: Conjunction of native conditions.

        Returns:
            Ids of items satisfying every condition.

        Raises:
            HostError: If the query uses a predicate this host lacks.
        """
        for condition in query.conditions:
            if condition.predicate not in self._supported:
                msg = f"Predicate {condition.predicate.value} is not supported by this host"
                raise HostError(msg)

        return {
            item_id
            for item_id in self.items
            if all(self._satisfies(item_id, condition) for condition in query.conditions)
        }

    def read_property(self, item_id: str, category: str, prop: str) -> list[str]:
        """Reads all values of one property from a live item.

        Walks every category of the item and collects values whose category
        and property names match case-insensitively, since hosts may expose
        differently-cased or repeated categories.

        Args:
            item_id: The item to read.
            category: Category name.
            prop: Property name.

        Returns:
            The item's values for the key (empty when it lacks the property).

        Raises:
            HostError: If the item does not exist.
        """
        item = self.items.get(item_id)
        if item is None:
            msg = f"Unknown item: {item_id}"
            raise HostError(msg)

        wanted_category = (category or "").casefold()
        wanted_property = (prop or "").casefold()
        values: list[str] = []
        for cat_name, properties in item.categories.items():
            if (cat_name or "").casefold() != wanted_category:
                continue
            for prop_name, value in properties:
                if (prop_name or "").casefold() == wanted_property:
                    values.append(value if value is not None else "")
        return values

    def _satisfies(self, item_id: str, condition: NativeCondition) -> bool:
        values = self.read_property(item_id, condition.category, condition.property)
        return matches_values(values, _PREDICATE_TO_OPERATOR[condition.predicate], condition.value)
