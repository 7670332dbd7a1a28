# src/services/smart_sets/inference.py

"""Rule suggestions inferred from a selection of items."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.services.smart_sets.matching import is_blank
from src.services.smart_sets.models import Operator, SmartSetRule

if TYPE_CHECKING:
    from src.core.property_store import PropertyStore

__all__ = ["MIN_COVERAGE", "RuleSuggestion", "suggest_rules"]

logger = logging.getLogger("smartsets.inference")

MIN_COVERAGE = 0.75


@dataclass(frozen=True)
class RuleSuggestion:
    """A proposed rule and how much of the selection it covers.

    Attributes:
        category: Property category.
        property: Property name.
        operator: ``Equals``, or ``Defined`` when the common value is blank.
        value: The most common value.
        match_count: Selected items carrying that value.
        total_count: Size of the selection.
    """

    category: str
    property: str
    operator: Operator
    value: str
    match_count: int
    total_count: int

    @property
    def coverage(self) -> float:
        return self.match_count / max(1, self.total_count)

    @property
    def display(self) -> str:
        label = "(blank)" if is_blank(self.value) else self.value
        return (
            f"{self.category} / {self.property} {self.operator.value} {label} "
            f"({self.match_count}/{self.total_count})"
        )

    def to_rule(self, group_id: str = "A") -> SmartSetRule:
        return SmartSetRule(
            category=self.category,
            property=self.property,
            operator=self.operator,
            value="" if self.operator == Operator.DEFINED else self.value,
            group_id=group_id,
        )


def suggest_rules(store: PropertyStore, item_ids: Iterable[str], max_suggestions: int = 10) -> list[RuleSuggestion]:
    """Proposes rules shared by most of the selected items.

    For every (category, property) seen on the selection, the most common
    value (compared case-insensitively, counted once per item) is proposed
    when it covers at least 75% of the selection.

    Args:
        store: The property store holding the items' values.
        item_ids: The selected items.
        max_suggestions: Maximum number of suggestions (at least 1).

    Returns:
        Suggestions ordered by descending match count, then category and
        property.
    """
    selection = {i for i in item_ids if i and i.strip()}
    if not selection:
        return []

    names: dict[str, tuple[str, str]] = {}
    # key -> folded value -> items carrying it
    carriers: dict[str, dict[str, set[str]]] = {}
    spelling: dict[tuple[str, str], str] = {}

    for entry in store.entries():
        if entry.item_id not in selection:
            continue
        if is_blank(entry.category) or is_blank(entry.property):
            continue
        key = f"{entry.category}::{entry.property}".casefold()
        names.setdefault(key, (entry.category, entry.property))
        value = entry.value or ""
        folded = value.casefold()
        carriers.setdefault(key, {}).setdefault(folded, set()).add(entry.item_id)
        spelling.setdefault((key, folded), value)

    total = len(selection)
    suggestions: list[RuleSuggestion] = []
    for key, values in carriers.items():
        folded, items = max(values.items(), key=lambda kv: len(kv[1]))
        if len(items) / total < MIN_COVERAGE:
            continue
        value = spelling[(key, folded)]
        category, prop = names[key]
        suggestions.append(
            RuleSuggestion(
                category=category,
                property=prop,
                operator=Operator.DEFINED if is_blank(value) else Operator.EQUALS,
                value=value,
                match_count=len(items),
                total_count=total,
            )
        )

    suggestions.sort(key=lambda s: (-s.match_count, s.category.casefold(), s.property.casefold()))
    logger.debug("Inferred %d rule suggestions from %d items", len(suggestions), total)
    return suggestions[: max(1, max_suggestions)]
