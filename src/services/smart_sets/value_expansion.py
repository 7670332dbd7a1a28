# src/services/smart_sets/value_expansion.py

"""Value expansion (split by value) and smart grouping.

Turns one parametric rule set, whose single ``Defined`` rule acts as the
split axis, into one concrete rule set per distinct value of that axis.
The same value-counting pass backs smart grouping, which proposes one set
per value (or value pair) with enough items.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from itertools import product
from typing import TYPE_CHECKING

from src.services.smart_sets.errors import SplitAxisError
from src.services.smart_sets.matching import effective_operator, is_blank
from src.services.smart_sets.models import (
    GroupingSpec,
    Operator,
    SmartSetRule,
    group_rules,
    normalize_group_id,
)

if TYPE_CHECKING:
    from src.core.property_store import PropertyStore

__all__ = [
    "GroupRow",
    "ValueRuleSet",
    "build_groups",
    "distinct_values",
    "expand",
    "find_split_axis",
]

logger = logging.getLogger("smartsets.value_expansion")


@dataclass(frozen=True)
class ValueRuleSet:
    """One concrete rule set produced for a split-axis value."""

    value: str
    rules: tuple[SmartSetRule, ...]


@dataclass(frozen=True)
class GroupRow:
    """One smart grouping row: a value (or value pair) and its item count."""

    value1: str
    value2: str = ""
    count: int = 0

    @property
    def display_key(self) -> str:
        return self.value1 if is_blank(self.value2) else f"{self.value1} / {self.value2}"


def _key_matches(category: str, prop: str, wanted_category: str, wanted_property: str) -> bool:
    return (category or "").casefold() == wanted_category and (prop or "").casefold() == wanted_property


def _collect_item_values(store: PropertyStore, category: str, prop: str) -> dict[str, dict[str, str]]:
    """Collects each item's values for one key, grouped case-insensitively.

    Returns:
        Mapping of item id to ``{folded value: first spelling}``.
    """
    wanted_category = (category or "").casefold()
    wanted_property = (prop or "").casefold()
    per_item: dict[str, dict[str, str]] = {}
    for entry in store.entries():
        if not entry.item_id or not entry.item_id.strip():
            continue
        if not _key_matches(entry.category, entry.property, wanted_category, wanted_property):
            continue
        value = entry.value or ""
        per_item.setdefault(entry.item_id, {}).setdefault(value.casefold(), value)
    return per_item


def _count_values(
    per_item: dict[str, dict[str, str]],
    include_blanks: bool,
) -> tuple[dict[str, int], dict[str, str]]:
    """Counts items per folded value, remembering the first spelling seen."""
    counts: dict[str, int] = {}
    spelling: dict[str, str] = {}
    for values in per_item.values():
        for folded, value in values.items():
            if not include_blanks and is_blank(value):
                continue
            counts[folded] = counts.get(folded, 0) + 1
            spelling.setdefault(folded, value)
    return counts, spelling


def distinct_values(store: PropertyStore, category: str, prop: str, min_count: int = 1) -> list[str]:
    """Returns the distinct non-blank values of a key, sorted lexicographically.

    Values are grouped case-insensitively (the first spelling
    seen represents the group).

    Args:
        store: The property store to scan.
        category: Category of the key.
        prop: Property of the key.
        min_count: Minimum number of items carrying a value.

    Returns:
        The values, ordered case-insensitively.
    """
    counts, spelling = _count_values(_collect_item_values(store, category, prop), include_blanks=False)
    values = [spelling[folded] for folded, count in counts.items() if count >= max(1, min_count)]
    values.sort(key=lambda v: (v.casefold(), v))
    return values


def build_groups(store: PropertyStore, grouping: GroupingSpec) -> list[GroupRow]:
    """Counts items per value (or value pair) of the grouping keys.

    Each item contributes once per distinct value, or once per distinct
    (value, then-by value) combination when a second key is used.

    Args:
        store: The property store to scan.
        grouping: Keys, minimum count, maximum groups and blank handling.

    Returns:
        Rows with at least ``min_count`` items, ordered by descending count
        then value, capped at ``max_groups``.
    """
    first = _collect_item_values(store, grouping.group_by_category, grouping.group_by_property)
    if not grouping.use_then_by:
        counts, spelling = _count_values(first, grouping.include_blanks)
        rows = [GroupRow(spelling[folded], "", count) for folded, count in counts.items()]
    else:
        second = _collect_item_values(store, grouping.then_by_category, grouping.then_by_property)
        _, spelling1 = _count_values(first, include_blanks=True)
        _, spelling2 = _count_values(second, include_blanks=True)
        spelling2.setdefault("", "")
        pair_counts: dict[tuple[str, str], int] = {}
        for item_id, values1 in first.items():
            values2 = second.get(item_id) or {"": ""}
            for (f1, v1), (f2, v2) in product(values1.items(), values2.items()):
                if not grouping.include_blanks and (is_blank(v1) or is_blank(v2)):
                    continue
                pair_counts[(f1, f2)] = pair_counts.get((f1, f2), 0) + 1
        rows = [GroupRow(spelling1[f1], spelling2[f2], count) for (f1, f2), count in pair_counts.items()]

    rows = [row for row in rows if row.count >= grouping.min_count]
    rows.sort(key=lambda r: (-r.count, r.value1.casefold(), r.value2.casefold()))
    return rows[: grouping.max_groups]


def find_split_axis(rules: Iterable[SmartSetRule | None]) -> SmartSetRule:
    """Finds the single rule that can drive value expansion.

    Args:
        rules: The base rules.

    Returns:
        The one enabled rule whose effective operator is ``Defined`` and
        whose category and property are non-blank.

    Raises:
        SplitAxisError: If the rules span several groups or do not hold
            exactly one such rule.
    """
    groups = group_rules(rules)
    if len(groups) > 1:
        raise SplitAxisError(
            SplitAxisError.MULTIPLE_GROUPS,
            f"Split by value supports a single group only (found {len(groups)}).",
        )

    candidates = [
        rule
        for group in groups.values()
        for rule in group
        if rule.has_key and effective_operator(rule) == Operator.DEFINED
    ]
    if not candidates:
        raise SplitAxisError(
            SplitAxisError.NO_AXIS,
            "Split by value requires one Defined rule with Category and Property.",
        )
    if len(candidates) > 1:
        keys = ", ".join(rule.key for rule in candidates)
        raise SplitAxisError(
            SplitAxisError.AMBIGUOUS_AXIS,
            f"Split by value requires exactly one Defined rule; found {len(candidates)} ({keys}).",
        )
    return candidates[0]


def expand(
    base_rules: Sequence[SmartSetRule],
    split_axis_rule: SmartSetRule | None,
    values: Iterable[str],
) -> list[ValueRuleSet]:
    """Builds one rule set per split-axis value.

    Each rule set holds every base rule except the axis, plus an ``Equals``
    rule on the axis key for that value. No deduplication happens across
    rule sets.

    Args:
        base_rules: The parametric rule set.
        split_axis_rule: The axis rule (detected when None).
        values: Distinct axis values, in output order.

    Returns:
        One ValueRuleSet per value.

    Raises:
        SplitAxisError: If the axis preconditions fail or the given axis is
            not the rule set's split axis.
    """
    axis = find_split_axis(base_rules)
    if split_axis_rule is not None and split_axis_rule != axis:
        if not split_axis_rule.has_key or effective_operator(split_axis_rule) != Operator.DEFINED:
            raise SplitAxisError(
                SplitAxisError.INVALID_AXIS,
                f"Split axis {split_axis_rule.key} must be a Defined rule with Category and Property.",
            )
        raise SplitAxisError(
            SplitAxisError.AXIS_NOT_IN_RULES,
            f"Split axis {split_axis_rule.key} is not the Defined rule of the rule set ({axis.key}).",
        )

    remaining = tuple(rule for rule in base_rules if rule != axis)
    group_id = normalize_group_id(axis.group_id)

    result = [
        ValueRuleSet(
            value=value,
            rules=remaining
            + (
                SmartSetRule(
                    category=axis.category,
                    property=axis.property,
                    operator=Operator.EQUALS,
                    value=value,
                    group_id=group_id,
                ),
            ),
        )
        for value in values
    ]
    logger.debug("Expanded %s into %d rule sets", axis.key, len(result))
    return result
