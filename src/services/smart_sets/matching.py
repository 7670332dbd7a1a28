# src/services/smart_sets/matching.py

"""Shared operator semantics for every Smart Set evaluator.

The fast (index) evaluator and the live post-filter both decide matches
through ``effective_operator`` and ``matches_values``; nothing else in the
package compares property values.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from functools import lru_cache

from src.services.smart_sets.models import Operator, SmartSetRule

__all__ = [
    "COMPARISON_OPERATORS",
    "effective_operator",
    "is_blank",
    "matches_values",
    "wildcard_match",
]

COMPARISON_OPERATORS: frozenset[Operator] = frozenset(
    {Operator.EQUALS, Operator.NOT_EQUALS, Operator.CONTAINS, Operator.WILDCARD}
)


def is_blank(value: str | None) -> bool:
    """True for None, empty and whitespace-only strings."""
    return value is None or not value.strip()


def effective_operator(rule: SmartSetRule | None) -> Operator:
    """Returns the operator a rule is evaluated with.

    A comparison operator with a blank value has nothing to compare
    against, so it degrades to an existence check.

    Args:
        rule: The rule to normalize.

    Returns:
        ``Operator.DEFINED`` for blank comparisons, else the configured operator.
    """
    if rule is None:
        return Operator.DEFINED
    if rule.operator in COMPARISON_OPERATORS and is_blank(rule.value):
        return Operator.DEFINED
    return rule.operator


@lru_cache(maxsize=256)
def _wildcard_regex(pattern: str) -> re.Pattern[str]:
    """Compiles a casefolded ``*``/``?`` pattern into an anchored regex."""
    escaped = re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(f"^{escaped}\\Z", re.DOTALL)


def wildcard_match(value: str, pattern: str) -> bool:
    """Matches a value against a wildcard pattern anchored to the full value.

    ``*`` matches any run of characters and ``?`` exactly one. Both sides are
    casefolded like the other comparison operators, so a pattern without
    wildcard characters behaves exactly like ``Equals``.

    Args:
        value: The property value.
        pattern: The wildcard pattern.

    Returns:
        True if the whole value matches the pattern.
    """
    if not pattern:
        return True
    return _wildcard_regex(pattern.casefold()).match((value or "").casefold()) is not None


def matches_values(values: Sequence[str] | None, operator: Operator, needle: str) -> bool:
    """Decides whether one item's values for a key satisfy an operator.

    ``values`` holds every value the item carries for the rule's
    (category, property); an empty sequence means the item lacks the
    property. Comparison operators only look at non-blank values and match
    when at least one of them satisfies the comparison.

    Args:
        values: The item's values for the key.
        operator: The effective operator (see ``effective_operator``).
        needle: The rule's comparison value.

    Returns:
        True if the item matches.
    """
    values = values or ()

    if operator == Operator.DEFINED:
        return len(values) > 0
    if operator == Operator.UNDEFINED:
        return len(values) == 0

    needle_folded = (needle or "").casefold()
    defined = [v for v in values if not is_blank(v)]

    if operator == Operator.EQUALS:
        return any(v.casefold() == needle_folded for v in defined)
    if operator == Operator.NOT_EQUALS:
        return any(v.casefold() != needle_folded for v in defined)
    if operator == Operator.CONTAINS:
        return any(needle_folded in v.casefold() for v in defined)
    if operator == Operator.WILDCARD:
        return any(wildcard_match(v, needle) for v in defined)

    return False
