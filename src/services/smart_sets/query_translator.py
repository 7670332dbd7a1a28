# src/services/smart_sets/query_translator.py

"""Translation of a rule group into the live host's native search.

A native query is a conjunction of per-property predicates executed by
the host. Hosts declare which predicates they support; any rule the host
cannot express is widened to a superset condition and flagged so the
caller post-filters the results.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from src.services.smart_sets.matching import effective_operator
from src.services.smart_sets.models import Operator, SmartSetRule, enabled_rules

__all__ = [
    "ALL_PREDICATES",
    "NativeCondition",
    "NativePredicate",
    "NativeQuery",
    "QueryTranslator",
    "Translation",
]

logger = logging.getLogger("smartsets.translator")


class NativePredicate(Enum):
    """Search primitives a live host may execute natively."""

    HAS_PROPERTY = "has_property"
    LACKS_PROPERTY = "lacks_property"
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    WILDCARD = "wildcard"


ALL_PREDICATES: frozenset[NativePredicate] = frozenset(NativePredicate)

_EXISTENCE_PREDICATES: frozenset[NativePredicate] = frozenset(
    {NativePredicate.HAS_PROPERTY, NativePredicate.LACKS_PROPERTY}
)

_OPERATOR_TO_PREDICATE: dict[Operator, NativePredicate] = {
    Operator.DEFINED: NativePredicate.HAS_PROPERTY,
    Operator.UNDEFINED: NativePredicate.LACKS_PROPERTY,
    Operator.EQUALS: NativePredicate.EQUALS,
    Operator.NOT_EQUALS: NativePredicate.NOT_EQUALS,
    Operator.CONTAINS: NativePredicate.CONTAINS,
    Operator.WILDCARD: NativePredicate.WILDCARD,
}


@dataclass(frozen=True)
class NativeCondition:
    """One predicate on a (category, property) pair."""

    category: str
    property: str
    predicate: NativePredicate
    value: str = ""

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "property": self.property,
            "predicate": self.predicate.value,
            "value": self.value,
        }


@dataclass(frozen=True)
class NativeQuery:
    """A conjunction of native conditions; no conditions selects every item."""

    conditions: tuple[NativeCondition, ...] = ()

    def to_dict(self) -> dict:
        return {"conditions": [c.to_dict() for c in self.conditions]}


class Translation(NamedTuple):
    """Result of translating one rule group."""

    query: NativeQuery
    unsupported: bool


class QueryTranslator:
    """Builds native queries for a host with a given predicate capability.

    Attributes:
        supported: The predicates the host can execute.
    """

    def __init__(self, supported: Iterable[NativePredicate] = ALL_PREDICATES) -> None:
        """Initializes the translator.

        Args:
            supported: Predicates the live host executes natively.
        """
        self.supported: frozenset[NativePredicate] = frozenset(supported)

    def is_expressible(self, rule: SmartSetRule) -> bool:
        """True when the rule's effective operator maps to a supported predicate."""
        return _OPERATOR_TO_PREDICATE.get(effective_operator(rule)) in self.supported

    def translate(self, rules: Iterable[SmartSetRule | None]) -> Translation:
        """Translates the rules of one group into a native query.

        Rules without a category or property are skipped. A rule the host
        cannot express is replaced by an existence condition on its key
        (or by no condition for ``Undefined``), which keeps the native
        result a superset of the true match set.

        Args:
            rules: The group's rules (disabled rules are ignored).

        Returns:
            The native query and whether post-filtering is required.
        """
        conditions: list[NativeCondition] = []
        unsupported = False

        for rule in enabled_rules(rules):
            if not rule.has_key:
                continue

            operator = effective_operator(rule)
            predicate = _OPERATOR_TO_PREDICATE.get(operator)

            if predicate in self.supported:
                value = "" if predicate in _EXISTENCE_PREDICATES else rule.value
                conditions.append(NativeCondition(rule.category, rule.property, predicate, value))
                continue

            unsupported = True
            logger.debug("Operator %s not supported natively; widening rule %s", operator.value, rule.key)
            if operator != Operator.UNDEFINED and NativePredicate.HAS_PROPERTY in self.supported:
                conditions.append(NativeCondition(rule.category, rule.property, NativePredicate.HAS_PROPERTY))

        return Translation(NativeQuery(tuple(conditions)), unsupported)
