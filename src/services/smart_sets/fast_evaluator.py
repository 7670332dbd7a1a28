# src/services/smart_sets/fast_evaluator.py

"""Fast Smart Set evaluation against the cached property index.

Evaluates rule groups without touching the live host: each rule becomes a
set of item ids read from the property index, rules within a group are
intersected and groups are unioned.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Set

from src.services.smart_sets.cancellation import NEVER_CANCELLED, CancellationToken
from src.services.smart_sets.matching import effective_operator, matches_values
from src.services.smart_sets.models import Operator, SmartSetRule, group_rules
from src.services.smart_sets.property_index import PropertyIndex

__all__ = ["FastMatchEvaluator"]

logger = logging.getLogger("smartsets.evaluator")


class FastMatchEvaluator:
    """Evaluates Smart Set rules entirely against a PropertyIndex."""

    def __init__(self, index: PropertyIndex) -> None:
        """Initializes the evaluator.

        Args:
            index: The session's property index.
        """
        self.index = index

    def evaluate(
        self,
        rules: Iterable[SmartSetRule | None] | None,
        all_item_ids: Set[str] | None = None,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> set[str] | None:
        """Returns the ids of all items matching a rule group disjunction.

        Args:
            rules: The rules to evaluate (disabled rules are ignored).
            all_item_ids: Item-id universe for ``Undefined`` rules; defaults
                to every item in the property store.
            cancel: Token checked between groups and rules.

        Returns:
            The match set, or None if the evaluation was cancelled.
        """
        groups = group_rules(rules)
        if not groups:
            return set()

        universe = all_item_ids if all_item_ids is not None else self.index.all_item_ids()
        matched: set[str] = set()

        for gid, group in groups.items():
            if cancel.cancelled:
                return None

            group_hits = self.evaluate_group(group, universe, cancel)
            if group_hits is None:
                return None

            logger.debug("Group %s matched %d items", gid, len(group_hits))
            matched |= group_hits

        return matched

    def evaluate_group(
        self,
        rules: list[SmartSetRule],
        all_item_ids: Set[str],
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> set[str] | None:
        """Intersects the match sets of one group's rules.

        The first constraining rule seeds the result; evaluation stops as
        soon as the intersection is empty. Rules without a category or
        property do not constrain the group, and a group with no
        constraining rules matches nothing.

        Args:
            rules: The enabled rules of one group.
            all_item_ids: Item-id universe for ``Undefined`` rules.
            cancel: Token checked before each rule.

        Returns:
            The group's match set, or None if cancelled.
        """
        group_hits: set[str] | None = None

        for rule in rules:
            if cancel.cancelled:
                return None

            if not rule.has_key:
                logger.debug("Skipping rule without category/property: %r", rule)
                continue

            rule_hits = self._evaluate_rule(rule, all_item_ids, cancel)
            if rule_hits is None:
                return None

            if group_hits is None:
                group_hits = rule_hits
            else:
                group_hits &= rule_hits

            if not group_hits:
                break

        return group_hits or set()

    def _evaluate_rule(
        self,
        rule: SmartSetRule,
        all_item_ids: Set[str],
        cancel: CancellationToken,
    ) -> set[str] | None:
        """Returns the items matching a single rule.

        Args:
            rule: The rule to evaluate.
            all_item_ids: Item-id universe for ``Undefined``.
            cancel: Token passed to the index build.

        Returns:
            The rule's match set, or None if cancelled.
        """
        item_values = self.index.get_index(rule.category, rule.property, cancel)
        if item_values is None:
            return None

        operator = effective_operator(rule)

        if operator == Operator.DEFINED:
            return set(item_values)

        if operator == Operator.UNDEFINED:
            return {item for item in all_item_ids if item not in item_values}

        return {item for item, values in item_values.items() if matches_values(values, operator, rule.value)}
