# src/services/smart_sets/post_filter.py

"""Live re-evaluation of rules the host could not search for natively.

Reads property values from the live repository and applies exactly the
same operator semantics as the fast evaluator, so a widened native query
followed by this filter yields the fast evaluator's match set.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from src.services.smart_sets.cancellation import NEVER_CANCELLED, CancellationToken
from src.services.smart_sets.errors import HostError
from src.services.smart_sets.matching import effective_operator, matches_values
from src.services.smart_sets.models import SmartSetRule, enabled_rules

if TYPE_CHECKING:
    from src.integrations.live_repository import LiveRepository

__all__ = ["PostFilterEvaluator"]

logger = logging.getLogger("smartsets.post_filter")


class PostFilterEvaluator:
    """Checks live items against one rule group.

    Attributes:
        repository: The live item repository values are read from.
    """

    def __init__(self, repository: LiveRepository) -> None:
        self.repository = repository

    def matches(self, item_id: str, rules: Iterable[SmartSetRule | None]) -> bool:
        """Checks whether a live item satisfies every rule of a group.

        Rules without a category or property are ignored. A host error
        while reading the item counts as a non-match for that item only.

        Args:
            item_id: The item to check.
            rules: The group's rules (disabled rules are ignored).

        Returns:
            True if the item matches all constraining rules.
        """
        for rule in enabled_rules(rules):
            if not rule.has_key:
                continue

            try:
                values = self.repository.read_property(item_id, rule.category, rule.property)
            except HostError as exc:
                logger.warning("Could not read %s on item %s: %s", rule.key, item_id, exc)
                return False

            if not matches_values(values, effective_operator(rule), rule.value):
                return False

        return True

    def filter(
        self,
        item_ids: Iterable[str],
        rules: Iterable[SmartSetRule | None],
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> set[str] | None:
        """Keeps the items that satisfy every rule of a group.

        Args:
            item_ids: Items returned by the native query.
            rules: The group's rules.
            cancel: Token checked once per item.

        Returns:
            The matching subset, or None if cancelled.
        """
        rule_list = enabled_rules(rules)
        kept: set[str] = set()
        for item_id in item_ids:
            if cancel.cancelled:
                return None
            if self.matches(item_id, rule_list):
                kept.add(item_id)
        return kept
