# src/services/smart_sets/smart_set_manager.py

"""Smart Set engine: evaluate, expand and materialize rule sets.

Orchestrates the two evaluation paths (cached property index and live
host search with post-filter), value expansion against the current scrape
session, and persistence of match sets through a set output adapter.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from src.services.smart_sets.cancellation import NEVER_CANCELLED, CancellationToken
from src.services.smart_sets.errors import EmptyRuleSetError, HostError
from src.services.smart_sets.fast_evaluator import FastMatchEvaluator
from src.services.smart_sets.models import (
    GroupingSpec,
    MatchSetResult,
    Operator,
    OutputHandle,
    OutputKind,
    OutputSpec,
    SearchSetMode,
    SmartSetRecipe,
    SmartSetRule,
    enabled_rules,
    group_rules,
)
from src.services.smart_sets.post_filter import PostFilterEvaluator
from src.services.smart_sets.property_index import PropertyIndex
from src.services.smart_sets.query_translator import ALL_PREDICATES, QueryTranslator
from src.services.smart_sets.value_expansion import (
    GroupRow,
    ValueRuleSet,
    build_groups,
    distinct_values,
    expand,
    find_split_axis,
)
from src.utils.name_utils import sanitize_name

if TYPE_CHECKING:
    from src.core.property_store import PropertyStore, ScrapedPropertyDescriptor
    from src.integrations.live_repository import LiveRepository
    from src.integrations.set_output import SetOutputAdapter

__all__ = ["SNAPSHOT_SUFFIX", "SmartSetEngine"]

logger = logging.getLogger("smartsets.manager")

SNAPSHOT_SUFFIX = " (Snapshot)"


class SmartSetEngine:
    """Facade over the smart set evaluators for one scrape session.

    The engine owns the session's property index; pointing it at another
    session drops every cached index.

    Attributes:
        session: The property store currently evaluated against.
        repository: Optional live host used by ``evaluate_live``.
        output: Optional set output adapter used by ``materialize``.
        index: The per-session property index.
        translator: Native query translator for the repository's predicates.
    """

    def __init__(
        self,
        session: PropertyStore,
        repository: LiveRepository | None = None,
        output: SetOutputAdapter | None = None,
    ) -> None:
        """Initializes the SmartSetEngine.

        Args:
            session: The property store (usually a ScrapeSession).
            repository: Optional live item repository.
            output: Optional set output adapter.
        """
        self.session = session
        self.repository = repository
        self.output = output
        self.index = PropertyIndex(session)
        self.fast_evaluator = FastMatchEvaluator(self.index)
        supported = repository.supported_predicates if repository is not None else ALL_PREDICATES
        self.translator = QueryTranslator(supported)
        self.post_filter = PostFilterEvaluator(repository) if repository is not None else None

    # ------------------------------------------------------------------
    # SESSION
    # ------------------------------------------------------------------

    def use_session(self, session: PropertyStore) -> bool:
        """Points the engine at a session, resetting indices when it changed.

        Args:
            session: The new property store.

        Returns:
            True if the cached indices were dropped.
        """
        if _session_key(session) == _session_key(self.session):
            return False

        self.session = session
        self.index = PropertyIndex(session)
        self.fast_evaluator = FastMatchEvaluator(self.index)
        logger.info("Switched to session %s; property indices cleared", _session_key(session))
        return True

    def describe_properties(self) -> list[ScrapedPropertyDescriptor]:
        """Summarizes the session's properties (empty for plain stores)."""
        describe = getattr(self.session, "describe_properties", None)
        return describe() if describe is not None else []

    def distinct_values(self, category: str, prop: str, min_count: int = 1) -> list[str]:
        """Returns the session's distinct non-blank values for a key."""
        return distinct_values(self.session, category, prop, min_count)

    def build_groups(self, grouping: GroupingSpec) -> list[GroupRow]:
        """Computes smart grouping rows over the session."""
        return build_groups(self.session, grouping)

    # ------------------------------------------------------------------
    # EVALUATION
    # ------------------------------------------------------------------

    def evaluate_fast(
        self,
        rules: Iterable[SmartSetRule | None] | None,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> MatchSetResult | None:
        """Evaluates rules against the cached property index (no host I/O).

        Args:
            rules: The rules to evaluate.
            cancel: Cancellation token.

        Returns:
            The match set, or None if cancelled.
        """
        matched = self.fast_evaluator.evaluate(rules, cancel=cancel)
        if matched is None:
            logger.info("Fast evaluation cancelled")
            return None
        return MatchSetResult.from_ids(matched, used_cache=True)

    def evaluate_live(
        self,
        rules: Iterable[SmartSetRule | None] | None,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> MatchSetResult | None:
        """Evaluates rules through the live host's native search.

        Each group is translated into a native query; groups holding rules
        the host cannot express natively are post-filtered item by item.
        Group results are unioned.

        Args:
            rules: The rules to evaluate.
            cancel: Cancellation token, checked per group and per item.

        Returns:
            The match set with ``used_post_filter`` set when any group was
            post-filtered, or None if cancelled.

        Raises:
            HostError: If no repository is configured or a native query fails.
        """
        if self.repository is None or self.post_filter is None:
            msg = "Live evaluation requires a live repository"
            raise HostError(msg)

        matched: set[str] = set()
        used_post_filter = False

        for gid, group in group_rules(rules).items():
            if cancel.cancelled:
                return None

            if not any(rule.has_key for rule in group):
                logger.debug("Group %s has no constraining rules", gid)
                continue

            translation = self.translator.translate(group)
            candidates = self.repository.run_native_query(translation.query)

            if translation.unsupported:
                used_post_filter = True
                kept = self.post_filter.filter(candidates, group, cancel)
                if kept is None:
                    logger.info("Live evaluation cancelled during post-filter")
                    return None
                logger.debug("Group %s: %d candidates, %d after post-filter", gid, len(candidates), len(kept))
                candidates = kept

            matched |= candidates

        return MatchSetResult.from_ids(matched, used_post_filter=used_post_filter)

    def is_search_supported(self, rules: Iterable[SmartSetRule | None] | None) -> bool:
        """True when the rules fit a single search-backed set.

        That is the case when they form at most one group and every
        constraining rule is natively expressible by the host.
        """
        groups = group_rules(rules)
        if len(groups) > 1:
            return False
        return all(self.translator.is_expressible(r) for g in groups.values() for r in g if r.has_key)

    # ------------------------------------------------------------------
    # VALUE EXPANSION
    # ------------------------------------------------------------------

    def expand_by_value(
        self,
        base_rules: Sequence[SmartSetRule],
        axis_rule: SmartSetRule | None = None,
    ) -> list[ValueRuleSet]:
        """Expands a parametric rule set into one rule set per axis value.

        Args:
            base_rules: Rules holding exactly one ``Defined`` split axis.
            axis_rule: The designated axis (detected when None).

        Returns:
            One ValueRuleSet per distinct non-blank session value, in
            case-insensitive lexicographic order.

        Raises:
            SplitAxisError: If the split-axis preconditions fail.
        """
        axis = axis_rule if axis_rule is not None else find_split_axis(base_rules)
        values = self.distinct_values(axis.category, axis.property)
        return expand(base_rules, axis_rule, values)

    # ------------------------------------------------------------------
    # MATERIALIZATION
    # ------------------------------------------------------------------

    def materialize(
        self,
        rule_set: Sequence[SmartSetRule],
        output_spec: OutputSpec,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> OutputHandle | None:
        """Persists a rule set through the set output adapter.

        Search-backed output stores the rules themselves and is only
        created when ``is_search_supported`` holds. Snapshot output stores
        the evaluated item ids under ``"<name> (Snapshot)"``. Nothing is
        created for an empty match set unless ``include_empty`` is set.

        Args:
            rule_set: The rules to materialize.
            output_spec: Name, kind, folder and empty-set handling.
            cancel: Cancellation token for the evaluation.

        Returns:
            What was created (and why anything was skipped), or None if
            the evaluation was cancelled.

        Raises:
            EmptyRuleSetError: If the rule set has no constraining rules.
            HostError: If no output adapter is configured.
        """
        self._require_output()

        rules = enabled_rules(rule_set)
        if not any(rule.has_key for rule in rules):
            raise EmptyRuleSetError()

        result = self._evaluate(rules, cancel)
        if result is None:
            return None
        return self._write(rules, result, output_spec)

    def _write(self, rules: list[SmartSetRule], result: MatchSetResult, output_spec: OutputSpec) -> OutputHandle:
        """Creates the sets an OutputSpec asks for from an evaluated rule set."""
        name = sanitize_name(output_spec.name)
        folder_path = output_spec.folder_path
        set_ids: list[int] = []
        names: list[str] = []
        skipped: list[str] = []

        if result.count == 0 and not output_spec.include_empty:
            logger.info("Skipping '%s': no matching items", name)
            return OutputHandle(folder_path=folder_path, skipped=("empty",))

        if output_spec.kind in (OutputKind.SEARCH, OutputKind.BOTH):
            if self.is_search_supported(rules):
                set_id, final = self.output.create_search_set(folder_path, name, rules)
                set_ids.append(set_id)
                names.append(final)
            else:
                logger.warning("Search set output disabled for '%s': multi-group or unsupported operators", name)
                skipped.append("search_unsupported")

        if output_spec.kind in (OutputKind.SNAPSHOT, OutputKind.BOTH):
            set_id, final = self.output.create_snapshot_set(folder_path, name + SNAPSHOT_SUFFIX, result.item_ids)
            set_ids.append(set_id)
            names.append(final)

        return OutputHandle(
            folder_path=folder_path,
            set_ids=tuple(set_ids),
            names=tuple(names),
            item_count=result.count,
            skipped=tuple(skipped),
        )

    def generate(
        self,
        recipe: SmartSetRecipe,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> list[OutputHandle] | None:
        """Materializes a recipe with its configured output options.

        In ``split_by_value`` mode one set is created per distinct axis
        value, named ``"<recipe> - <value>"``. Every value set is evaluated
        before the first set is written, so a cancelled generation leaves
        the output untouched.

        Args:
            recipe: The recipe to generate.
            cancel: Cancellation token, checked before each evaluation and
                once more before writing.

        Returns:
            One OutputHandle per materialized rule set, or None if the
            generation was cancelled.

        Raises:
            EmptyRuleSetError: If the recipe has no enabled rules.
            SplitAxisError: If split mode preconditions fail.
        """
        rules = enabled_rules(recipe.rules)
        if not rules:
            raise EmptyRuleSetError(f"Recipe '{recipe.name}' has no enabled rules.")

        if recipe.search_set_mode != SearchSetMode.SPLIT_BY_VALUE:
            handle = self.materialize(rules, recipe.output_spec(), cancel)
            return [handle] if handle is not None else None

        self._require_output()
        expanded = self.expand_by_value(rules)
        if not expanded:
            logger.warning("Recipe '%s': split axis has no values in this session", recipe.name)

        evaluated: list[tuple[ValueRuleSet, MatchSetResult]] = []
        for value_set in expanded:
            result = None if cancel.cancelled else self._evaluate(list(value_set.rules), cancel)
            if result is None:
                logger.info("Generation of '%s' cancelled; no sets were written", recipe.name)
                return None
            evaluated.append((value_set, result))

        if cancel.cancelled:
            logger.info("Generation of '%s' cancelled; no sets were written", recipe.name)
            return None

        handles = [
            self._write(list(value_set.rules), result, recipe.output_spec(f"{recipe.name} - {value_set.value}"))
            for value_set, result in evaluated
        ]

        logger.info(
            "Generated %d sets for recipe '%s'",
            sum(h.created for h in handles),
            recipe.name,
        )
        return handles

    def generate_grouped(
        self,
        grouping: GroupingSpec,
        rows: Iterable[GroupRow] | None = None,
        folder_path: str = "Smart Sets",
        base_name: str = "",
    ) -> OutputHandle:
        """Creates one search-backed set per smart grouping row.

        Args:
            grouping: Grouping keys (and limits when rows are computed).
            rows: Rows to materialize; computed from the session when None.
            folder_path: Folder receiving the sets.
            base_name: Prefix of the set names (``"<base> - <value>"``).

        Returns:
            Handle listing every created set.

        Raises:
            HostError: If no output adapter is configured.
        """
        self._require_output()

        rows = list(rows) if rows is not None else self.build_groups(grouping)
        set_ids: list[int] = []
        names: list[str] = []
        total = 0

        for row in rows:
            rules = [
                SmartSetRule(
                    category=grouping.group_by_category,
                    property=grouping.group_by_property,
                    operator=Operator.EQUALS,
                    value=row.value1,
                )
            ]
            if grouping.use_then_by:
                rules.append(
                    SmartSetRule(
                        category=grouping.then_by_category,
                        property=grouping.then_by_property,
                        operator=Operator.EQUALS,
                        value=row.value2,
                    )
                )

            name = sanitize_name(f"{base_name} - {row.display_key}" if base_name.strip() else row.display_key)
            set_id, final = self.output.create_search_set(folder_path, name, rules)
            set_ids.append(set_id)
            names.append(final)
            total += row.count

        logger.info("Created %d grouped search sets in '%s'", len(set_ids), folder_path)
        return OutputHandle(folder_path=folder_path, set_ids=tuple(set_ids), names=tuple(names), item_count=total)

    def _require_output(self) -> None:
        if self.output is None:
            msg = "Materialization requires a set output adapter"
            raise HostError(msg)

    def _evaluate(self, rules: list[SmartSetRule], cancel: CancellationToken) -> MatchSetResult | None:
        """Evaluates live when a repository is configured, else from the index."""
        if self.repository is not None:
            return self.evaluate_live(rules, cancel)
        return self.evaluate_fast(rules, cancel)


def _session_key(session: PropertyStore) -> str:
    key = getattr(session, "session_key", None)
    return key if key is not None else f"store-{id(session)}"
