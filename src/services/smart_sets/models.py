# src/services/smart_sets/models.py

"""Data models for Smart Sets: enums, dataclasses, and serialization helpers.

Defines the rule language (operators, rules, rule groups), evaluation
results, output options and recipes. Also provides serialization helpers
for JSON persistence that round-trip the operator enum and group ids.
"""

from __future__ import annotations

import builtins
import json
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

__all__ = [
    "DEFAULT_GROUP_ID",
    "GroupingSpec",
    "MatchSetResult",
    "Operator",
    "OutputHandle",
    "OutputKind",
    "OutputSpec",
    "SearchSetMode",
    "SmartSetRecipe",
    "SmartSetRule",
    "enabled_rules",
    "group_rules",
    "grouping_from_dict",
    "grouping_to_dict",
    "normalize_group_id",
    "now_ts",
    "operator_from_value",
    "recipe_from_dict",
    "recipe_from_json",
    "recipe_to_dict",
    "recipe_to_json",
    "rule_from_dict",
    "rule_to_dict",
]

logger = logging.getLogger("smartsets.models")

DEFAULT_GROUP_ID = "A"
DEFAULT_FOLDER_PATH = "Smart Sets"


class Operator(Enum):
    """Comparison operators for Smart Set rules (closed set)."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    WILDCARD = "wildcard"
    DEFINED = "defined"
    UNDEFINED = "undefined"


class OutputKind(Enum):
    """How a match set is persisted in the host."""

    SEARCH = "search"
    SNAPSHOT = "snapshot"
    BOTH = "both"


class SearchSetMode(Enum):
    """Whether a recipe produces one set or one set per axis value."""

    SINGLE = "single"
    SPLIT_BY_VALUE = "split_by_value"


# Accepts enum values ("not_equals"), enum names ("NOT_EQUALS") and the
# CamelCase names used by older recipe files ("NotEquals").
_OPERATOR_ALIASES: dict[str, Operator] = {}
for _op in Operator:
    _OPERATOR_ALIASES[_op.value] = _op
    _OPERATOR_ALIASES[_op.name.lower()] = _op
    _OPERATOR_ALIASES[_op.value.replace("_", "")] = _op


def operator_from_value(value: str) -> Operator:
    """Parses an operator from its serialized form.

    Args:
        value: Enum value, enum name or CamelCase name.

    Returns:
        The matching Operator.

    Raises:
        ValueError: If the value names no operator.
    """
    op = _OPERATOR_ALIASES.get(str(value).strip().lower())
    if op is None:
        msg = f"Unknown operator: {value!r}"
        raise ValueError(msg)
    return op


@dataclass(frozen=True)
class SmartSetRule:
    """A single property constraint.

    The operator is stored as configured; blank comparison values are only
    normalized at evaluation time (see ``matching.effective_operator``).

    Attributes:
        category: Property category to match against.
        property: Property name within the category.
        operator: The comparison operator.
        value: The comparison value (or wildcard pattern).
        group_id: Rules sharing a group id are ANDed; groups are ORed.
        enabled: Disabled rules are ignored entirely.
    """

    category: str = ""
    property: str = ""
    operator: Operator = Operator.DEFINED
    value: str = ""
    group_id: str = DEFAULT_GROUP_ID
    enabled: bool = True

    def __post_init__(self) -> None:
        for name in ("category", "property", "value"):
            if getattr(self, name) is None:
                object.__setattr__(self, name, "")

    # The "property" field shadows the builtin inside the class body.
    @builtins.property
    def key(self) -> str:
        return f"{self.category}::{self.property}"

    @builtins.property
    def has_key(self) -> bool:
        """True when both category and property are non-blank."""
        return bool((self.category or "").strip()) and bool((self.property or "").strip())


def normalize_group_id(group_id: str | None) -> str:
    """Returns the trimmed group id, or ``"A"`` when blank."""
    if group_id is None or not group_id.strip():
        return DEFAULT_GROUP_ID
    return group_id.strip()


def enabled_rules(rules: Iterable[SmartSetRule | None] | None) -> list[SmartSetRule]:
    """Filters out missing and disabled rules, keeping order."""
    return [r for r in (rules or []) if r is not None and r.enabled]


def group_rules(rules: Iterable[SmartSetRule | None] | None) -> dict[str, list[SmartSetRule]]:
    """Partitions enabled rules into groups.

    Group ids are compared case-insensitively after trimming; the first
    spelling seen names the group. Groups keep first-seen order.

    Args:
        rules: The rules to partition.

    Returns:
        Ordered dict mapping group id to its enabled rules.
    """
    groups: dict[str, list[SmartSetRule]] = {}
    display: dict[str, str] = {}
    for rule in enabled_rules(rules):
        gid = normalize_group_id(rule.group_id)
        folded = gid.casefold()
        if folded not in display:
            display[folded] = gid
            groups[gid] = []
        groups[display[folded]].append(rule)
    return groups


@dataclass(frozen=True)
class MatchSetResult:
    """The outcome of one evaluation call.

    Attributes:
        item_ids: Matching item ids, deduplicated and sorted.
        used_post_filter: True when live evaluation had to re-check rules
            the host could not express natively.
        used_cache: True when the result came from the cached property index.
        notes: Free-text remarks for the caller.
    """

    item_ids: tuple[str, ...] = ()
    used_post_filter: bool = False
    used_cache: bool = False
    notes: str = ""

    @classmethod
    def from_ids(cls, ids: Iterable[str], **kwargs) -> MatchSetResult:
        return cls(item_ids=tuple(sorted(set(ids))), **kwargs)

    @property
    def count(self) -> int:
        return len(self.item_ids)

    def sample(self, limit: int) -> list[str]:
        """Returns at most ``limit`` item ids in stable order."""
        return list(self.item_ids[: max(0, limit)])


@dataclass(frozen=True)
class OutputSpec:
    """Options for materializing a rule set in the host.

    Attributes:
        name: Desired display name of the set.
        kind: Search-backed, snapshot, or both.
        include_empty: Whether to create sets that match nothing.
        folder_path: ``/``- or ``\\``-separated folder path for the set.
    """

    name: str = "Smart Set"
    kind: OutputKind = OutputKind.SEARCH
    include_empty: bool = False
    folder_path: str = DEFAULT_FOLDER_PATH


@dataclass(frozen=True)
class OutputHandle:
    """What a set output adapter created.

    Attributes:
        folder_path: The folder the sets were written to.
        set_ids: Host ids of the created sets.
        names: Final (unique) names of the created sets.
        item_count: Size of the match set that was materialized.
        skipped: Reasons for outputs that were not created.
    """

    folder_path: str = ""
    set_ids: tuple[int, ...] = ()
    names: tuple[str, ...] = ()
    item_count: int = 0
    skipped: tuple[str, ...] = ()

    @property
    def created(self) -> int:
        return len(self.set_ids)


@dataclass
class GroupingSpec:
    """Smart grouping configuration: one set per value (or value pair).

    Attributes:
        enable_smart_grouping: Whether grouping is active for the recipe.
        group_by_category: Category of the first grouping key.
        group_by_property: Property of the first grouping key.
        use_then_by: Whether a second grouping key is used.
        then_by_category: Category of the second grouping key.
        then_by_property: Property of the second grouping key.
        max_groups: Maximum number of groups returned (at least 1).
        min_count: Minimum items per group (at least 1).
        include_blanks: Whether blank values form their own group.
    """

    enable_smart_grouping: bool = False
    group_by_category: str = ""
    group_by_property: str = ""
    use_then_by: bool = False
    then_by_category: str = ""
    then_by_property: str = ""
    max_groups: int = 50
    min_count: int = 5
    include_blanks: bool = False

    def __post_init__(self) -> None:
        self.max_groups = max(1, int(self.max_groups))
        self.min_count = max(1, int(self.min_count))


@dataclass
class SmartSetRecipe:
    """A named, reusable description of one or more smart sets.

    Attributes:
        name: Display name (and base name of generated sets).
        description: Optional description.
        profile: Scan profile the recipe was built against.
        output_kind: How generated sets are persisted.
        folder_path: Folder generated sets are written to.
        search_set_mode: Single set or one set per split-axis value.
        include_empty: Whether empty sets are still created.
        rules: The rules, grouped by their group ids.
        grouping: Smart grouping configuration.
        version: Recipe format version.
        created_at: Unix timestamp of creation.
        updated_at: Unix timestamp of the last save.
    """

    name: str = "New Recipe"
    description: str = ""
    profile: str = ""
    output_kind: OutputKind = OutputKind.SEARCH
    folder_path: str = DEFAULT_FOLDER_PATH
    search_set_mode: SearchSetMode = SearchSetMode.SINGLE
    include_empty: bool = False
    rules: list[SmartSetRule] = field(default_factory=list)
    grouping: GroupingSpec = field(default_factory=GroupingSpec)
    version: int = 1
    created_at: int = field(default_factory=lambda: now_ts())
    updated_at: int = field(default_factory=lambda: now_ts())

    def output_spec(self, name: str | None = None) -> OutputSpec:
        """Builds the OutputSpec for this recipe.

        Args:
            name: Override for the set name (defaults to the recipe name).

        Returns:
            An OutputSpec carrying the recipe's output options.
        """
        return OutputSpec(
            name=name if name is not None else self.name,
            kind=self.output_kind,
            include_empty=self.include_empty,
            folder_path=self.folder_path,
        )


# ========================================================================
# SERIALIZATION HELPERS
# ========================================================================


def rule_to_dict(rule: SmartSetRule) -> dict:
    """Serializes a SmartSetRule to a JSON-compatible dict.

    Args:
        rule: The rule to serialize.

    Returns:
        Dict with group_id, category, property, operator, value, enabled.
    """
    return {
        "group_id": rule.group_id,
        "category": rule.category,
        "property": rule.property,
        "operator": rule.operator.value,
        "value": rule.value,
        "enabled": rule.enabled,
    }


def rule_from_dict(data: dict) -> SmartSetRule:
    """Deserializes a SmartSetRule from a dict.

    Args:
        data: Dict with category, property, operator and optional
            group_id, value, enabled.

    Returns:
        A SmartSetRule instance.

    Raises:
        ValueError: If the operator is invalid.
        KeyError: If the operator is missing.
    """
    return SmartSetRule(
        category=data.get("category") or "",
        property=data.get("property") or "",
        operator=operator_from_value(data["operator"]),
        value=data.get("value") or "",
        group_id=data.get("group_id") or DEFAULT_GROUP_ID,
        enabled=bool(data.get("enabled", True)),
    )


def grouping_to_dict(grouping: GroupingSpec) -> dict:
    """Serializes a GroupingSpec to a JSON-compatible dict."""
    return {
        "enable_smart_grouping": grouping.enable_smart_grouping,
        "group_by_category": grouping.group_by_category,
        "group_by_property": grouping.group_by_property,
        "use_then_by": grouping.use_then_by,
        "then_by_category": grouping.then_by_category,
        "then_by_property": grouping.then_by_property,
        "max_groups": grouping.max_groups,
        "min_count": grouping.min_count,
        "include_blanks": grouping.include_blanks,
    }


def grouping_from_dict(data: dict) -> GroupingSpec:
    """Deserializes a GroupingSpec from a dict, using defaults for missing keys."""
    defaults = GroupingSpec()
    return GroupingSpec(
        enable_smart_grouping=bool(data.get("enable_smart_grouping", defaults.enable_smart_grouping)),
        group_by_category=data.get("group_by_category") or "",
        group_by_property=data.get("group_by_property") or "",
        use_then_by=bool(data.get("use_then_by", defaults.use_then_by)),
        then_by_category=data.get("then_by_category") or "",
        then_by_property=data.get("then_by_property") or "",
        max_groups=data.get("max_groups", defaults.max_groups),
        min_count=data.get("min_count", defaults.min_count),
        include_blanks=bool(data.get("include_blanks", defaults.include_blanks)),
    )


def recipe_to_dict(recipe: SmartSetRecipe) -> dict:
    """Serializes a SmartSetRecipe to a JSON-compatible dict.

    Args:
        recipe: The recipe to serialize.

    Returns:
        Dict with metadata, output options, rules and grouping.
    """
    return {
        "version": recipe.version,
        "name": recipe.name,
        "description": recipe.description,
        "profile": recipe.profile,
        "output_kind": recipe.output_kind.value,
        "folder_path": recipe.folder_path,
        "search_set_mode": recipe.search_set_mode.value,
        "include_empty": recipe.include_empty,
        "rules": [rule_to_dict(r) for r in recipe.rules],
        "grouping": grouping_to_dict(recipe.grouping),
        "created_at": recipe.created_at,
        "updated_at": recipe.updated_at,
    }


def recipe_from_dict(data: dict) -> SmartSetRecipe:
    """Deserializes a SmartSetRecipe from a dict.

    Invalid rules are skipped with a warning; unknown enum values fall
    back to their defaults.

    Args:
        data: Dict as produced by ``recipe_to_dict``.

    Returns:
        A SmartSetRecipe instance.

    Raises:
        ValueError: If ``rules`` is present but not a list.
    """
    recipe = SmartSetRecipe(
        name=data.get("name", "New Recipe"),
        description=data.get("description", ""),
        profile=data.get("profile", ""),
        folder_path=data.get("folder_path", DEFAULT_FOLDER_PATH),
        include_empty=bool(data.get("include_empty", False)),
        version=data.get("version", 1),
    )

    try:
        recipe.output_kind = OutputKind(data.get("output_kind", OutputKind.SEARCH.value))
    except ValueError:
        logger.warning("Unknown output kind: %s", data.get("output_kind"))

    try:
        recipe.search_set_mode = SearchSetMode(data.get("search_set_mode", SearchSetMode.SINGLE.value))
    except ValueError:
        logger.warning("Unknown search set mode: %s", data.get("search_set_mode"))

    raw_rules = data.get("rules", [])
    if not isinstance(raw_rules, list):
        msg = "'rules' must be a list"
        raise ValueError(msg)

    parsed_rules: list[SmartSetRule] = []
    for rule_data in raw_rules:
        try:
            parsed_rules.append(rule_from_dict(rule_data))
        except (ValueError, KeyError, AttributeError) as exc:
            logger.warning("Skipping invalid rule %s: %s", rule_data, exc)
    recipe.rules = parsed_rules

    if isinstance(data.get("grouping"), dict):
        recipe.grouping = grouping_from_dict(data["grouping"])

    recipe.created_at = data.get("created_at", recipe.created_at)
    recipe.updated_at = data.get("updated_at", recipe.updated_at)
    return recipe


def recipe_to_json(recipe: SmartSetRecipe) -> str:
    """Serializes a SmartSetRecipe to a JSON string."""
    return json.dumps(recipe_to_dict(recipe), ensure_ascii=False, indent=2)


def recipe_from_json(recipe_json: str) -> SmartSetRecipe:
    """Deserializes a SmartSetRecipe from a JSON string.

    Args:
        recipe_json: JSON text as produced by ``recipe_to_json``.

    Returns:
        A SmartSetRecipe instance.

    Raises:
        ValueError: If the JSON is malformed or not an object.
    """
    try:
        data = json.loads(recipe_json)
    except json.JSONDecodeError as exc:
        msg = f"Invalid JSON: {exc}"
        raise ValueError(msg) from exc

    if not isinstance(data, dict):
        msg = "Recipe JSON must be an object"
        raise ValueError(msg)
    return recipe_from_dict(data)


def now_ts() -> int:
    """Returns the current Unix timestamp as integer.

    Returns:
        Current time as integer seconds since epoch.
    """
    return int(time.time())
