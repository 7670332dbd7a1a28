# tests/unit/test_services/test_smart_set_models.py

"""Tests for Smart Set data models and serialization helpers."""

from __future__ import annotations

import pytest

from src.services.smart_sets.models import (
    GroupingSpec,
    MatchSetResult,
    Operator,
    OutputKind,
    SearchSetMode,
    SmartSetRecipe,
    SmartSetRule,
    enabled_rules,
    group_rules,
    grouping_from_dict,
    normalize_group_id,
    operator_from_value,
    recipe_from_dict,
    recipe_from_json,
    recipe_to_json,
    rule_from_dict,
    rule_to_dict,
)

# ========================================================================
# RULES AND GROUPS
# ========================================================================


class TestOperatorFromValue:
    """Tests for operator_from_value()."""

    @pytest.mark.parametrize("text", ["not_equals", "NOT_EQUALS", "NotEquals", " notequals "])
    def test_aliases(self, text: str) -> None:
        assert operator_from_value(text) == Operator.NOT_EQUALS

    def test_unknown_operator_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown operator"):
            operator_from_value("between")


class TestSmartSetRule:
    """Tests for SmartSetRule."""

    def test_defaults(self) -> None:
        rule = SmartSetRule()
        assert rule.operator == Operator.DEFINED
        assert rule.group_id == "A"
        assert rule.enabled is True
        assert not rule.has_key

    def test_key_and_has_key(self) -> None:
        rule = SmartSetRule("Element", "Type")
        assert rule.key == "Element::Type"
        assert rule.has_key

    def test_whitespace_property_has_no_key(self) -> None:
        assert not SmartSetRule("Element", "  ").has_key

    def test_frozen(self) -> None:
        rule = SmartSetRule("Element", "Type")
        with pytest.raises(AttributeError):
            rule.value = "x"  # type: ignore[misc]


class TestGrouping:
    """Tests for normalize_group_id(), enabled_rules() and group_rules()."""

    def test_normalize_group_id(self) -> None:
        assert normalize_group_id(None) == "A"
        assert normalize_group_id("  ") == "A"
        assert normalize_group_id(" b ") == "b"

    def test_enabled_rules_drops_none_and_disabled(self) -> None:
        r1 = SmartSetRule("Element", "Type")
        r2 = SmartSetRule("Element", "Level", enabled=False)
        assert enabled_rules([r1, None, r2]) == [r1]
        assert enabled_rules(None) == []

    def test_group_ids_compare_case_insensitively(self) -> None:
        r1 = SmartSetRule("Element", "Type", group_id="b")
        r2 = SmartSetRule("Element", "Level", group_id=" B ")
        r3 = SmartSetRule("Element", "Mark", group_id="")
        groups = group_rules([r1, r2, r3])
        assert list(groups) == ["b", "A"]
        assert groups["b"] == [r1, r2]
        assert groups["A"] == [r3]


# ========================================================================
# RESULTS AND OPTIONS
# ========================================================================


class TestMatchSetResult:
    """Tests for MatchSetResult."""

    def test_from_ids_sorts_and_deduplicates(self) -> None:
        result = MatchSetResult.from_ids(["b", "a", "b"], used_cache=True)
        assert result.item_ids == ("a", "b")
        assert result.count == 2
        assert result.used_cache

    def test_sample(self) -> None:
        result = MatchSetResult.from_ids(["c", "a", "b"])
        assert result.sample(2) == ["a", "b"]
        assert result.sample(-1) == []


class TestGroupingSpec:
    """Tests for GroupingSpec clamping."""

    def test_limits_are_at_least_one(self) -> None:
        spec = GroupingSpec(max_groups=0, min_count=-3)
        assert spec.max_groups == 1
        assert spec.min_count == 1

    def test_from_dict_defaults(self) -> None:
        spec = grouping_from_dict({"group_by_category": "Element"})
        assert spec.group_by_category == "Element"
        assert spec.max_groups == 50
        assert spec.min_count == 5


# ========================================================================
# SERIALIZATION
# ========================================================================


class TestRuleSerialization:
    """Tests for rule_to_dict() / rule_from_dict()."""

    def test_round_trip(self) -> None:
        rule = SmartSetRule("Element", "Type", Operator.WILDCARD, "*Valve", group_id="B", enabled=False)
        assert rule_from_dict(rule_to_dict(rule)) == rule

    def test_missing_fields_use_defaults(self) -> None:
        rule = rule_from_dict({"category": "Element", "property": "Type", "operator": "Contains"})
        assert rule.group_id == "A"
        assert rule.value == ""
        assert rule.operator == Operator.CONTAINS

    def test_missing_operator_raises(self) -> None:
        with pytest.raises(KeyError):
            rule_from_dict({"category": "Element"})


class TestRecipeSerialization:
    """Tests for recipe JSON helpers."""

    def test_json_round_trip(self) -> None:
        recipe = SmartSetRecipe(
            name="Pipes by level",
            profile="MEP",
            output_kind=OutputKind.BOTH,
            search_set_mode=SearchSetMode.SPLIT_BY_VALUE,
            include_empty=True,
            rules=[
                SmartSetRule("Element", "Type", Operator.EQUALS, "Pipe"),
                SmartSetRule("Element", "Level", Operator.DEFINED, group_id="A"),
            ],
            grouping=GroupingSpec(enable_smart_grouping=True, group_by_category="Element", group_by_property="Level"),
            created_at=100,
            updated_at=200,
        )
        assert recipe_from_json(recipe_to_json(recipe)) == recipe

    def test_invalid_rules_are_skipped(self) -> None:
        recipe = recipe_from_dict(
            {
                "name": "R",
                "rules": [
                    {"category": "Element", "property": "Type", "operator": "equals", "value": "Pipe"},
                    {"category": "Element", "property": "Type", "operator": "between"},
                    {"category": "Element"},
                ],
            }
        )
        assert len(recipe.rules) == 1

    def test_unknown_enums_fall_back(self) -> None:
        recipe = recipe_from_dict({"name": "R", "output_kind": "folder", "search_set_mode": "weird"})
        assert recipe.output_kind == OutputKind.SEARCH
        assert recipe.search_set_mode == SearchSetMode.SINGLE

    def test_rules_must_be_a_list(self) -> None:
        with pytest.raises(ValueError, match="must be a list"):
            recipe_from_dict({"name": "R", "rules": "nope"})

    def test_invalid_json(self) -> None:
        with pytest.raises(ValueError, match="Invalid JSON"):
            recipe_from_json("{not json")
        with pytest.raises(ValueError, match="object"):
            recipe_from_json("[]")

    def test_output_spec(self) -> None:
        recipe = SmartSetRecipe(name="R", output_kind=OutputKind.SNAPSHOT, folder_path="X/Y", include_empty=True)
        spec = recipe.output_spec("R - L1")
        assert spec.name == "R - L1"
        assert spec.kind == OutputKind.SNAPSHOT
        assert spec.folder_path == "X/Y"
        assert spec.include_empty
