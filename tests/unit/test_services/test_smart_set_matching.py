# tests/unit/test_services/test_smart_set_matching.py

"""Tests for the shared operator semantics."""

from __future__ import annotations

import pytest

from src.services.smart_sets.matching import (
    effective_operator,
    is_blank,
    matches_values,
    wildcard_match,
)
from src.services.smart_sets.models import Operator, SmartSetRule


class TestEffectiveOperator:
    """Tests for effective_operator()."""

    @pytest.mark.parametrize(
        "op",
        [Operator.EQUALS, Operator.NOT_EQUALS, Operator.CONTAINS, Operator.WILDCARD],
    )
    def test_blank_comparison_degrades_to_defined(self, op: Operator) -> None:
        rule = SmartSetRule("Element", "Type", op, "   ")
        assert effective_operator(rule) == Operator.DEFINED

    def test_comparison_with_value_is_kept(self) -> None:
        rule = SmartSetRule("Element", "Type", Operator.CONTAINS, "Pi")
        assert effective_operator(rule) == Operator.CONTAINS

    def test_undefined_is_never_degraded(self) -> None:
        rule = SmartSetRule("Element", "Type", Operator.UNDEFINED, "")
        assert effective_operator(rule) == Operator.UNDEFINED

    def test_missing_rule_is_defined(self) -> None:
        assert effective_operator(None) == Operator.DEFINED


class TestIsBlank:
    """Tests for is_blank()."""

    @pytest.mark.parametrize("value", [None, "", " ", "\t\n"])
    def test_blank_values(self, value: str | None) -> None:
        assert is_blank(value)

    def test_non_blank(self) -> None:
        assert not is_blank(" x ")


class TestWildcardMatch:
    """Tests for wildcard_match()."""

    @pytest.mark.parametrize(
        "value, pattern, expected",
        [
            ("Gate Valve", "*Valve", True),
            ("Gate Valve", "gate*", True),
            ("Tee", "T?e", True),
            ("Tree", "T?e", False),
            ("Pipe", "Pipe", True),
            ("Pipe 50", "Pipe", False),
            ("Pipe", "pipe", True),
            ("a.b", "a.b", True),
            ("axb", "a.b", False),
            ("[x]", "[x]", True),
            ("line1\nline2", "line1*", True),
            ("STRASSE", "straße", True),
            ("Straße", "STRA*", True),
            ("Pipe\n", "Pipe", False),
        ],
    )
    def test_patterns(self, value: str, pattern: str, expected: bool) -> None:
        assert wildcard_match(value, pattern) is expected

    def test_empty_pattern_matches_anything(self) -> None:
        assert wildcard_match("whatever", "")


class TestMatchesValues:
    """Tests for matches_values()."""

    def test_defined_means_key_present(self) -> None:
        assert matches_values([""], Operator.DEFINED, "")
        assert not matches_values([], Operator.DEFINED, "")

    def test_undefined_means_key_absent(self) -> None:
        assert matches_values([], Operator.UNDEFINED, "")
        assert matches_values(None, Operator.UNDEFINED, "")
        assert not matches_values([""], Operator.UNDEFINED, "")

    def test_equals_is_case_insensitive(self) -> None:
        assert matches_values(["PIPE"], Operator.EQUALS, "pipe")

    def test_equals_does_not_trim(self) -> None:
        assert not matches_values(["Pipe "], Operator.EQUALS, "Pipe")

    def test_equals_any_value(self) -> None:
        assert matches_values(["Duct", "Pipe"], Operator.EQUALS, "pipe")

    def test_not_equals_needs_a_differing_non_blank_value(self) -> None:
        assert matches_values(["Pipe", "Duct"], Operator.NOT_EQUALS, "Pipe")
        assert not matches_values(["Pipe"], Operator.NOT_EQUALS, "pipe")
        assert not matches_values(["Pipe", ""], Operator.NOT_EQUALS, "Pipe")
        assert not matches_values([], Operator.NOT_EQUALS, "Pipe")

    def test_contains(self) -> None:
        assert matches_values(["Pipe"], Operator.CONTAINS, "pI")
        assert not matches_values(["Duct"], Operator.CONTAINS, "Pi")

    def test_blank_values_never_satisfy_comparisons(self) -> None:
        for op in (Operator.EQUALS, Operator.NOT_EQUALS, Operator.CONTAINS, Operator.WILDCARD):
            assert not matches_values(["", "  "], op, "x")

    def test_wildcard(self) -> None:
        assert matches_values(["Gate Valve"], Operator.WILDCARD, "*valve")

    @pytest.mark.parametrize("needle", ["straße", "STRASSE", "Strasse", "strase"])
    def test_plain_wildcard_agrees_with_equals(self, needle: str) -> None:
        values = ["STRASSE"]
        assert matches_values(values, Operator.WILDCARD, needle) == matches_values(values, Operator.EQUALS, needle)


class TestSmartSetRuleKey:
    """Tests for SmartSetRule.key / has_key."""

    def test_key(self) -> None:
        assert SmartSetRule("Element", "Type").key == "Element::Type"

    def test_has_key(self) -> None:
        assert SmartSetRule("Element", "Type").has_key
        assert not SmartSetRule(" ", "Type").has_key

    def test_none_fields_become_blank(self) -> None:
        rule = SmartSetRule(None, None, Operator.EQUALS, None)  # type: ignore[arg-type]
        assert (rule.category, rule.property, rule.value) == ("", "", "")
        assert not rule.has_key
        assert effective_operator(rule) == Operator.DEFINED
