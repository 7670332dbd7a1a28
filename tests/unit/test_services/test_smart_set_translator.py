# tests/unit/test_services/test_smart_set_translator.py

"""Tests for QueryTranslator and PostFilterEvaluator."""

from __future__ import annotations

from src.core.property_store import ScrapeSession
from src.integrations.live_repository import InMemoryLiveRepository
from src.services.smart_sets.cancellation import CancellationToken
from src.services.smart_sets.errors import HostError
from src.services.smart_sets.models import Operator, SmartSetRule
from src.services.smart_sets.post_filter import PostFilterEvaluator
from src.services.smart_sets.query_translator import (
    NativeCondition,
    NativePredicate,
    NativeQuery,
    QueryTranslator,
)

BASIC = {NativePredicate.HAS_PROPERTY, NativePredicate.EQUALS}


class TestQueryTranslator:
    """Tests for QueryTranslator.translate()."""

    def test_fully_supported_group(self) -> None:
        rules = [
            SmartSetRule("Element", "Type", Operator.CONTAINS, "Pi"),
            SmartSetRule("Element", "Level", Operator.UNDEFINED, "ignored"),
        ]
        query, unsupported = QueryTranslator().translate(rules)
        assert not unsupported
        assert query.conditions == (
            NativeCondition("Element", "Type", NativePredicate.CONTAINS, "Pi"),
            NativeCondition("Element", "Level", NativePredicate.LACKS_PROPERTY, ""),
        )

    def test_blank_comparison_becomes_has_property(self) -> None:
        query, unsupported = QueryTranslator().translate([SmartSetRule("Element", "Type", Operator.EQUALS, " ")])
        assert not unsupported
        assert query.conditions == (NativeCondition("Element", "Type", NativePredicate.HAS_PROPERTY),)

    def test_unsupported_operator_is_widened(self) -> None:
        rules = [
            SmartSetRule("Element", "Type", Operator.WILDCARD, "*Valve"),
            SmartSetRule("Element", "Level", Operator.EQUALS, "L1"),
        ]
        query, unsupported = QueryTranslator(BASIC).translate(rules)
        assert unsupported
        assert query.conditions == (
            NativeCondition("Element", "Type", NativePredicate.HAS_PROPERTY),
            NativeCondition("Element", "Level", NativePredicate.EQUALS, "L1"),
        )

    def test_unsupported_undefined_adds_no_condition(self) -> None:
        query, unsupported = QueryTranslator(BASIC).translate([SmartSetRule("Element", "Mark", Operator.UNDEFINED)])
        assert unsupported
        assert query.conditions == ()

    def test_rules_without_key_and_disabled_rules_are_skipped(self) -> None:
        rules = [
            SmartSetRule("", "Type", Operator.EQUALS, "x"),
            SmartSetRule("Element", "Type", Operator.EQUALS, "x", enabled=False),
        ]
        query, unsupported = QueryTranslator().translate(rules)
        assert query == NativeQuery()
        assert not unsupported

    def test_is_expressible(self) -> None:
        translator = QueryTranslator(BASIC)
        assert translator.is_expressible(SmartSetRule("E", "T", Operator.EQUALS, "x"))
        assert translator.is_expressible(SmartSetRule("E", "T", Operator.CONTAINS, ""))
        assert not translator.is_expressible(SmartSetRule("E", "T", Operator.CONTAINS, "x"))

    def test_to_dict(self) -> None:
        query = NativeQuery((NativeCondition("Element", "Type", NativePredicate.NOT_EQUALS, "Pipe"),))
        assert query.to_dict() == {
            "conditions": [{"category": "Element", "property": "Type", "predicate": "not_equals", "value": "Pipe"}]
        }


class FlakyRepository(InMemoryLiveRepository):
    """Live repository failing to read one item."""

    def __init__(self, *args, broken: str = "", **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.broken = broken

    def read_property(self, item_id: str, category: str, prop: str) -> list[str]:
        if item_id == self.broken:
            msg = "item is locked"
            raise HostError(msg)
        return super().read_property(item_id, category, prop)


class TestPostFilterEvaluator:
    """Tests for PostFilterEvaluator."""

    def test_matches_all_rules_of_group(self, live_repository: InMemoryLiveRepository) -> None:
        post_filter = PostFilterEvaluator(live_repository)
        rules = [
            SmartSetRule("Element", "Type", Operator.WILDCARD, "Pipe"),
            SmartSetRule("Element", "Level", Operator.EQUALS, "l2"),
        ]
        assert post_filter.matches("P2", rules)
        assert not post_filter.matches("P1", rules)

    def test_reads_are_case_insensitive(self, live_repository: InMemoryLiveRepository) -> None:
        post_filter = PostFilterEvaluator(live_repository)
        assert post_filter.matches("T1", [SmartSetRule("ELEMENT", "Type", Operator.EQUALS, "tee")])

    def test_host_error_means_no_match_for_that_item(self, model_session: ScrapeSession) -> None:
        repo = FlakyRepository.from_entries(model_session.entries())
        repo.broken = "P1"
        post_filter = PostFilterEvaluator(repo)
        rules = [SmartSetRule("Element", "Type", Operator.CONTAINS, "Pipe")]
        assert post_filter.filter(["P1", "P2", "D1"], rules) == {"P2"}

    def test_filter_cancelled(self, live_repository: InMemoryLiveRepository) -> None:
        token = CancellationToken()
        token.cancel()
        rules = [SmartSetRule("Element", "Type", Operator.DEFINED)]
        assert PostFilterEvaluator(live_repository).filter(["P1"], rules, token) is None

    def test_unknown_item_does_not_match(self, live_repository: InMemoryLiveRepository) -> None:
        rules = [SmartSetRule("Element", "Type", Operator.UNDEFINED)]
        assert PostFilterEvaluator(live_repository).filter(["GHOST", "X1"], rules) == {"X1"}
