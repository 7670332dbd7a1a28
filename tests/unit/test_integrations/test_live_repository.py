"""Tests for the in-memory live repository."""

from __future__ import annotations

import pytest

from src.integrations.live_repository import InMemoryLiveRepository, LiveItem, LiveRepository
from src.services.smart_sets.errors import HostError
from src.services.smart_sets.query_translator import NativeCondition, NativePredicate, NativeQuery


def _query(*conditions: NativeCondition) -> NativeQuery:
    return NativeQuery(tuple(conditions))


class TestInMemoryLiveRepository:
    """Tests for native queries and property reads."""

    def test_implements_protocol(self, live_repository: InMemoryLiveRepository) -> None:
        assert isinstance(live_repository, LiveRepository)

    def test_from_entries_builds_one_item_per_id(self, live_repository: InMemoryLiveRepository) -> None:
        assert set(live_repository.items) == {"P1", "P2", "D1", "V1", "X1", "T1"}

    def test_empty_query_selects_everything(self, live_repository: InMemoryLiveRepository) -> None:
        assert live_repository.run_native_query(NativeQuery()) == set(live_repository.items)

    def test_conditions_are_conjunctive(self, live_repository: InMemoryLiveRepository) -> None:
        query = _query(
            NativeCondition("Element", "Type", NativePredicate.EQUALS, "pipe"),
            NativeCondition("Element", "Level", NativePredicate.EQUALS, "L1"),
        )
        assert live_repository.run_native_query(query) == {"P1"}

    def test_lacks_property(self, live_repository: InMemoryLiveRepository) -> None:
        query = _query(NativeCondition("Element", "Type", NativePredicate.LACKS_PROPERTY))
        assert live_repository.run_native_query(query) == {"X1"}

    def test_unsupported_predicate_raises(self, model_session) -> None:
        repo = InMemoryLiveRepository.from_entries(
            model_session.entries(),
            supported_predicates={NativePredicate.HAS_PROPERTY},
        )
        with pytest.raises(HostError, match="not supported"):
            repo.run_native_query(_query(NativeCondition("Element", "Type", NativePredicate.CONTAINS, "p")))

    def test_read_property_is_case_insensitive(self, live_repository: InMemoryLiveRepository) -> None:
        assert live_repository.read_property("T1", "ELEMENT", "Type") == ["Tee"]

    def test_read_property_collects_every_value(self, live_repository: InMemoryLiveRepository) -> None:
        assert live_repository.read_property("V1", "Element", "Mark") == ["V-001", ""]

    def test_read_property_absent(self, live_repository: InMemoryLiveRepository) -> None:
        assert live_repository.read_property("X1", "Element", "Type") == []

    def test_read_property_merges_repeated_categories(self) -> None:
        item = LiveItem("A")
        item.add("Element", "Type", "Pipe")
        item.add("element", "type", "Fitting")
        repo = InMemoryLiveRepository([item])

        assert repo.read_property("A", "Element", "Type") == ["Pipe", "Fitting"]

    def test_unknown_item_raises(self, live_repository: InMemoryLiveRepository) -> None:
        with pytest.raises(HostError, match="Unknown item"):
            live_repository.read_property("missing", "Element", "Type")
