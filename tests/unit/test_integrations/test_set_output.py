"""Tests for the SQLite set output adapter."""

from __future__ import annotations

import json

from src.core.database import Database
from src.integrations.set_output import SetOutputAdapter, SqliteSetOutput
from src.services.smart_sets.models import Operator, SmartSetRule


class TestEnsureFolder:
    """Tests for SqliteSetOutput.ensure_folder()."""

    def test_blank_path_is_root(self, set_output: SqliteSetOutput) -> None:
        assert set_output.ensure_folder("") is None

    def test_creates_nested_folders_once(self, set_output: SqliteSetOutput, db: Database) -> None:
        leaf = set_output.ensure_folder("Smart Sets/MEP/Packs")
        again = set_output.ensure_folder("smart sets\\mep\\packs")

        assert leaf == again
        count = db.conn.execute("SELECT COUNT(*) FROM set_folders").fetchone()[0]
        assert count == 3


class TestCreateSets:
    """Tests for search and snapshot set creation."""

    def test_implements_protocol(self, set_output: SqliteSetOutput) -> None:
        assert isinstance(set_output, SetOutputAdapter)

    def test_search_set_stores_rules(self, set_output: SqliteSetOutput, db: Database) -> None:
        rules = [SmartSetRule("Element", "Type", Operator.EQUALS, "Pipe")]
        set_id, name = set_output.create_search_set("Smart Sets", "Pipes", rules)

        stored = db.get_smart_set(set_id)
        assert name == "Pipes"
        assert stored["kind"] == "search"
        assert json.loads(stored["rules"]) == [
            {
                "group_id": "A",
                "category": "Element",
                "property": "Type",
                "operator": "equals",
                "value": "Pipe",
                "enabled": True,
            }
        ]

    def test_snapshot_set_stores_sorted_members(self, set_output: SqliteSetOutput, db: Database) -> None:
        set_id, _ = set_output.create_snapshot_set("Smart Sets", "Pipes (Snapshot)", ["P2", "P1", "P2"])
        assert db.get_smart_set_items(set_id) == ["P1", "P2"]

    def test_names_are_made_unique(self, set_output: SqliteSetOutput) -> None:
        _, first = set_output.create_snapshot_set("Smart Sets", "Pipes", ["P1"])
        _, second = set_output.create_search_set("Smart Sets", "pipes", [])
        _, third = set_output.create_snapshot_set("Smart Sets", "Pipes", ["P2"])

        assert (first, second, third) == ("Pipes", "pipes (2)", "Pipes (3)")

    def test_same_name_in_other_folder(self, set_output: SqliteSetOutput) -> None:
        set_output.create_snapshot_set("A", "Pipes", ["P1"])
        _, name = set_output.create_snapshot_set("B", "Pipes", ["P1"])
        assert name == "Pipes"
