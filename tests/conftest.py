# tests/conftest.py
from pathlib import Path
from typing import Generator

import pytest

from src.core.database import Database
from src.core.property_store import PropertyEntry, ScrapeSession
from src.integrations.live_repository import InMemoryLiveRepository
from src.integrations.set_output import SqliteSetOutput


@pytest.fixture
def pipe_duct_session() -> ScrapeSession:
    """Three items: a pipe, a duct and one with a blank Type."""
    return ScrapeSession(
        entries_list=[
            PropertyEntry("A", "Element", "Type", "Pipe"),
            PropertyEntry("B", "Element", "Type", "Duct"),
            PropertyEntry("C", "Element", "Type", ""),
        ],
        session_id="pipe-duct",
        profile_name="Default",
        timestamp=1_700_000_000,
    )


@pytest.fixture
def model_session() -> ScrapeSession:
    """A small MEP model with levels, systems and multi-valued properties."""
    entries = [
        # item, category, property, value
        ("P1", "Element", "Type", "Pipe"),
        ("P1", "Element", "Level", "L1"),
        ("P1", "Element", "System", "Chilled Water"),
        ("P1", "Item", "Name", "Pipe 50mm"),
        ("P2", "Element", "Type", "Pipe"),
        ("P2", "Element", "Level", "L2"),
        ("P2", "Element", "System", "Hot Water"),
        ("P2", "Item", "Name", "Pipe 80mm"),
        ("D1", "Element", "Type", "Duct"),
        ("D1", "Element", "Level", "L1"),
        ("D1", "Element", "System", "Supply Air"),
        ("D1", "Item", "Name", "Duct 400x200"),
        ("V1", "Element", "Type", "Gate Valve"),
        ("V1", "Element", "Level", "l1"),
        ("V1", "Element", "Mark", "V-001"),
        ("V1", "Element", "Mark", ""),
        ("V1", "Item", "Name", "Valve"),
        ("X1", "Item", "Name", "Unknown"),
        ("X1", "Element", "Level", ""),
        ("T1", "element", "type", "Tee"),
        ("T1", "Element", "Level", "L2"),
    ]
    return ScrapeSession(
        entries_list=[PropertyEntry(*e) for e in entries],
        session_id="model-1",
        profile_name="MEP",
        timestamp=1_700_000_500,
    )


@pytest.fixture
def live_repository(model_session: ScrapeSession) -> InMemoryLiveRepository:
    """A live host mirroring the model session, supporting every predicate."""
    return InMemoryLiveRepository.from_entries(model_session.entries())


@pytest.fixture
def db(tmp_path: Path) -> Generator[Database, None, None]:
    """Fresh SQLite database in a temporary directory."""
    database = Database(tmp_path / "test.db")
    yield database
    database.close()


@pytest.fixture
def set_output(db: Database) -> SqliteSetOutput:
    """SQLite-backed set output adapter."""
    return SqliteSetOutput(db)
