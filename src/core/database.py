"""Smart Set Engine - Database Module.

SQLite storage for scrape snapshots and generated smart sets.

Architecture:
    Model scan -> ScrapeSession -> SQLite (scrape_sessions, property_entries)
    SmartSetEngine -> SqliteSetOutput -> SQLite (set_folders, smart_sets)
"""

from __future__ import annotations

from src.core.db import Database

__all__ = ["Database"]
