from __future__ import annotations

__all__: list[str] = ["HostApiClient", "InMemoryLiveRepository", "SqliteSetOutput"]

from src.integrations.host_api import HostApiClient
from src.integrations.live_repository import InMemoryLiveRepository
from src.integrations.set_output import SqliteSetOutput
