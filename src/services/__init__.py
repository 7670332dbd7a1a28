from __future__ import annotations

from src.services.smart_sets import SmartSetEngine

__all__: list[str] = [
    "SmartSetEngine",
]
