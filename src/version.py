"""
Central version management for Smart Set Engine.
"""

from __future__ import annotations

__all__ = ["__app_name__", "__version__", "__release_date__", "__author__", "__license__"]

__app_name__ = "Smart Set Engine"
__version__ = "0.3.0"
__release_date__ = "2026-10-18"
__author__ = "SmartSets Contributors"
__license__ = "MIT"
