"""Smoke tests – verify all modules are importable and free of syntax errors.

This is an infrastructure test (not a unit test), so it lives in the tests
root rather than under ``tests/unit/``.
"""

from __future__ import annotations

import importlib
import sys

import pytest

# ---------------------------------------------------------------------------
# Module lists
# ---------------------------------------------------------------------------

CORE_MODULES: list[str] = [
    "src.core.database",
    "src.core.db",
    "src.core.logging",
    "src.core.property_store",
]

SERVICE_MODULES: list[str] = [
    "src.services.smart_sets",
    "src.services.smart_sets.cancellation",
    "src.services.smart_sets.errors",
    "src.services.smart_sets.fast_evaluator",
    "src.services.smart_sets.inference",
    "src.services.smart_sets.matching",
    "src.services.smart_sets.models",
    "src.services.smart_sets.packs",
    "src.services.smart_sets.post_filter",
    "src.services.smart_sets.property_index",
    "src.services.smart_sets.query_translator",
    "src.services.smart_sets.smart_set_manager",
    "src.services.smart_sets.value_expansion",
]

UTILS_MODULES: list[str] = [
    "src.utils.name_utils",
    "src.utils.recipe_store",
]

INTEGRATION_MODULES: list[str] = [
    "src.integrations.host_api",
    "src.integrations.live_repository",
    "src.integrations.set_output",
]

TOP_LEVEL_MODULES: list[str] = [
    "src.config",
    "src.main",
    "src.version",
]


# ---------------------------------------------------------------------------
# Parametrized import tests
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("module_path", CORE_MODULES)
def test_import_core_modules(module_path: str) -> None:
    """Core module must be importable without errors."""
    importlib.import_module(module_path)


@pytest.mark.parametrize("module_path", SERVICE_MODULES)
def test_import_service_modules(module_path: str) -> None:
    """Service module must be importable without errors."""
    importlib.import_module(module_path)


@pytest.mark.parametrize("module_path", UTILS_MODULES)
def test_import_utils_modules(module_path: str) -> None:
    """Utils module must be importable without errors."""
    importlib.import_module(module_path)


@pytest.mark.parametrize("module_path", INTEGRATION_MODULES)
def test_import_integration_modules(module_path: str) -> None:
    """Integration module must be importable without errors."""
    importlib.import_module(module_path)


@pytest.mark.parametrize("module_path", TOP_LEVEL_MODULES)
def test_import_top_level_modules(module_path: str) -> None:
    """Top-level module must be importable without errors."""
    importlib.import_module(module_path)


# ---------------------------------------------------------------------------
# Circular import check
# ---------------------------------------------------------------------------


def test_no_circular_imports() -> None:
    """All modules can be imported in a fresh subprocess without cycles.

    Uses subprocess isolation to avoid corrupting module references for
    other tests in the same session.
    """
    import subprocess

    all_modules = CORE_MODULES + SERVICE_MODULES + UTILS_MODULES + INTEGRATION_MODULES + TOP_LEVEL_MODULES
    import_lines = "; ".join(f"import {m}" for m in all_modules)
    result = subprocess.run(
        [sys.executable, "-c", import_lines],
        capture_output=True,
        text=True,
        timeout=30,
    )
    assert result.returncode == 0, f"Circular import detected:\nstderr: {result.stderr}"
