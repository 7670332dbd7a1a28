# src/utils/name_utils.py

"""Naming utilities for generated smart sets and recipe files.

Shared by the SQLite set output (unique set names inside a folder) and the
recipe store (safe file names).
"""

from __future__ import annotations

import re
from collections.abc import Iterable

__all__ = ["make_unique_name", "sanitize_name", "split_folder_path"]

# Characters that are invalid in file names on at least one platform
_INVALID_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

_MAX_SUFFIX = 9999


def sanitize_name(value: str | None, fallback: str = "Set") -> str:
    """Replaces characters invalid in file names with ``_`` and trims.

    Args:
        value: The desired name.
        fallback: Name used when the result is blank.

    Returns:
        The sanitized name, or ``fallback`` if nothing usable remains.
    """
    if value is None:
        return fallback
    cleaned = _INVALID_CHARS.sub("_", value).strip()
    return cleaned or fallback


def make_unique_name(existing: Iterable[str], desired: str) -> str:
    """Makes a name unique among siblings by appending `` (2)``, `` (3)``, ...

    Comparison with existing names is case-insensitive.

    Args:
        existing: Names already used in the target folder.
        desired: The preferred name.

    Returns:
        ``desired`` (sanitized) if free, else the first free numbered variant.
    """
    desired = sanitize_name(desired)
    taken = {name.casefold() for name in existing}

    if desired.casefold() not in taken:
        return desired

    for i in range(2, _MAX_SUFFIX):
        candidate = f"{desired} ({i})"
        if candidate.casefold() not in taken:
            return candidate

    return f"{desired} ({_MAX_SUFFIX})"


def split_folder_path(folder_path: str | None) -> list[str]:
    """Splits a ``/``- or ``\\``-separated folder path into its parts.

    Empty parts are dropped and each part is trimmed.
    """
    parts = re.split(r"[/\\]", folder_path or "")
    return [part.strip() for part in parts if part.strip()]
