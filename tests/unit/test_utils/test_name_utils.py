"""Tests for set and file naming helpers."""

from __future__ import annotations

import pytest

from src.utils.name_utils import make_unique_name, sanitize_name, split_folder_path


class TestSanitizeName:
    """Tests for sanitize_name()."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Pipes", "Pipes"),
            ("L1 / Duct", "L1 _ Duct"),
            ('a<b>c:d"e', "a_b_c_d_e"),
            ("tab\there", "tab_here"),
            ("  padded  ", "padded"),
        ],
    )
    def test_invalid_characters_replaced(self, value: str, expected: str) -> None:
        assert sanitize_name(value) == expected

    def test_fallback(self) -> None:
        assert sanitize_name(None) == "Set"
        assert sanitize_name("   ", fallback="Recipe") == "Recipe"


class TestMakeUniqueName:
    """Tests for make_unique_name()."""

    def test_free_name_kept(self) -> None:
        assert make_unique_name(["Ducts"], "Pipes") == "Pipes"

    def test_numbered_suffix(self) -> None:
        assert make_unique_name(["Pipes", "Pipes (2)"], "Pipes") == "Pipes (3)"

    def test_case_insensitive(self) -> None:
        assert make_unique_name(["PIPES"], "pipes") == "pipes (2)"

    def test_desired_name_is_sanitized(self) -> None:
        assert make_unique_name([], "a/b") == "a_b"


class TestSplitFolderPath:
    """Tests for split_folder_path()."""

    def test_both_separators(self) -> None:
        assert split_folder_path("Smart Sets/MEP\\Packs") == ["Smart Sets", "MEP", "Packs"]

    def test_empty_parts_dropped(self) -> None:
        assert split_folder_path("/ a // b /") == ["a", "b"]
        assert split_folder_path(None) == []
