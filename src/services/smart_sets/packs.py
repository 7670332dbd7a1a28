# src/services/smart_sets/packs.py

"""Predefined Smart Set packs for common QA, handover and MEP checks.

Each pack is a named rule set, organized by category (qa, handover, mep),
that builds a ready-to-generate recipe for a scan profile and can report
which of its properties a session does not contain.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from src.services.smart_sets.models import (
    OutputKind,
    Operator,
    SmartSetRecipe,
    SmartSetRule,
)

if TYPE_CHECKING:
    from src.core.property_store import ScrapeSession

__all__ = [
    "PACK_CATEGORIES",
    "SmartSetPack",
    "get_all_packs",
    "get_pack_by_key",
    "pack_folder_path",
]


def pack_folder_path(profile: str) -> str:
    """Returns the folder pack recipes write to for a profile."""
    profile = (profile or "").strip()
    return f"Smart Sets/{profile}/Packs" if profile else "Smart Sets/Packs"


@dataclass(frozen=True)
class SmartSetPack:
    """A predefined rule pack.

    Attributes:
        key: Unique pack identifier.
        category: Category key for grouping (e.g. 'qa', 'mep').
        name: Display name, also used as the recipe name.
        description: What the pack finds.
        rules: The pack's rules.
    """

    key: str
    category: str
    name: str
    description: str
    rules: tuple[SmartSetRule, ...] = field(default_factory=tuple)

    def build_recipes(self, profile: str = "") -> list[SmartSetRecipe]:
        """Builds the recipes this pack generates for a profile.

        Args:
            profile: Scan profile name; selects the output folder.

        Returns:
            A single search-backed recipe holding copies of the pack rules.
        """
        recipe = SmartSetRecipe(
            name=self.name,
            description=self.description,
            profile=profile or "",
            output_kind=OutputKind.SEARCH,
            folder_path=pack_folder_path(profile),
            rules=[rule for rule in self.rules if rule is not None],
        )
        return [recipe]

    def check_missing_properties(self, session: ScrapeSession | None) -> list[str]:
        """Lists the pack's property keys that a session never observed.

        Args:
            session: The scrape session to check against.

        Returns:
            ``category::property`` keys missing from the session, without
            case-insensitive duplicates. Empty when there is no session.
        """
        if session is None:
            return []

        known = {d.key.casefold() for d in session.describe_properties()}
        missing: list[str] = []
        seen: set[str] = set()
        for rule in self.rules:
            folded = rule.key.casefold()
            if folded in known or folded in seen:
                continue
            seen.add(folded)
            missing.append(rule.key)
        return missing


def _rule(category: str, prop: str, op: Operator, value: str = "") -> SmartSetRule:
    """Shorthand factory for an enabled group-A rule."""
    return SmartSetRule(category=category, property=prop, operator=op, value=value)


# ========================================================================
# PACK DEFINITIONS
# ========================================================================

_PACKS: list[SmartSetPack] = [
    # --- QA ---
    SmartSetPack(
        key="qa_missing_level",
        category="qa",
        name="QA: Missing Level",
        description="Find items without a Level property.",
        rules=(_rule("Element", "Level", Operator.UNDEFINED),),
    ),
    SmartSetPack(
        key="qa_missing_category",
        category="qa",
        name="QA: Missing Category",
        description="Find items missing the Element Properties Category.",
        rules=(_rule("Element Properties", "Category", Operator.UNDEFINED),),
    ),
    SmartSetPack(
        key="qa_missing_mark",
        category="qa",
        name="QA: Missing Mark",
        description="Find items without a Mark value.",
        rules=(_rule("Element", "Mark", Operator.UNDEFINED),),
    ),
    SmartSetPack(
        key="qa_missing_type",
        category="qa",
        name="QA: Missing Type",
        description="Find items without a Type value.",
        rules=(_rule("Element", "Type", Operator.UNDEFINED),),
    ),
    SmartSetPack(
        key="qa_duplicate_candidates",
        category="qa",
        name="QA: Duplicate Candidates",
        description="Items carrying a Name value; split by value to find duplicates.",
        rules=(_rule("Item", "Name", Operator.DEFINED),),
    ),
    # --- Handover ---
    SmartSetPack(
        key="handover_missing_asset_tag",
        category="handover",
        name="Handover: Missing Asset Tag",
        description="Identify assets without an Asset Tag value.",
        rules=(_rule("Element", "Asset Tag", Operator.UNDEFINED),),
    ),
    # --- MEP ---
    SmartSetPack(
        key="mep_valves",
        category="mep",
        name="MEP: Valves",
        description="Items whose Type contains Valve.",
        rules=(_rule("Element", "Type", Operator.CONTAINS, "Valve"),),
    ),
    SmartSetPack(
        key="mep_dampers",
        category="mep",
        name="MEP: Dampers",
        description="Items whose Type contains Damper.",
        rules=(_rule("Element", "Type", Operator.CONTAINS, "Damper"),),
    ),
    SmartSetPack(
        key="mep_panels",
        category="mep",
        name="MEP: Panels",
        description="Items whose Type contains Panel.",
        rules=(_rule("Element", "Type", Operator.CONTAINS, "Panel"),),
    ),
]

# Build category -> packs lookup
PACK_CATEGORIES: dict[str, list[SmartSetPack]] = {}
for _pack in _PACKS:
    PACK_CATEGORIES.setdefault(_pack.category, []).append(_pack)


def get_all_packs() -> list[SmartSetPack]:
    """Returns all available packs as a flat list."""
    return list(_PACKS)


def get_pack_by_key(key: str) -> SmartSetPack | None:
    """Looks up a pack by its unique key.

    Args:
        key: The pack key to search for.

    Returns:
        The matching pack, or None if not found.
    """
    for pack in _PACKS:
        if pack.key == key:
            return pack
    return None
