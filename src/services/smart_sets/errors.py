"""Typed input errors raised by the smart set engine.

Each error carries a short ``reason`` code naming the precondition that
failed, so callers can show an actionable message without parsing text.
"""

from __future__ import annotations

__all__ = ["EmptyRuleSetError", "HostError", "SmartSetInputError", "SplitAxisError"]


class SmartSetInputError(ValueError):
    """Base class for invalid caller input.

    Attributes:
        reason: Machine-readable code of the failed precondition.
    """

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class SplitAxisError(SmartSetInputError):
    """The rules do not designate exactly one usable split axis."""

    MULTIPLE_GROUPS = "multiple_groups"
    NO_AXIS = "no_axis"
    AMBIGUOUS_AXIS = "ambiguous_axis"
    AXIS_NOT_IN_RULES = "axis_not_in_rules"
    INVALID_AXIS = "invalid_axis"


class EmptyRuleSetError(SmartSetInputError):
    """An operation that needs at least one enabled rule received none."""

    def __init__(self, message: str = "At least one enabled rule is required.") -> None:
        super().__init__("no_rules", message)


class HostError(Exception):
    """The live host failed to answer a query or a property read."""
