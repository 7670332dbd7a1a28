"""Smart Sets service: rule-based item filtering and set materialization.

Provides the rule models, the shared operator semantics, the fast (cached
index) and live (native search plus post-filter) evaluators, value
expansion, and the engine that materializes match sets.
"""

from __future__ import annotations

from src.services.smart_sets.cancellation import NEVER_CANCELLED, CancellationToken
from src.services.smart_sets.errors import EmptyRuleSetError, HostError, SmartSetInputError, SplitAxisError
from src.services.smart_sets.fast_evaluator import FastMatchEvaluator
from src.services.smart_sets.models import (
    GroupingSpec,
    MatchSetResult,
    Operator,
    OutputHandle,
    OutputKind,
    OutputSpec,
    SearchSetMode,
    SmartSetRecipe,
    SmartSetRule,
)
from src.services.smart_sets.post_filter import PostFilterEvaluator
from src.services.smart_sets.property_index import PropertyIndex
from src.services.smart_sets.query_translator import NativePredicate, NativeQuery, QueryTranslator
from src.services.smart_sets.smart_set_manager import SmartSetEngine

__all__: list[str] = [
    "NEVER_CANCELLED",
    "CancellationToken",
    "EmptyRuleSetError",
    "FastMatchEvaluator",
    "GroupingSpec",
    "HostError",
    "MatchSetResult",
    "NativePredicate",
    "NativeQuery",
    "Operator",
    "OutputHandle",
    "OutputKind",
    "OutputSpec",
    "PostFilterEvaluator",
    "PropertyIndex",
    "QueryTranslator",
    "SearchSetMode",
    "SmartSetEngine",
    "SmartSetInputError",
    "SmartSetRecipe",
    "SmartSetRule",
    "SplitAxisError",
]
