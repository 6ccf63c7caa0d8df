"""Feature registry, enrichment engine and recompute controller."""

from .base import (
    AttributeValue,
    ComputeContext,
    FeatureCategory,
    FeatureDefinition,
    FeatureKind,
    RenderAs,
)
from .builtin import BUILTIN_FEATURES, register_builtin_features
from .context import ContextBuilder
from .controller import RecomputeController, RecomputeState
from .engine import FeatureEngine
from .registry import FeatureRegistry
from .search import filterable_features, search_notes

__all__ = [
    "AttributeValue",
    "BUILTIN_FEATURES",
    "ComputeContext",
    "ContextBuilder",
    "FeatureCategory",
    "FeatureDefinition",
    "FeatureEngine",
    "FeatureKind",
    "FeatureRegistry",
    "RecomputeController",
    "RecomputeState",
    "RenderAs",
    "filterable_features",
    "register_builtin_features",
    "search_notes",
]
