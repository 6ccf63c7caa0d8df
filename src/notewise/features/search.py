"""Text search and feature filters over the enriched snapshot."""

from collections.abc import Iterable, Mapping
from typing import Any

from ..notes.models import EnrichedNote
from .base import FeatureDefinition, FeatureKind
from .registry import FeatureRegistry


def matches_text(note: EnrichedNote, query: str) -> bool:
    """Case-insensitive substring match on title or content."""
    if not query:
        return True
    needle = query.lower()
    return needle in note.title.lower() or needle in note.content.lower()


def matches_filters(
    note: EnrichedNote,
    registry: FeatureRegistry,
    filters: Mapping[str, Any],
) -> bool:
    """Every filter must equal the note's attribute value.

    Filters on unknown features or features without an attribute role
    don't exclude anything.
    """
    for feature_id, expected in filters.items():
        feature = registry.get(feature_id)
        if feature is None or not feature.attribute_role:
            continue
        if note.value(feature.attribute_role) != expected:
            return False
    return True


def search_notes(
    snapshot: Mapping[str, EnrichedNote],
    registry: FeatureRegistry,
    query: str = "",
    filters: Mapping[str, Any] | None = None,
) -> list[EnrichedNote]:
    """Notes matching the query and all filters, in snapshot order."""
    filters = filters or {}
    return [
        note
        for note in snapshot.values()
        if matches_text(note, query) and matches_filters(note, registry, filters)
    ]


def filterable_features(
    registry: FeatureRegistry, enabled_ids: Iterable[str]
) -> list[FeatureDefinition]:
    """Enabled property features that can be used as search filters."""
    return [
        feature
        for feature in registry.get_enabled(enabled_ids)
        if feature.kind is FeatureKind.PROPERTY and feature.attribute_role
    ]
