"""Feature registry for looking up feature definitions."""

from collections.abc import Iterable

from .base import FeatureCategory, FeatureDefinition


class FeatureRegistry:
    """Catalog of available features, keyed by id.

    Populated once at startup by the bootstrap and passed explicitly to the
    components that need it. Not thread-safe.
    """

    def __init__(self) -> None:
        self._features: dict[str, FeatureDefinition] = {}

    def register(self, feature: FeatureDefinition) -> None:
        """Register a feature, replacing any previous one with the same id."""
        if not feature.id:
            raise ValueError("Feature id cannot be empty")
        self._features[feature.id] = feature

    def unregister(self, feature_id: str) -> None:
        """Unregister a feature by id."""
        if feature_id in self._features:
            del self._features[feature_id]

    def get(self, feature_id: str) -> FeatureDefinition | None:
        """Get a feature by id."""
        return self._features.get(feature_id)

    def get_all(self) -> list[FeatureDefinition]:
        """All registered features in registration order."""
        return list(self._features.values())

    def get_by_category(self, category: FeatureCategory | str) -> list[FeatureDefinition]:
        """Features in one category."""
        value = category.value if isinstance(category, FeatureCategory) else category
        return [f for f in self._features.values() if f.category.value == value]

    def get_enabled(self, enabled_ids: Iterable[str]) -> list[FeatureDefinition]:
        """Definitions for the given ids, in the given order.

        Unknown ids are silently dropped.
        """
        return [
            self._features[feature_id]
            for feature_id in enabled_ids
            if feature_id in self._features
        ]

    def list_features(self) -> list[str]:
        """List all registered feature ids."""
        return list(self._features.keys())

    def __contains__(self, feature_id: object) -> bool:
        return feature_id in self._features

    def __len__(self) -> int:
        return len(self._features)
