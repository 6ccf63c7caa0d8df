"""Note manager: note and property mutations followed by recomputes."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ..features import FeatureKind, FeatureRegistry, RecomputeController, search_notes
from ..logging import JSONLLogger, get_logger
from ..preferences import FeaturePreferences, PreferencesStore
from .models import EnrichedNote, Note, StoredProperty
from .store import NoteStore


class NoteManager:
    """Orchestrates note operations and keeps the enriched view current.

    Storage errors propagate to the caller. Recompute failures never do;
    they are logged by the controller and the previous snapshot stays
    published.
    """

    def __init__(
        self,
        store: NoteStore,
        registry: FeatureRegistry,
        controller: RecomputeController,
        preferences: PreferencesStore,
        logger: JSONLLogger | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            store: The NoteStore for persistence.
            registry: Registry of available features.
            controller: Owner of the published snapshot.
            preferences: Store for enabled features and their configs.
            logger: Event logger.
        """
        self.store = store
        self.registry = registry
        self.controller = controller
        self.preferences = preferences
        self.logger = logger or get_logger()
        self.prefs: FeaturePreferences = preferences.load()
        self._notes: list[Note] = []

    @property
    def notes(self) -> list[Note]:
        return list(self._notes)

    @property
    def enabled_features(self) -> list[str]:
        return list(self.prefs.enabled_features)

    @property
    def snapshot(self) -> Mapping[str, EnrichedNote]:
        return self.controller.snapshot

    async def load_notes(self) -> list[Note]:
        """Reload notes from storage and recompute."""
        self._notes = self.store.list_notes()
        await self.recompute()
        return self.notes

    async def recompute(self) -> bool:
        """Recompute the enriched view with the current notes and features."""
        return await self.controller.recompute(
            self._notes,
            self.prefs.enabled_features,
            self.prefs.feature_configs,
        )

    async def create_note(
        self, title: str, content: str = "", tags: Iterable[str] = ()
    ) -> Note:
        """Create and persist a note.

        Returns:
            The created note.
        """
        note = self.store.add_note(Note.create(title, content, tags))
        self.logger.log("note_created", note_id=note.id)
        await self.load_notes()
        return note

    async def update_note(self, note_id: str, **updates: Any) -> Note:
        """Update title, content or tags of a note.

        Raises:
            NotFound: If the note does not exist.
        """
        note = self.store.update_note(note_id, **updates)
        self.logger.log("note_updated", note_id=note_id, fields=sorted(updates))
        await self.load_notes()
        return note

    async def delete_note(self, note_id: str) -> None:
        """Delete a note together with its properties.

        Raises:
            NotFound: If the note does not exist.
        """
        self.store.delete_note(note_id)
        self.logger.log("note_deleted", note_id=note_id)
        await self.load_notes()

    async def set_property(self, note_id: str, feature_id: str, value: Any) -> StoredProperty:
        """Store a user-entered value for a property feature.

        Raises:
            ValueError: If the feature is unknown, not a property, or the
                value is not one of its options.
            NotFound: If the note does not exist.
        """
        feature = self.registry.get(feature_id)
        if feature is None:
            raise ValueError(f"Unknown feature: {feature_id}")
        if feature.kind is not FeatureKind.PROPERTY:
            raise ValueError(f"Feature '{feature_id}' is not a property")
        options = self.options_for(feature_id)
        if options and value not in options:
            raise ValueError(
                f"Invalid value for '{feature_id}': {value!r} (options: {', '.join(map(str, options))})"
            )

        prop = self.store.put_property(
            StoredProperty(note_id=note_id, feature_id=feature_id, value=value)
        )
        self.logger.log("property_set", note_id=note_id, feature_id=feature_id)
        await self.recompute()
        return prop

    async def clear_properties(self, note_id: str) -> int:
        """Remove every stored property of a note."""
        count = self.store.delete_properties(note_id)
        self.logger.log("properties_cleared", note_id=note_id, count=count)
        await self.recompute()
        return count

    async def enable_feature(self, feature_id: str, config: Any = None) -> bool:
        """Enable a feature and recompute.

        Raises:
            ValueError: If the feature is unknown.
        """
        feature = self.registry.get(feature_id)
        if feature is None:
            raise ValueError(f"Unknown feature: {feature_id}")
        if config is None and feature.default_config is not None:
            config = dict(feature.default_config)

        changed = self.prefs.enable(feature_id, config)
        if changed:
            self._feature_toggled(feature_id, True)
            await self.recompute()
        return changed

    async def disable_feature(self, feature_id: str) -> bool:
        """Disable a feature and recompute."""
        changed = self.prefs.disable(feature_id)
        if changed:
            self._feature_toggled(feature_id, False)
            await self.recompute()
        return changed

    def _feature_toggled(self, feature_id: str, enabled: bool) -> None:
        self.logger.log("feature_toggled", feature_id=feature_id, enabled=enabled)
        self.preferences.schedule_save(self.prefs)

    def options_for(self, feature_id: str) -> list[Any]:
        """Allowed values of a property, from the user config or the default."""
        config = self.prefs.feature_configs.get(feature_id)
        if isinstance(config, Mapping) and isinstance(config.get("options"), list):
            return list(config["options"])
        feature = self.registry.get(feature_id)
        return feature.options if feature is not None else []

    async def update_feature_config(self, feature_id: str, config: Mapping[str, Any]) -> None:
        """Replace the configuration of a feature and recompute.

        Raises:
            ValueError: If the feature is unknown or the options are not a list.
        """
        if self.registry.get(feature_id) is None:
            raise ValueError(f"Unknown feature: {feature_id}")
        if "options" in config and not isinstance(config["options"], list):
            raise ValueError(f"Options for '{feature_id}' must be a list")

        self.prefs.update_config(feature_id, dict(config))
        self.logger.log("feature_config_updated", feature_id=feature_id)
        self.preferences.schedule_save(self.prefs)
        await self.recompute()

    def reorder_features(self, feature_ids: list[str]) -> list[str]:
        """Set the display order of features.

        Returns:
            The enabled feature ids in their new display order.

        Raises:
            ValueError: If any id is unknown.
        """
        unknown = [f for f in feature_ids if f not in self.registry]
        if unknown:
            raise ValueError(f"Unknown feature: {', '.join(unknown)}")

        self.prefs.reorder(feature_ids)
        self.logger.log("features_reordered", order=self.prefs.feature_order)
        self.preferences.schedule_save(self.prefs)
        return self.prefs.display_order()

    def toggle_attribute_visibility(self, role: str) -> bool:
        """Hide or show an attribute role in displays.

        Returns:
            True if the role is now hidden.
        """
        hidden = self.prefs.toggle_attribute_visibility(role)
        self.logger.log("attribute_visibility", role=role, hidden=hidden)
        self.preferences.schedule_save(self.prefs)
        return hidden

    def visible_roles(self) -> list[str]:
        """Attribute roles to display, in feature display order."""
        roles = []
        for feature in self.registry.get_enabled(self.prefs.display_order()):
            role = feature.attribute_role
            if role and role not in self.prefs.hidden_attributes and role not in roles:
                roles.append(role)
        return roles

    def search(
        self, query: str = "", filters: Mapping[str, Any] | None = None
    ) -> list[EnrichedNote]:
        """Search the published snapshot."""
        return search_notes(self.controller.snapshot, self.registry, query, filters)

    async def close(self) -> None:
        """Flush pending preference writes and close storage."""
        await self.preferences.flush()
        self.store.close()
