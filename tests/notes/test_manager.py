"""Tests for NoteManager."""

import json
from pathlib import Path
from unittest.mock import Mock

import pytest

from notewise.errors import NotFound
from notewise.features import (
    ContextBuilder,
    FeatureEngine,
    FeatureRegistry,
    RecomputeController,
)
from notewise.logging import JSONLLogger
from notewise.notes import NoteStore
from notewise.notes.manager import NoteManager
from notewise.preferences import PreferencesStore


@pytest.fixture
def preferences(tmp_path: Path) -> PreferencesStore:
    return PreferencesStore(tmp_path / "features.json", debounce_seconds=0)


@pytest.fixture
def manager(
    store: NoteStore,
    registry: FeatureRegistry,
    preferences: PreferencesStore,
    logger: JSONLLogger,
) -> NoteManager:
    controller = RecomputeController(
        registry, FeatureEngine(logger=logger), ContextBuilder(store), logger=logger
    )
    return NoteManager(store, registry, controller, preferences, logger=logger)


class TestNoteOperations:
    """Tests for note create/update/delete."""

    @pytest.mark.asyncio
    async def test_create_note_publishes(self, manager: NoteManager):
        note = await manager.create_note("Welcome to Notes", "hello world", ["intro"])

        assert [n.id for n in manager.notes] == [note.id]
        enriched = manager.snapshot[note.id]
        assert enriched.title == "Welcome to Notes"
        assert enriched.value("word-count") == 2
        assert enriched.value("last-edited") == "just now"

    @pytest.mark.asyncio
    async def test_update_note(self, manager: NoteManager, store: NoteStore):
        note = await manager.create_note("Draft", "one")
        updated = await manager.update_note(note.id, content="one two")

        assert updated.content == "one two"
        assert updated.updated_at > note.updated_at
        assert store.get_note(note.id).content == "one two"

    @pytest.mark.asyncio
    async def test_update_missing_raises(self, manager: NoteManager):
        with pytest.raises(NotFound):
            await manager.update_note("missing", title="x")

    @pytest.mark.asyncio
    async def test_delete_note(self, manager: NoteManager):
        keep = await manager.create_note("Keep")
        gone = await manager.create_note("Gone")

        await manager.delete_note(gone.id)

        assert list(manager.snapshot) == [keep.id]

    @pytest.mark.asyncio
    async def test_delete_last_note_keeps_snapshot(self, manager: NoteManager):
        note = await manager.create_note("Only")
        before = manager.snapshot

        await manager.delete_note(note.id)

        assert manager.notes == []
        assert manager.snapshot is before

    @pytest.mark.asyncio
    async def test_delete_missing_raises(self, manager: NoteManager):
        with pytest.raises(NotFound):
            await manager.delete_note("missing")

    @pytest.mark.asyncio
    async def test_load_notes(self, manager: NoteManager, store: NoteStore):
        store.seed_if_empty()
        notes = await manager.load_notes()
        assert [n.title for n in notes] == ["Welcome to Notes"]
        assert "1" in manager.snapshot


class TestProperties:
    """Tests for stored property handling."""

    @pytest.mark.asyncio
    async def test_set_property(self, manager: NoteManager, store: NoteStore):
        note = await manager.create_note("Task")
        prop = await manager.set_property(note.id, "priority", "High")

        assert prop.value == "High"
        assert store.list_properties() == [prop]

    @pytest.mark.asyncio
    async def test_set_property_unknown_feature(self, manager: NoteManager):
        note = await manager.create_note("Task")
        with pytest.raises(ValueError, match="Unknown feature"):
            await manager.set_property(note.id, "nope", "x")

    @pytest.mark.asyncio
    async def test_set_property_on_computed_feature(self, manager: NoteManager):
        note = await manager.create_note("Task")
        with pytest.raises(ValueError, match="not a property"):
            await manager.set_property(note.id, "word-count", 3)

    @pytest.mark.asyncio
    async def test_set_property_invalid_option(self, manager: NoteManager):
        note = await manager.create_note("Task")
        with pytest.raises(ValueError, match="Invalid value"):
            await manager.set_property(note.id, "priority", "Urgent")

    @pytest.mark.asyncio
    async def test_set_property_free_value(self, manager: NoteManager):
        note = await manager.create_note("Task")
        prop = await manager.set_property(note.id, "due-date", "2026-12-01")
        assert prop.value == "2026-12-01"

    @pytest.mark.asyncio
    async def test_set_property_missing_note(self, manager: NoteManager):
        await manager.create_note("Task")
        with pytest.raises(NotFound):
            await manager.set_property("missing", "priority", "High")

    @pytest.mark.asyncio
    async def test_clear_properties(self, manager: NoteManager, store: NoteStore):
        note = await manager.create_note("Task")
        await manager.set_property(note.id, "priority", "High")
        await manager.set_property(note.id, "status", "Draft")

        assert await manager.clear_properties(note.id) == 2
        assert store.list_properties() == []


class TestFeatures:
    """Tests for enabling and disabling features."""

    def test_defaults_loaded_from_preferences(self, manager: NoteManager):
        assert manager.enabled_features == ["word-count", "last-edited"]

    @pytest.mark.asyncio
    async def test_enable_feature_saves_preferences(
        self, manager: NoteManager, preferences: PreferencesStore
    ):
        assert await manager.enable_feature("priority") is True
        await manager.preferences.flush()

        saved = preferences.load()
        assert saved.enabled_features == ["word-count", "last-edited", "priority"]
        assert saved.feature_configs["priority"]["options"] == ["High", "Medium", "Low"]

    @pytest.mark.asyncio
    async def test_enable_twice(self, manager: NoteManager):
        await manager.enable_feature("priority")
        assert await manager.enable_feature("priority") is False
        assert manager.enabled_features.count("priority") == 1

    @pytest.mark.asyncio
    async def test_enable_unknown_feature(self, manager: NoteManager):
        with pytest.raises(ValueError, match="Unknown feature"):
            await manager.enable_feature("ghost")

    @pytest.mark.asyncio
    async def test_disable_feature(self, manager: NoteManager):
        assert await manager.disable_feature("word-count") is True
        assert await manager.disable_feature("word-count") is False
        assert manager.enabled_features == ["last-edited"]

    @pytest.mark.asyncio
    async def test_toggle_is_logged(self, manager: NoteManager, logger: JSONLLogger):
        await manager.enable_feature("status")

        with open(logger.log_path) as f:
            events = [json.loads(line) for line in f]

        toggled = [e for e in events if e["event"] == "feature_toggled"]
        assert toggled[-1]["feature_id"] == "status"
        assert toggled[-1]["extra"]["enabled"] is True


class TestFeaturePreferenceOperations:
    """Tests for reordering, configuring and hiding features."""

    def test_visible_roles_follow_enabled_order(self, manager: NoteManager):
        assert manager.visible_roles() == ["word-count", "last-edited"]

    def test_reorder_features(self, manager: NoteManager):
        order = manager.reorder_features(["last-edited", "word-count"])

        assert order == ["last-edited", "word-count"]
        assert manager.visible_roles() == ["last-edited", "word-count"]

    @pytest.mark.asyncio
    async def test_reorder_is_saved(self, manager: NoteManager, preferences: PreferencesStore):
        manager.reorder_features(["last-edited"])
        await manager.preferences.flush()
        assert preferences.load().feature_order == ["last-edited"]

    def test_reorder_unknown_feature(self, manager: NoteManager):
        with pytest.raises(ValueError, match="Unknown feature: ghost"):
            manager.reorder_features(["word-count", "ghost"])

    @pytest.mark.asyncio
    async def test_newly_enabled_feature_goes_last(self, manager: NoteManager):
        manager.reorder_features(["last-edited", "word-count"])
        await manager.enable_feature("priority")
        assert manager.visible_roles() == ["last-edited", "word-count", "priority"]

    def test_toggle_attribute_visibility(self, manager: NoteManager):
        assert manager.toggle_attribute_visibility("word-count") is True
        assert manager.visible_roles() == ["last-edited"]

        assert manager.toggle_attribute_visibility("word-count") is False
        assert manager.visible_roles() == ["word-count", "last-edited"]

    @pytest.mark.asyncio
    async def test_hidden_attribute_is_saved(
        self, manager: NoteManager, preferences: PreferencesStore
    ):
        manager.toggle_attribute_visibility("last-edited")
        await manager.preferences.flush()
        assert preferences.load().hidden_attributes == ["last-edited"]

    @pytest.mark.asyncio
    async def test_update_config_changes_options(self, manager: NoteManager):
        note = await manager.create_note("Task")
        await manager.update_feature_config("priority", {"options": ["Now", "Later"]})

        assert manager.options_for("priority") == ["Now", "Later"]
        prop = await manager.set_property(note.id, "priority", "Now")
        assert prop.value == "Now"
        with pytest.raises(ValueError, match="Invalid value"):
            await manager.set_property(note.id, "priority", "High")

    @pytest.mark.asyncio
    async def test_enable_with_custom_options(self, manager: NoteManager):
        note = await manager.create_note("Task")
        await manager.enable_feature("status", config={"options": ["Open", "Done"]})

        await manager.set_property(note.id, "status", "Done")
        with pytest.raises(ValueError, match="Invalid value"):
            await manager.set_property(note.id, "status", "Draft")

    def test_options_fall_back_to_default(self, manager: NoteManager):
        assert manager.options_for("priority") == ["High", "Medium", "Low"]
        assert manager.options_for("due-date") == []

    @pytest.mark.asyncio
    async def test_update_config_is_saved(
        self, manager: NoteManager, preferences: PreferencesStore
    ):
        await manager.update_feature_config("status", {"options": ["A"]})
        await manager.preferences.flush()
        assert preferences.load().feature_configs["status"] == {"options": ["A"]}

    @pytest.mark.asyncio
    async def test_update_config_validation(self, manager: NoteManager):
        with pytest.raises(ValueError, match="Unknown feature"):
            await manager.update_feature_config("ghost", {})
        with pytest.raises(ValueError, match="must be a list"):
            await manager.update_feature_config("priority", {"options": "High"})


class TestSearch:
    """Tests for searching through the manager."""

    @pytest.mark.asyncio
    async def test_search_with_property_filter(self, manager: NoteManager):
        await manager.enable_feature("priority")
        welcome = await manager.create_note("Welcome to Notes", "first note")
        other = await manager.create_note("Welcome back", "second note")
        await manager.set_property(other.id, "priority", "High")
        # Property writes alone don't change membership, so force a fresh snapshot
        await manager.create_note("Unrelated")

        assert {n.id for n in manager.search("welcome")} == {welcome.id, other.id}
        assert [n.id for n in manager.search("welcome", {"priority": "High"})] == [other.id]

    @pytest.mark.asyncio
    async def test_search_empty(self, manager: NoteManager):
        assert manager.search("anything") == []


@pytest.mark.asyncio
async def test_storage_errors_propagate(registry, preferences, logger):
    store = Mock(spec=NoteStore)
    store.add_note.side_effect = NotFound("x")
    controller = Mock(spec=RecomputeController)
    manager = NoteManager(store, registry, controller, preferences, logger=logger)

    with pytest.raises(NotFound):
        await manager.create_note("x")
    controller.recompute.assert_not_called()


@pytest.mark.asyncio
async def test_close_flushes_and_closes(manager: NoteManager, preferences: PreferencesStore):
    await manager.enable_feature("status")
    await manager.close()
    assert preferences.load().is_enabled("status")
