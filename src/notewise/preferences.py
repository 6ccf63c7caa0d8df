"""Feature preferences: which features are enabled and how they're configured.

Preferences live in a JSON file. Saving is best-effort: failures are logged
and never reach the caller, and `schedule_save` collapses bursts of writes
into a single write of the most recent state.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_ENABLED_FEATURES = ["word-count", "last-edited"]


@dataclass
class FeaturePreferences:
    """User choices about features.

    Attributes:
        enabled_features: Enabled feature ids, in display order.
        feature_configs: Per-feature configuration overrides.
        feature_order: Preferred display order.
        hidden_attributes: Attribute roles hidden from display.
    """

    enabled_features: list[str] = field(
        default_factory=lambda: list(DEFAULT_ENABLED_FEATURES)
    )
    feature_configs: dict[str, Any] = field(default_factory=dict)
    feature_order: list[str] = field(default_factory=list)
    hidden_attributes: list[str] = field(default_factory=list)

    def is_enabled(self, feature_id: str) -> bool:
        return feature_id in self.enabled_features

    def enable(self, feature_id: str, config: Any = None) -> bool:
        """Enable a feature.

        Returns:
            False if it was already enabled.
        """
        if feature_id in self.enabled_features:
            return False
        self.enabled_features.append(feature_id)
        if feature_id not in self.feature_order:
            self.feature_order.append(feature_id)
        if config is not None:
            self.feature_configs[feature_id] = config
        return True

    def disable(self, feature_id: str) -> bool:
        """Disable a feature.

        Returns:
            False if it was not enabled.
        """
        if feature_id not in self.enabled_features:
            return False
        self.enabled_features.remove(feature_id)
        self.feature_order = [f for f in self.feature_order if f != feature_id]
        return True

    def reorder(self, feature_ids: list[str]) -> None:
        """Replace the display order, dropping duplicates."""
        self.feature_order = list(dict.fromkeys(feature_ids))

    def update_config(self, feature_id: str, config: Any) -> None:
        self.feature_configs[feature_id] = config

    def display_order(self) -> list[str]:
        """Enabled feature ids, ordered by feature_order first.

        Enabled features missing from feature_order follow in enabled order.
        """
        ordered = [f for f in self.feature_order if f in self.enabled_features]
        return ordered + [f for f in self.enabled_features if f not in ordered]

    def toggle_attribute_visibility(self, role: str) -> bool:
        """Hide or show an attribute role.

        Returns:
            True if the role is now hidden.
        """
        if role in self.hidden_attributes:
            self.hidden_attributes.remove(role)
            return False
        self.hidden_attributes.append(role)
        return True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FeaturePreferences:
        """Create from dictionary, filling missing or malformed fields with defaults."""
        defaults = cls()

        def _list(key: str, default: list[str]) -> list[str]:
            value = data.get(key)
            if not isinstance(value, list):
                return list(default)
            return [str(v) for v in value]

        configs = data.get("feature_configs")
        return cls(
            enabled_features=_list("enabled_features", defaults.enabled_features),
            feature_configs=dict(configs) if isinstance(configs, dict) else {},
            feature_order=_list("feature_order", defaults.feature_order),
            hidden_attributes=_list("hidden_attributes", defaults.hidden_attributes),
        )


class PreferencesStore:
    """Loads and saves FeaturePreferences to a JSON file."""

    def __init__(self, path: Path, debounce_seconds: float = 0.5) -> None:
        self.path = path
        self.debounce_seconds = debounce_seconds
        self._pending: FeaturePreferences | None = None
        self._task: asyncio.Task | None = None

    def load(self) -> FeaturePreferences:
        """Load preferences, falling back to defaults."""
        if not self.path.exists():
            logger.debug("No preferences file at %s, using defaults", self.path)
            return FeaturePreferences()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning("Invalid JSON in %s: %s. Using defaults.", self.path, e)
            return FeaturePreferences()
        except OSError as e:
            logger.warning("Cannot read %s: %s. Using defaults.", self.path, e)
            return FeaturePreferences()

        if not isinstance(data, dict):
            logger.warning("Unexpected preferences format in %s. Using defaults.", self.path)
            return FeaturePreferences()

        return FeaturePreferences.from_dict(data)

    def save(self, prefs: FeaturePreferences) -> bool:
        """Write preferences now.

        Returns:
            True if the file was written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(prefs.to_dict(), f, indent=2)
        except (OSError, TypeError) as e:
            logger.error("Failed to save preferences to %s: %s", self.path, e)
            return False
        return True

    def schedule_save(self, prefs: FeaturePreferences) -> None:
        """Save after the debounce window; later calls replace earlier ones.

        Without a running event loop the write happens immediately.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.save(prefs)
            return

        self._pending = FeaturePreferences.from_dict(prefs.to_dict())
        if self._task is None or self._task.done():
            self._task = loop.create_task(self._save_later())

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    async def _save_later(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        self._write_pending()

    def _write_pending(self) -> None:
        prefs, self._pending = self._pending, None
        if prefs is not None:
            self.save(prefs)

    async def flush(self) -> None:
        """Write any pending preferences immediately."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._write_pending()
