"""Incremental recompute controller.

Owns the published snapshot of enriched notes. A new snapshot is published
only when the set of note ids changes; otherwise the previous mapping object
is kept so subscribers comparing references see no change. This is what
keeps reactive consumers from re-triggering recomputes forever.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from enum import Enum
from types import MappingProxyType
from typing import Any

from ..errors import RecomputeAborted
from ..logging import JSONLLogger, get_logger
from ..notes.models import EnrichedNote, Note
from .context import ContextBuilder
from .engine import FeatureEngine
from .registry import FeatureRegistry

Snapshot = Mapping[str, EnrichedNote]
Subscriber = Callable[[Snapshot], Any]


class RecomputeState(Enum):
    """Phases of a recompute pass."""

    IDLE = "idle"
    COMPUTING = "computing"
    DIFFING = "diffing"


class RecomputeController:
    """Sole writer of the published enriched snapshot."""

    def __init__(
        self,
        registry: FeatureRegistry,
        engine: FeatureEngine,
        context_builder: ContextBuilder,
        logger: JSONLLogger | None = None,
    ) -> None:
        self.registry = registry
        self.engine = engine
        self.context_builder = context_builder
        self.logger = logger or get_logger()
        self.state = RecomputeState.IDLE
        self.last_error: Exception | None = None
        self._snapshot: Snapshot = MappingProxyType({})
        self._subscribers: list[Subscriber] = []

    @property
    def snapshot(self) -> Snapshot:
        """The currently published snapshot (read-only)."""
        return self._snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call `callback` with each newly published snapshot.

        Returns:
            A function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def recompute(
        self,
        notes: Sequence[Note],
        enabled_ids: Iterable[str],
        user_config: Mapping[str, Any] | None = None,
    ) -> bool:
        """Rebuild the enriched view and publish it if membership changed.

        Never raises: a failed pass is logged and leaves the published
        snapshot untouched.

        Args:
            notes: The current note collection.
            enabled_ids: Enabled feature ids, in display order.
            user_config: Per-feature user configuration.

        Returns:
            True if a new snapshot was published.
        """
        if not notes:
            self.logger.log_recompute_skipped("no_notes")
            return False

        if self.state is not RecomputeState.IDLE:
            # A later pass simply supersedes this one through the diff
            self.logger.log_recompute_skipped(f"overlap:{self.state.value}")

        started = time.monotonic()
        enabled_ids = list(enabled_ids)

        self.state = RecomputeState.COMPUTING
        try:
            enriched = self._compute(notes, enabled_ids, user_config)
        except Exception as e:
            self.last_error = e
            self.state = RecomputeState.IDLE
            self.logger.log_recompute_aborted(str(e), notes_count=len(notes))
            return False

        self.state = RecomputeState.DIFFING
        published = self._has_changed(enriched)
        if published:
            self._snapshot = MappingProxyType(enriched)
        self.state = RecomputeState.IDLE
        self.last_error = None

        self.logger.log_recompute(
            len(enriched),
            published,
            duration_ms=(time.monotonic() - started) * 1000,
            enabled_features=enabled_ids,
        )
        if published:
            self._notify()
        return published

    def _compute(
        self,
        notes: Sequence[Note],
        enabled_ids: list[str],
        user_config: Mapping[str, Any] | None,
    ) -> dict[str, EnrichedNote]:
        try:
            context = self.context_builder.build(notes, user_config)
            enabled = self.registry.get_enabled(enabled_ids)
            computed = self.engine.compute_for_all_notes(notes, context, enabled)
        except RecomputeAborted:
            raise
        except Exception as e:
            raise RecomputeAborted(f"Batch computation failed: {e}") from e

        return {
            note.id: self.engine.enrich(note, computed.get(note.id, {}))
            for note in notes
        }

    def _has_changed(self, enriched: Mapping[str, EnrichedNote]) -> bool:
        """Shallow comparison on note ids and size, never on values."""
        current = self._snapshot
        if len(current) != len(enriched):
            return True
        return set(current.keys()) != set(enriched.keys())

    def _notify(self) -> None:
        snapshot = self._snapshot
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception as e:
                self.logger.log("subscriber_error", error=str(e))
