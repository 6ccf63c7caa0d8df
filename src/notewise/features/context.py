"""Builds the read-only context shared by one recompute pass."""

from collections.abc import Callable, Mapping, Sequence
from types import MappingProxyType
from typing import Any

from ..errors import RecomputeAborted
from ..notes.models import Note, now_ms
from ..notes.store import NoteSource
from .base import ComputeContext


class ContextBuilder:
    """Assembles a ComputeContext from the persistence layer.

    Properties are fetched once per pass and the timestamp is captured once,
    so every compute function in the pass sees the same world.
    """

    def __init__(
        self,
        store: NoteSource,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.store = store
        self.clock = clock or now_ms

    def build(
        self,
        notes: Sequence[Note],
        user_config: Mapping[str, Any] | None = None,
    ) -> ComputeContext:
        """Build the context for a pass over the given notes.

        Raises:
            RecomputeAborted: If any part of the context cannot be assembled.
        """
        try:
            properties = tuple(self.store.list_properties())
            timestamp = self.clock()
            return ComputeContext(
                all_notes=tuple(notes),
                all_properties=properties,
                timestamp=timestamp,
                user_config=MappingProxyType(dict(user_config or {})),
            )
        except Exception as e:
            raise RecomputeAborted(f"Cannot build compute context: {e}") from e
