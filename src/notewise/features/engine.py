"""Enrichment engine: computes attribute values for notes."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from ..errors import FeatureComputationError
from ..logging import JSONLLogger, get_logger
from ..notes.models import EnrichedNote, Note
from .base import AttributeValue, ComputeContext, FeatureDefinition

Attributes = dict[str, AttributeValue]


class FeatureEngine:
    """Computes the attribute mapping of notes for a set of enabled features.

    A failing compute function only drops its own attribute for the note
    being processed; the rest of the note and of the batch is unaffected.
    """

    def __init__(self, logger: JSONLLogger | None = None) -> None:
        self.logger = logger or get_logger()

    def compute_for_note(
        self,
        note: Note,
        context: ComputeContext,
        enabled: Sequence[FeatureDefinition],
    ) -> Attributes:
        """Compute the attributes of one note.

        Computed and rollup values are applied first, then stored properties,
        which win on a shared attribute role.

        Args:
            note: The note to enrich.
            context: Context of the current pass.
            enabled: Enabled feature definitions.

        Returns:
            Mapping from attribute role to tagged value.
        """
        attributes: Attributes = {}

        for feature in enabled:
            if feature.compute is None or not feature.attribute_role:
                continue
            try:
                value = feature.compute(note, context)
            except Exception as e:
                self._report(FeatureComputationError(feature.id, note.id, e))
                continue
            attributes[feature.attribute_role] = feature.wrap(value)

        by_id = {feature.id: feature for feature in enabled}
        for prop in context.properties_for(note.id):
            feature = by_id.get(prop.feature_id)
            if feature is not None and feature.attribute_role:
                attributes[feature.attribute_role] = feature.wrap(prop.value)

        return attributes

    def compute_for_all_notes(
        self,
        notes: Sequence[Note],
        context: ComputeContext,
        enabled: Sequence[FeatureDefinition],
    ) -> dict[str, Attributes]:
        """Compute attributes for every note, independently and in order."""
        return {note.id: self.compute_for_note(note, context, enabled) for note in notes}

    @staticmethod
    def enrich(note: Note, attributes: Mapping[str, AttributeValue]) -> EnrichedNote:
        """Combine a note with its computed attributes."""
        return EnrichedNote(note=note, attributes=attributes)

    def _report(self, error: FeatureComputationError) -> None:
        self.logger.log_feature_error(error.feature_id, error.note_id, str(error.cause))
