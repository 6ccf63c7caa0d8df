"""Base types for the feature system.

This module defines the core abstractions:
- FeatureKind: How a feature produces its value (computed, property, rollup, behavior)
- FeatureCategory: Where a feature is listed when browsing
- RenderAs: Rendering hint, also the tag of an AttributeValue
- AttributeValue: A tagged value attached to an enriched note
- ComputeContext: Read-only context passed to compute functions
- FeatureDefinition: Immutable description of one feature
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from ..notes.models import Note, StoredProperty


class FeatureKind(Enum):
    """How a feature obtains its value.

    - COMPUTED: Pure function of a single note
    - ROLLUP: Function of the whole note collection
    - PROPERTY: User-entered value stored per note
    - BEHAVIOR: No attached value
    """

    COMPUTED = "computed"
    PROPERTY = "property"
    ROLLUP = "rollup"
    BEHAVIOR = "behavior"


class FeatureCategory(Enum):
    """Grouping used when browsing available features."""

    PRODUCTIVITY = "productivity"
    ORGANIZATION = "organization"
    ANALYTICS = "analytics"
    AUTOMATION = "automation"


class RenderAs(Enum):
    """Rendering hint for an attribute value."""

    TEXT = "text"
    NUMBER = "number"
    BADGE = "badge"
    PROGRESS = "progress"
    DATE = "date"


@dataclass(frozen=True)
class AttributeValue:
    """A value attached to an enriched note under an attribute role."""

    kind: RenderAs
    value: Any

    def __str__(self) -> str:
        if isinstance(self.value, (list, tuple)):
            return ", ".join(
                f"{item[0]} ({item[1]})" if isinstance(item, tuple) else str(item)
                for item in self.value
            )
        return str(self.value)


@dataclass(frozen=True)
class ComputeContext:
    """Everything a compute function may depend on during one pass.

    The timestamp is captured once per pass so time-relative computations
    agree with each other.
    """

    all_notes: Sequence[Note]
    all_properties: Sequence[StoredProperty]
    timestamp: int
    user_config: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def properties_for(self, note_id: str) -> list[StoredProperty]:
        """Stored properties belonging to one note."""
        return [p for p in self.all_properties if p.note_id == note_id]


ComputeFn = Callable[[Note, ComputeContext], Any]


@dataclass(frozen=True)
class FeatureDefinition:
    """Immutable description of a feature.

    Attributes:
        id: Unique, stable identifier.
        name: Display name.
        description: One-line description.
        kind: How the value is obtained.
        category: Browsing category.
        attribute_role: Key under which the value is attached to an enriched
            note. Definitions without a role contribute no attribute.
        render_as: Rendering hint, defaults to text.
        compute: Function of (note, context) for computed and rollup kinds.
        default_config: Default configuration, e.g. property options.
        icon: Optional display icon.
    """

    id: str
    name: str
    description: str
    kind: FeatureKind
    category: FeatureCategory
    attribute_role: str | None = None
    render_as: RenderAs | None = None
    compute: ComputeFn | None = None
    default_config: Mapping[str, Any] | None = None
    icon: str | None = None

    @property
    def has_compute(self) -> bool:
        return self.compute is not None

    @property
    def value_kind(self) -> RenderAs:
        """Tag used for values this feature produces."""
        return self.render_as or RenderAs.TEXT

    @property
    def options(self) -> list[Any]:
        """Enumerated options for property features, if configured."""
        if not self.default_config:
            return []
        return list(self.default_config.get("options", []))

    def wrap(self, value: Any) -> AttributeValue:
        """Tag a raw value with this feature's render hint."""
        return AttributeValue(kind=self.value_kind, value=value)
