"""Data models for notes and their stored properties."""

from __future__ import annotations

import time
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..features.base import AttributeValue


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def normalize_tags(tags: Iterable[str]) -> tuple[str, ...]:
    """Deduplicate tags, keeping first-seen order and dropping blanks."""
    seen: dict[str, None] = {}
    for tag in tags:
        tag = tag.strip()
        if tag:
            seen.setdefault(tag, None)
    return tuple(seen)


@dataclass(frozen=True)
class Note:
    """A single note.

    Attributes:
        id: Opaque unique identifier, immutable once created.
        title: Note title.
        content: Free text body.
        tags: Ordered set of tags.
        created_at: Creation time in epoch milliseconds.
        updated_at: Last content mutation in epoch milliseconds.
    """

    id: str
    title: str
    content: str = ""
    tags: tuple[str, ...] = ()
    created_at: int = 0
    updated_at: int = 0

    @classmethod
    def create(
        cls,
        title: str,
        content: str = "",
        tags: Iterable[str] = (),
        now: int | None = None,
    ) -> Note:
        """Create a new note with a fresh id and timestamps."""
        timestamp = now if now is not None else now_ms()
        return cls(
            id=str(uuid.uuid4()),
            title=title,
            content=content,
            tags=normalize_tags(tags),
            created_at=timestamp,
            updated_at=timestamp,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "tags": list(self.tags),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class StoredProperty:
    """A user-entered value for a property feature on one note.

    There is at most one record per (note_id, feature_id) pair.
    """

    note_id: str
    feature_id: str
    value: Any = None

    @property
    def id(self) -> str:
        return f"{self.note_id}-{self.feature_id}"


@dataclass(frozen=True)
class EnrichedNote:
    """A note together with its computed and stored attribute values."""

    note: Note
    attributes: Mapping[str, AttributeValue] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self) -> None:
        if not isinstance(self.attributes, MappingProxyType):
            object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @property
    def id(self) -> str:
        return self.note.id

    @property
    def title(self) -> str:
        return self.note.title

    @property
    def content(self) -> str:
        return self.note.content

    @property
    def tags(self) -> tuple[str, ...]:
        return self.note.tags

    def get(self, role: str) -> AttributeValue | None:
        """Get the tagged attribute value for a role."""
        return self.attributes.get(role)

    def value(self, role: str, default: Any = None) -> Any:
        """Get the raw attribute value for a role."""
        attribute = self.attributes.get(role)
        if attribute is None:
            return default
        return attribute.value

    def to_dict(self) -> dict[str, Any]:
        """Flatten into the note's fields plus one key per attribute role."""
        data = self.note.to_dict()
        for role, attribute in self.attributes.items():
            data[role] = attribute.value
        return data
