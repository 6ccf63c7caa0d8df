"""Built-in features shipped with notewise."""

import math
from collections import Counter

from ..notes.models import Note
from .base import (
    ComputeContext,
    FeatureCategory,
    FeatureDefinition,
    FeatureKind,
    RenderAs,
)
from .registry import FeatureRegistry

WORDS_PER_MINUTE = 200
TOP_TAGS = 5

MINUTE_MS = 60_000


def count_words(text: str) -> int:
    """Number of whitespace-delimited, non-empty tokens."""
    return len(text.split())


def reading_time(note: Note, context: ComputeContext) -> str:
    minutes = math.ceil(count_words(note.content) / WORDS_PER_MINUTE)
    return f"{minutes} min"


def last_edited(note: Note, context: ComputeContext) -> str:
    """Relative time since the note was last edited."""
    minutes = (context.timestamp - note.updated_at) // MINUTE_MS
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d ago"
    if hours > 0:
        return f"{hours}h ago"
    if minutes > 0:
        return f"{minutes}m ago"
    return "just now"


def tag_stats(note: Note, context: ComputeContext) -> list[tuple[str, int]]:
    """Most used tags across all notes, ties in first-seen order."""
    counts: Counter[str] = Counter()
    for other in context.all_notes:
        counts.update(other.tags)
    # sorted() is stable and Counter keeps insertion order
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[:TOP_TAGS]


# Computed

WORD_COUNT = FeatureDefinition(
    id="word-count",
    name="Word Count",
    description="Number of words in the note",
    kind=FeatureKind.COMPUTED,
    category=FeatureCategory.ANALYTICS,
    icon="📊",
    attribute_role="word-count",
    render_as=RenderAs.NUMBER,
    compute=lambda note, context: count_words(note.content),
)

READING_TIME = FeatureDefinition(
    id="reading-time",
    name="Reading Time",
    description="Estimated reading time",
    kind=FeatureKind.COMPUTED,
    category=FeatureCategory.ANALYTICS,
    icon="⏱️",
    attribute_role="reading-time",
    render_as=RenderAs.TEXT,
    compute=reading_time,
)

CHARACTER_COUNT = FeatureDefinition(
    id="char-count",
    name="Character Count",
    description="Total characters including spaces",
    kind=FeatureKind.COMPUTED,
    category=FeatureCategory.ANALYTICS,
    icon="🔤",
    attribute_role="char-count",
    render_as=RenderAs.NUMBER,
    compute=lambda note, context: len(note.content),
)

LAST_EDITED = FeatureDefinition(
    id="last-edited",
    name="Last Edited",
    description="Relative time since last edit",
    kind=FeatureKind.COMPUTED,
    category=FeatureCategory.ORGANIZATION,
    icon="🕐",
    attribute_role="last-edited",
    render_as=RenderAs.TEXT,
    compute=last_edited,
)

# Properties

PRIORITY = FeatureDefinition(
    id="priority",
    name="Priority",
    description="Set note priority level",
    kind=FeatureKind.PROPERTY,
    category=FeatureCategory.ORGANIZATION,
    icon="⚡",
    attribute_role="priority",
    render_as=RenderAs.BADGE,
    default_config={
        "options": ["High", "Medium", "Low"],
        "colors": {"High": "red", "Medium": "yellow", "Low": "green"},
    },
)

STATUS = FeatureDefinition(
    id="status",
    name="Status",
    description="Track note status",
    kind=FeatureKind.PROPERTY,
    category=FeatureCategory.PRODUCTIVITY,
    icon="✅",
    attribute_role="status",
    render_as=RenderAs.BADGE,
    default_config={"options": ["Draft", "In Progress", "Complete", "Archived"]},
)

DUE_DATE = FeatureDefinition(
    id="due-date",
    name="Due Date",
    description="Set a deadline",
    kind=FeatureKind.PROPERTY,
    category=FeatureCategory.PRODUCTIVITY,
    icon="📅",
    attribute_role="due-date",
    render_as=RenderAs.DATE,
)

# Rollups

TOTAL_NOTES = FeatureDefinition(
    id="total-notes",
    name="Total Notes",
    description="Count of all notes",
    kind=FeatureKind.ROLLUP,
    category=FeatureCategory.ANALYTICS,
    icon="📝",
    attribute_role="total-notes",
    render_as=RenderAs.NUMBER,
    compute=lambda note, context: len(context.all_notes),
)

TOTAL_WORDS = FeatureDefinition(
    id="total-words",
    name="Total Words",
    description="Sum of words across all notes",
    kind=FeatureKind.ROLLUP,
    category=FeatureCategory.ANALYTICS,
    icon="📈",
    attribute_role="total-words",
    render_as=RenderAs.NUMBER,
    compute=lambda note, context: sum(count_words(n.content) for n in context.all_notes),
)

TAG_STATS = FeatureDefinition(
    id="tag-stats",
    name="Tag Statistics",
    description="Most used tags",
    kind=FeatureKind.ROLLUP,
    category=FeatureCategory.ANALYTICS,
    icon="🏷️",
    attribute_role="tag-stats",
    render_as=RenderAs.TEXT,
    compute=tag_stats,
)

BUILTIN_FEATURES: tuple[FeatureDefinition, ...] = (
    WORD_COUNT,
    READING_TIME,
    CHARACTER_COUNT,
    LAST_EDITED,
    PRIORITY,
    STATUS,
    DUE_DATE,
    TOTAL_NOTES,
    TOTAL_WORDS,
    TAG_STATS,
)


def register_builtin_features(registry: FeatureRegistry) -> FeatureRegistry:
    """Register every built-in feature and return the registry."""
    for feature in BUILTIN_FEATURES:
        registry.register(feature)
    return registry
