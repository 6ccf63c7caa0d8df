"""Notes, stored properties and their persistence."""

from .models import EnrichedNote, Note, StoredProperty
from .store import NoteSource, NoteStore

__all__ = [
    "EnrichedNote",
    "Note",
    "NoteSource",
    "NoteStore",
    "StoredProperty",
]
