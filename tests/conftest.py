"""Shared fixtures."""

from pathlib import Path

import pytest

import notewise.logging as notewise_logging
from notewise.features import FeatureRegistry, register_builtin_features
from notewise.logging import JSONLLogger
from notewise.notes import Note, NoteStore


@pytest.fixture(autouse=True)
def isolated_logger(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> JSONLLogger:
    """Point the global logger at a temporary directory."""
    logger = JSONLLogger(log_dir=tmp_path / "logs")
    monkeypatch.setattr(notewise_logging, "_logger", logger)
    return logger


@pytest.fixture
def logger(isolated_logger: JSONLLogger) -> JSONLLogger:
    return isolated_logger


@pytest.fixture
def registry() -> FeatureRegistry:
    return register_builtin_features(FeatureRegistry())


@pytest.fixture
def store(tmp_path: Path) -> NoteStore:
    """Create a NoteStore with a temporary database."""
    store = NoteStore(tmp_path / "test_notes.db")
    store.init_db()
    yield store
    store.close()


def _make_note(
    note_id: str,
    title: str = "Untitled",
    content: str = "",
    tags: tuple[str, ...] = (),
    updated_at: int = 0,
) -> Note:
    """Build a note with fixed timestamps."""
    return Note(
        id=note_id,
        title=title,
        content=content,
        tags=tuple(tags),
        created_at=updated_at,
        updated_at=updated_at,
    )


@pytest.fixture
def make_note():
    """Factory for notes with fixed timestamps."""
    return _make_note
