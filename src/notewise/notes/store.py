"""SQLite storage for notes and stored properties."""

import json
import sqlite3
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol

from ..errors import NotFound, StorageUnavailable
from .models import Note, StoredProperty, normalize_tags, now_ms

WELCOME_NOTE = Note(
    id="1",
    title="Welcome to Notes",
    content="This is your first note!",
    tags=("welcome",),
)

UPDATABLE_FIELDS = ("title", "content", "tags")


class NoteSource(Protocol):
    """Read side of the persistence layer used by the enrichment core."""

    def list_notes(self) -> list[Note]:
        ...

    def list_properties(self) -> list[StoredProperty]:
        ...


class NoteStore:
    """Persistent storage for notes and properties using SQLite.

    Properties are keyed by (note_id, feature_id) and are removed together
    with their note.
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize the store with a database path.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._conn is None:
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(self.db_path)
                conn.row_factory = sqlite3.Row
                conn.execute("PRAGMA foreign_keys = ON")
            except (OSError, sqlite3.Error) as e:
                raise StorageUnavailable(f"Cannot open {self.db_path}: {e}") from e
            self._conn = conn
        return self._conn

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        """Run one statement, translating sqlite errors."""
        conn = self._get_connection()
        try:
            return conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StorageUnavailable(str(e)) from e

    def _commit(self) -> None:
        try:
            self._get_connection().commit()
        except sqlite3.Error as e:
            raise StorageUnavailable(str(e)) from e

    def init_db(self) -> None:
        """Create the notes and properties tables if they don't exist."""
        self._execute("""
            CREATE TABLE IF NOT EXISTS notes (
                id          TEXT PRIMARY KEY,
                title       TEXT NOT NULL,
                content     TEXT NOT NULL DEFAULT '',
                tags        TEXT NOT NULL DEFAULT '[]',
                created_at  INTEGER NOT NULL,
                updated_at  INTEGER NOT NULL
            )
        """)
        self._execute("""
            CREATE TABLE IF NOT EXISTS properties (
                note_id     TEXT NOT NULL REFERENCES notes(id) ON DELETE CASCADE,
                feature_id  TEXT NOT NULL,
                value       TEXT,
                PRIMARY KEY (note_id, feature_id)
            )
        """)
        self._execute("CREATE INDEX IF NOT EXISTS idx_properties_note ON properties(note_id)")
        self._commit()

    def seed_if_empty(self) -> bool:
        """Insert the welcome note into an empty database.

        Returns:
            True if the note was inserted.
        """
        row = self._execute("SELECT COUNT(*) AS n FROM notes").fetchone()
        if row["n"] > 0:
            return False
        timestamp = now_ms()
        self.add_note(
            Note(
                id=WELCOME_NOTE.id,
                title=WELCOME_NOTE.title,
                content=WELCOME_NOTE.content,
                tags=WELCOME_NOTE.tags,
                created_at=timestamp,
                updated_at=timestamp,
            )
        )
        return True

    def add_note(self, note: Note) -> Note:
        """Insert a new note.

        Args:
            note: The note to insert.

        Returns:
            The inserted note.
        """
        self._insert_note(note)
        self._commit()
        return note

    def _insert_note(self, note: Note) -> None:
        self._execute(
            """
            INSERT INTO notes (id, title, content, tags, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                note.id,
                note.title,
                note.content,
                json.dumps(list(note.tags)),
                note.created_at,
                note.updated_at,
            ),
        )

    def get_note(self, note_id: str) -> Note | None:
        """Get a note by id."""
        row = self._execute(
            "SELECT id, title, content, tags, created_at, updated_at FROM notes WHERE id = ?",
            (note_id,),
        ).fetchone()
        return self._row_to_note(row) if row else None

    def list_notes(self) -> list[Note]:
        """Get all notes in creation order."""
        cursor = self._execute(
            "SELECT id, title, content, tags, created_at, updated_at FROM notes "
            "ORDER BY created_at, rowid"
        )
        return [self._row_to_note(row) for row in cursor.fetchall()]

    def update_note(self, note_id: str, **fields: Any) -> Note:
        """Update title, content or tags of a note.

        The id never changes and updated_at always moves forward, even when
        two updates land in the same millisecond.

        Raises:
            NotFound: If the note does not exist.
            ValueError: If an unknown field is given.
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        current = self.get_note(note_id)
        if current is None:
            raise NotFound(note_id)

        updated = Note(
            id=current.id,
            title=fields.get("title", current.title),
            content=fields.get("content", current.content),
            tags=normalize_tags(fields["tags"]) if "tags" in fields else current.tags,
            created_at=current.created_at,
            updated_at=max(now_ms(), current.updated_at + 1),
        )
        self._execute(
            "UPDATE notes SET title = ?, content = ?, tags = ?, updated_at = ? WHERE id = ?",
            (
                updated.title,
                updated.content,
                json.dumps(list(updated.tags)),
                updated.updated_at,
                note_id,
            ),
        )
        self._commit()
        return updated

    def delete_note(self, note_id: str) -> None:
        """Delete a note and its properties.

        Raises:
            NotFound: If the note does not exist.
        """
        self._execute("DELETE FROM properties WHERE note_id = ?", (note_id,))
        cursor = self._execute("DELETE FROM notes WHERE id = ?", (note_id,))
        self._commit()
        if cursor.rowcount == 0:
            raise NotFound(note_id)

    def list_properties(self) -> list[StoredProperty]:
        """Get all stored properties."""
        cursor = self._execute("SELECT note_id, feature_id, value FROM properties")
        return [self._row_to_property(row) for row in cursor.fetchall()]

    def put_property(self, prop: StoredProperty) -> StoredProperty:
        """Insert or replace the property for (note_id, feature_id).

        Raises:
            NotFound: If the note does not exist.
        """
        if self.get_note(prop.note_id) is None:
            raise NotFound(prop.note_id)
        self._insert_property(prop)
        self._commit()
        return prop

    def _insert_property(self, prop: StoredProperty) -> None:
        self._execute(
            """
            INSERT INTO properties (note_id, feature_id, value)
            VALUES (?, ?, ?)
            ON CONFLICT(note_id, feature_id) DO UPDATE SET value = excluded.value
            """,
            (prop.note_id, prop.feature_id, json.dumps(prop.value)),
        )

    def delete_properties(self, note_id: str) -> int:
        """Delete every property of a note.

        Returns:
            Number of properties deleted.
        """
        cursor = self._execute("DELETE FROM properties WHERE note_id = ?", (note_id,))
        self._commit()
        return cursor.rowcount

    def replace_all(
        self, notes: Iterable[Note], properties: Iterable[StoredProperty]
    ) -> None:
        """Replace the whole content of the store in one transaction."""
        conn = self._get_connection()
        try:
            with conn:
                conn.execute("DELETE FROM properties")
                conn.execute("DELETE FROM notes")
                for note in notes:
                    self._insert_note(note)
                for prop in properties:
                    self._insert_property(prop)
        except sqlite3.Error as e:
            raise StorageUnavailable(str(e)) from e

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _row_to_note(self, row: sqlite3.Row) -> Note:
        """Convert a database row to a Note."""
        return Note(
            id=row["id"],
            title=row["title"],
            content=row["content"],
            tags=tuple(json.loads(row["tags"])),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _row_to_property(self, row: sqlite3.Row) -> StoredProperty:
        """Convert a database row to a StoredProperty."""
        value = json.loads(row["value"]) if row["value"] is not None else None
        return StoredProperty(
            note_id=row["note_id"],
            feature_id=row["feature_id"],
            value=value,
        )
