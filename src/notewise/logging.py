"""JSONL logging for observability."""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


@dataclass
class LogEntry:
    """A single log entry."""

    timestamp: str
    event: str
    note_id: str | None = None
    feature_id: str | None = None
    notes_count: int | None = None
    duration_ms: float | None = None
    published: bool | None = None
    reason: str | None = None
    error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict, excluding None values."""
        data = asdict(self)
        return {k: v for k, v in data.items() if v is not None and v != {} and v != []}


class JSONLLogger:
    """Logger that writes structured logs in JSONL format."""

    def __init__(
        self,
        log_dir: str | Path | None = None,
        filename: str = "logs.jsonl",
        max_size_mb: float = 10.0,
    ) -> None:
        if log_dir is None:
            log_dir = Path.home() / ".notewise" / "logs"
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.filename = filename
        self.max_size_bytes = int(max_size_mb * 1024 * 1024)

    @property
    def log_path(self) -> Path:
        """Current log file path."""
        return self.log_dir / self.filename

    def _rotate_if_needed(self) -> None:
        """Rotate log file if it exceeds max size."""
        if not self.log_path.exists():
            return

        if self.log_path.stat().st_size >= self.max_size_bytes:
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
            rotated_name = f"{self.log_path.stem}_{timestamp}.jsonl"
            self.log_path.rename(self.log_dir / rotated_name)

    def _write(self, entry: LogEntry) -> None:
        """Write a log entry to the file."""
        self._rotate_if_needed()

        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry.to_dict(), default=str) + "\n")

    def log(
        self,
        event: str,
        *,
        note_id: str | None = None,
        feature_id: str | None = None,
        notes_count: int | None = None,
        duration_ms: float | None = None,
        published: bool | None = None,
        reason: str | None = None,
        error: str | None = None,
        **extra: Any,
    ) -> None:
        """Log an event."""
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            event=event,
            note_id=note_id,
            feature_id=feature_id,
            notes_count=notes_count,
            duration_ms=duration_ms,
            published=published,
            reason=reason,
            error=error,
            extra=extra if extra else {},
        )
        self._write(entry)

    def log_feature_error(self, feature_id: str, note_id: str, error: str) -> None:
        """Log a feature computation that failed for one note."""
        self.log("feature_error", feature_id=feature_id, note_id=note_id, error=error)

    def log_recompute(
        self,
        notes_count: int,
        published: bool,
        *,
        duration_ms: float | None = None,
        enabled_features: list[str] | None = None,
    ) -> None:
        """Log a completed recompute pass."""
        self.log(
            "recompute",
            notes_count=notes_count,
            published=published,
            duration_ms=duration_ms,
            enabled_features=enabled_features or [],
        )

    def log_recompute_skipped(self, reason: str) -> None:
        """Log a recompute trigger that did no work."""
        self.log("recompute_skipped", reason=reason)

    def log_recompute_aborted(self, error: str, *, notes_count: int | None = None) -> None:
        """Log a recompute pass that failed as a whole."""
        self.log("recompute_aborted", error=error, notes_count=notes_count)


# Global logger instance
_logger: JSONLLogger | None = None


def get_logger() -> JSONLLogger:
    """Get the global logger instance."""
    global _logger
    if _logger is None:
        _logger = JSONLLogger()
    return _logger


def configure_logger(log_dir: str | Path | None = None, max_size_mb: float = 10.0) -> JSONLLogger:
    """Configure and return the global logger."""
    global _logger
    _logger = JSONLLogger(log_dir=log_dir, max_size_mb=max_size_mb)
    return _logger
