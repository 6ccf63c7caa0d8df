"""Application configuration.

Loads settings from <data_dir>/config.json, with the data directory taken
from NOTEWISE_HOME (default ~/.notewise).
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".notewise"
DEFAULT_DEBOUNCE_SECONDS = 0.5
DEFAULT_LOG_MAX_SIZE_MB = 10.0


@dataclass
class AppConfig:
    """Configuration for a notewise installation.

    Attributes:
        data_dir: Root directory for all notewise files.
        db_path: SQLite database (defaults to data_dir/notes.db).
        log_dir: JSONL log directory (defaults to data_dir/logs).
        preferences_path: Feature preferences file (defaults to data_dir/features.json).
        log_max_size_mb: Size at which the log file is rotated.
        save_debounce_seconds: Window in which preference writes collapse.
        seed_welcome_note: Insert a welcome note into an empty database.
    """

    data_dir: Path | None = None
    db_path: Path | None = None
    log_dir: Path | None = None
    preferences_path: Path | None = None
    log_max_size_mb: float = DEFAULT_LOG_MAX_SIZE_MB
    save_debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    seed_welcome_note: bool = True

    def __post_init__(self) -> None:
        """Validate config and derive paths."""
        if self.data_dir is None:
            self.data_dir = DEFAULT_DATA_DIR
        self.data_dir = Path(self.data_dir).expanduser()

        if self.db_path is None:
            self.db_path = self.data_dir / "notes.db"
        if self.log_dir is None:
            self.log_dir = self.data_dir / "logs"
        if self.preferences_path is None:
            self.preferences_path = self.data_dir / "features.json"

        if self.save_debounce_seconds < 0:
            raise ValueError("save_debounce_seconds cannot be negative")
        if self.log_max_size_mb <= 0:
            raise ValueError("log_max_size_mb must be positive")

    @property
    def config_path(self) -> Path:
        assert self.data_dir is not None
        return self.data_dir / "config.json"


def data_dir_from_env() -> Path:
    """Data directory from NOTEWISE_HOME, or the default."""
    value = os.getenv("NOTEWISE_HOME")
    return Path(value).expanduser() if value else DEFAULT_DATA_DIR


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load AppConfig from a JSON file.

    The config file should have this structure:
    ```json
    {
      "db_path": "~/notes/notes.db",
      "log_max_size_mb": 5,
      "save_debounce_seconds": 0.5,
      "seed_welcome_note": false
    }
    ```

    Args:
        config_path: Path to config file. Uses <NOTEWISE_HOME>/config.json if None.

    Returns:
        AppConfig instance with loaded values.
    """
    data_dir = data_dir_from_env()
    path = config_path or data_dir / "config.json"

    if not path.exists():
        logger.debug("No config file at %s, using defaults", path)
        return AppConfig(data_dir=data_dir)

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.warning("Invalid JSON in %s: %s. Using defaults.", path, e)
        return AppConfig(data_dir=data_dir)
    except OSError as e:
        logger.warning("Cannot read %s: %s. Using defaults.", path, e)
        return AppConfig(data_dir=data_dir)

    if not isinstance(data, dict):
        logger.warning("Unexpected config format in %s. Using defaults.", path)
        return AppConfig(data_dir=data_dir)

    return _parse_config(data, data_dir)


def _path(value: Any) -> Path | None:
    if isinstance(value, str) and value:
        return Path(value).expanduser()
    return None


def _parse_config(data: dict[str, Any], data_dir: Path) -> AppConfig:
    """Parse config dictionary into AppConfig, ignoring invalid values."""
    data_dir = _path(data.get("data_dir")) or data_dir

    max_size = data.get("log_max_size_mb", DEFAULT_LOG_MAX_SIZE_MB)
    if not isinstance(max_size, (int, float)) or max_size <= 0:
        max_size = DEFAULT_LOG_MAX_SIZE_MB

    debounce = data.get("save_debounce_seconds", DEFAULT_DEBOUNCE_SECONDS)
    if not isinstance(debounce, (int, float)) or debounce < 0:
        debounce = DEFAULT_DEBOUNCE_SECONDS

    seed = data.get("seed_welcome_note", True)
    if not isinstance(seed, bool):
        seed = True

    return AppConfig(
        data_dir=data_dir,
        db_path=_path(data.get("db_path")),
        log_dir=_path(data.get("log_dir")),
        preferences_path=_path(data.get("preferences_path")),
        log_max_size_mb=float(max_size),
        save_debounce_seconds=float(debounce),
        seed_welcome_note=seed,
    )


def save_config(config: AppConfig, config_path: Path | None = None) -> None:
    """Save AppConfig to a JSON file.

    Args:
        config: The config to save.
        config_path: Path to write to. Uses config.config_path if None.
    """
    path = config_path or config.config_path

    # Ensure parent directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    data: dict[str, Any] = {
        "data_dir": str(config.data_dir),
        "db_path": str(config.db_path),
        "log_dir": str(config.log_dir),
        "preferences_path": str(config.preferences_path),
    }

    if config.log_max_size_mb != DEFAULT_LOG_MAX_SIZE_MB:
        data["log_max_size_mb"] = config.log_max_size_mb

    if config.save_debounce_seconds != DEFAULT_DEBOUNCE_SECONDS:
        data["save_debounce_seconds"] = config.save_debounce_seconds

    if not config.seed_welcome_note:
        data["seed_welcome_note"] = False

    try:
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
    except OSError as e:
        logger.error("Failed to save config to %s: %s", path, e)
        raise
