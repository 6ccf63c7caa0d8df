"""Wires the store, feature registry, controller and preferences together."""

from .config import AppConfig
from .features import (
    ContextBuilder,
    FeatureEngine,
    FeatureRegistry,
    RecomputeController,
    register_builtin_features,
)
from .logging import JSONLLogger, configure_logger
from .notes.manager import NoteManager
from .notes.store import NoteStore
from .preferences import PreferencesStore


def create_manager(
    config: AppConfig,
    registry: FeatureRegistry | None = None,
    logger: JSONLLogger | None = None,
) -> NoteManager:
    """Build a NoteManager for a configuration.

    Args:
        config: Application configuration.
        registry: Feature registry; a new one with the built-in features is
            created if None.
        logger: Event logger; the global logger is configured from
            config.log_dir if None.

    Returns:
        A NoteManager whose notes have not been loaded yet.
    """
    assert config.db_path is not None
    assert config.preferences_path is not None

    if logger is None:
        logger = configure_logger(config.log_dir, max_size_mb=config.log_max_size_mb)

    if registry is None:
        registry = register_builtin_features(FeatureRegistry())

    store = NoteStore(config.db_path)
    store.init_db()
    if config.seed_welcome_note:
        store.seed_if_empty()

    engine = FeatureEngine(logger=logger)
    controller = RecomputeController(
        registry,
        engine,
        ContextBuilder(store),
        logger=logger,
    )
    preferences = PreferencesStore(
        config.preferences_path,
        debounce_seconds=config.save_debounce_seconds,
    )
    return NoteManager(store, registry, controller, preferences, logger=logger)
