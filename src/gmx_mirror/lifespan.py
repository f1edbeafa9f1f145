"""Lifespan management for a mirror session: startup and shutdown."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import yaml
from pydantic import ValidationError

from .config import Config, load_config
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import UnifiedConfig, build_config, to_fallbacks
from .file_handler import remove_tree
from .sync.engine import SyncEngine
from .sync.manifest_updater import ManifestUpdater
from .sync.reporter import LoggingSink, LogSink
from .sync.state import ReverbSuppressor, SyncState
from .sync.store import ResourceStore
from .sync.watcher import SyncService

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print a user-facing status line to stderr."""
    print(msg, file=sys.stderr, flush=True)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def load_unified_config() -> UnifiedConfig:
    """Load and validate the YAML config files.

    The caller loads ``.env`` first so ``${VAR}`` interpolation sees it.

    Raises:
        RuntimeError: If a config file cannot be read or fails validation.
    """
    try:
        return build_config(load_hierarchical_config())
    except (OSError, ValueError, ValidationError, yaml.YAMLError) as e:
        _stderr_print(f"ERROR: Config file error: {e}")
        raise RuntimeError(f"Config file error: {e}") from e


def resolve_config(
    unified: UnifiedConfig,
    overrides: dict[str, Any] | None = None,
) -> Config:
    """Merge CLI overrides, environment and YAML into a validated ``Config``.

    Precedence: CLI args > env vars (.env loaded first) > YAML > defaults.

    Raises:
        RuntimeError: If the resulting configuration is invalid.
    """
    overrides = overrides or {}
    sources = []
    config_files = discover_config_files()
    if config_files:
        sources.append(f"config file: {config_files[0]}")
    if overrides:
        sources.append("CLI arguments")
    sources.append("environment variables")

    try:
        config = load_config(
            project=overrides.get("project"),
            mirror_dir=overrides.get("mirror_dir"),
            manifest=overrides.get("manifest"),
            reverb_spacing=overrides.get("reverb_spacing"),
            dedup_spacing=overrides.get("dedup_spacing"),
            debug=overrides.get("debug", False),
            yaml_fallbacks=to_fallbacks(unified),
        )
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        raise RuntimeError(f"Configuration error: {e}") from e

    logger.info("Configuration loaded from: %s", ", ".join(sources))
    logger.info("Project: %s", config.project_dir)
    logger.info("Mirror: %s", config.mirror_dir)
    return config


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


def build_engine(config: Config, sink: LogSink) -> SyncEngine:
    """Wire store, state, suppressor and manifest updater into an engine."""
    updater = None
    if config.manifest_path is not None:
        updater = ManifestUpdater(config.manifest_path, script_ext=config.script_ext)
    return SyncEngine(
        store=ResourceStore.from_config(config),
        state=SyncState(),
        suppressor=ReverbSuppressor(
            reverb_spacing=config.reverb_spacing,
            dedup_spacing=config.dedup_spacing,
        ),
        manifest_updater=updater,
        sink=sink,
        content_guard=config.content_guard,
    )


@contextmanager
def mirror_session(
    config: Config,
    sink: LogSink | None = None,
    service_factory=SyncService,
) -> Iterator[SyncService]:
    """
    Manage one mirror session.

    On startup:
    - Create the mirror directory (fatal on failure)
    - Translate every native object and copy every script into it (fatal)
    - Start watching both trees

    On shutdown:
    - Stop the watcher and wait for the in-flight event
    - Remove the mirror directory (errors are logged, not raised)

    Args:
        config: Validated configuration.
        sink: Result sink; a ``LoggingSink`` by default.
        service_factory: Builds the ``SyncService``; replaced in tests.

    Yields:
        The running ``SyncService``.

    Raises:
        RuntimeError: If the mirror cannot be created or populated.
    """
    sink = sink if sink is not None else LoggingSink()
    mirror_dir = config.mirror_dir

    _stderr_print(f"Initializing {mirror_dir.name} directory...")
    try:
        mirror_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Failed to create mirror directory %s: %s", mirror_dir, e)
        raise RuntimeError(f"Cannot create mirror directory {mirror_dir}: {e}") from e

    engine = build_engine(config, sink)
    try:
        engine.initial_pass()
    except Exception as e:
        logger.error("Initial translation failed: %s", e)
        _cleanup(mirror_dir)
        raise RuntimeError(f"Initial translation failed: {e}") from e

    service = service_factory(
        engine, engine.store.watch_roots(), queue_size=config.queue_size
    )
    try:
        service.start()
    except Exception as e:
        logger.error("Failed to start watcher: %s", e)
        service.stop()
        _cleanup(mirror_dir)
        raise RuntimeError(f"Failed to start watcher: {e}") from e

    _stderr_print("Listening")
    try:
        yield service
    finally:
        logger.info("Stopping mirror session")
        service.stop()
        _stderr_print(f"Removing {mirror_dir.name} directory...")
        _cleanup(mirror_dir)


def _cleanup(mirror_dir) -> None:
    try:
        remove_tree(mirror_dir)
    except OSError as e:
        logger.error("Error removing %s: %s", mirror_dir, e)
