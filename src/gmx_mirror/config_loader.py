"""
Hierarchical YAML configuration loader for gmx_mirror.

Discovers config files by convention, resolves ``!include`` directives,
interpolates ``${VAR}`` / ``${VAR:-default}`` from the environment and
merges the files with "project wins" semantics.

Usage:
    from gmx_mirror.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "GMX_MIRROR_CONFIG"

# ---------------------------------------------------------------------------
# 1. Env var interpolation
# ---------------------------------------------------------------------------

# ${VAR} or ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Substitute ``${VAR}`` and ``${VAR:-default}`` in *value*.

    An unset or empty variable yields its default, or ``""`` without one.
    A ``${`` that is never closed is left as is.
    """

    def _replace(match: re.Match) -> str:
        env_val = os.environ.get(match.group(1))
        if env_val:
            return env_val
        return match.group(2) or ""

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {key: _interpolate_recursive(val) for key, val in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# 2. YAML !include support
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader with an ``!include`` tag.

    A subclass keeps the global ``yaml.SafeLoader`` untouched.  Each load
    carries its own include stack for cycle detection.
    """


def _include_constructor(loader: ConfigLoader, node: yaml.ScalarNode) -> Any:
    """Load the file named by ``!include <path>`` in place."""
    target = Path(loader.construct_scalar(node))
    if not target.is_absolute():
        # Relative to the including file.
        target = Path(loader.name).resolve().parent / target
    target = target.resolve()

    stack: list[Path] = getattr(loader, "_include_stack", [])
    if target in stack:
        chain = " -> ".join(str(p) for p in [*stack, target])
        raise ValueError(f"Circular include detected: {chain}")
    if not target.exists():
        raise FileNotFoundError(
            f"Include file not found: {target} "
            f"(referenced from {Path(loader.name).resolve()})"
        )
    return _load_yaml_with_includes(target, _include_stack=[*stack, target])


ConfigLoader.add_constructor("!include", _include_constructor)


def _load_yaml_with_includes(
    path: Path,
    *,
    _include_stack: list[Path] | None = None,
) -> Any:
    path = path.resolve()
    with open(path, "r", encoding="utf-8") as fh:
        loader = ConfigLoader(fh)
        loader._include_stack = _include_stack or [path]  # type: ignore[attr-defined]
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# 3. Discovery
# ---------------------------------------------------------------------------


def discover_config_files() -> list[Path]:
    """Existing config files, highest precedence first.

    Search order:
        1. ``GMX_MIRROR_CONFIG`` env var (explicit path)
        2. ``.gmx_mirror/config.yml`` in CWD
        3. ``.gmx_mirror/config.yaml`` in CWD
        4. ``~/.config/gmx_mirror/config.yml``
    """
    candidates: list[Path] = []

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).expanduser().resolve())

    cwd = Path.cwd()
    candidates.append(cwd / ".gmx_mirror" / "config.yml")
    candidates.append(cwd / ".gmx_mirror" / "config.yaml")
    candidates.append(Path.home() / ".config" / "gmx_mirror" / "config.yml")

    return [p for p in candidates if p.exists()]


# ---------------------------------------------------------------------------
# 3a. Starter config
# ---------------------------------------------------------------------------

_STARTER_CONFIG = """\
# gmx-mirror configuration
#
# Every value can also come from the environment:
#   GMX_MIRROR_PROJECT, GMX_MIRROR_DIR, GMX_MIRROR_MANIFEST,
#   GMX_MIRROR_REVERB_SPACING, GMX_MIRROR_DEDUP_SPACING,
#   GMX_MIRROR_QUEUE_SIZE, GMX_MIRROR_CONTENT_GUARD, GMX_MIRROR_DEBUG
#
# project:
#   path: example.gmx
#   manifest: example.gmx/example.project.gmx
#   objects: objects
#   scripts: scripts
#   native_ext: gmx
#
# mirror:
#   path: NiceObjects
#   ext: gmo
#   script_ext: gml
#
# sync:
#   reverb_spacing: 1.0
#   dedup_spacing: 0.1
#   queue_size: 1024
#   content_guard: true
#
# logging:
#   level: INFO
#   file: null
#   format: text
"""


def resolve_config_path() -> Path:
    """The active config file, or the default project-level location."""
    existing = discover_config_files()
    if existing:
        return existing[0]
    return Path.cwd() / ".gmx_mirror" / "config.yml"


def ensure_config(target: Path | None = None) -> Path:
    """Return the active config file, writing a starter one if none exists.

    Args:
        target: Where to create the file; defaults to
            ``resolve_config_path()``.

    Returns:
        Path to the existing or newly created config file.
    """
    existing = discover_config_files()
    if existing:
        logger.debug("Config file already exists: %s", existing[0])
        return existing[0]

    config_path = target or resolve_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", config_path)
    return config_path


# ---------------------------------------------------------------------------
# 4. Hierarchical merge
# ---------------------------------------------------------------------------


def load_hierarchical_config() -> dict[str, Any]:
    """Load and merge every discovered config file.

    Files are applied from lowest to highest precedence; a file's
    top-level keys replace earlier ones wholesale (no deep merge).  Env
    var interpolation runs on the merged result.

    Returns:
        The merged mapping, ``{}`` when no config file exists.
    """
    paths = discover_config_files()
    if not paths:
        logger.debug("No config files found, using defaults")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        try:
            data = _load_yaml_with_includes(path)
        except Exception:
            logger.exception("Failed to load config file %s", path)
            raise

        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Config file %s has non-dict root (%s), skipping",
                path,
                type(data).__name__,
            )

    return _interpolate_recursive(merged)
