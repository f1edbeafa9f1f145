"""Runtime configuration for gmx-mirror.

Settings come from CLI args, environment variables, .env files, and YAML
config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    GMX_MIRROR_PROJECT: GameMaker project directory (``<Project>.gmx``)
    GMX_MIRROR_DIR: Mirror directory (default: ./NiceObjects)
    GMX_MIRROR_MANIFEST: Path to ``<Project>.project.gmx``
    GMX_MIRROR_REVERB_SPACING: Reverb window in seconds (default: 1.0)
    GMX_MIRROR_DEDUP_SPACING: Duplicate window in seconds (default: 0.1)
    GMX_MIRROR_QUEUE_SIZE: Event queue capacity (default: 1024)
    GMX_MIRROR_CONTENT_GUARD: Suppress echoes by content (default: true)
    GMX_MIRROR_DEBUG: Enable debug logging (default: false)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MIRROR_DIR = "NiceObjects"
MANIFEST_SUFFIX = ".project.gmx"


@dataclass
class Config:
    project_dir: Path
    mirror_dir: Path
    manifest_path: Path | None = None
    objects_subdir: str = "objects"
    scripts_subdir: str = "scripts"
    native_ext: str = "gmx"
    mirror_ext: str = "gmo"
    script_ext: str = "gml"
    reverb_spacing: float = 1.0
    dedup_spacing: float = 0.1
    queue_size: int = 1024
    content_guard: bool = True
    debug: bool = False

    @property
    def objects_dir(self) -> Path:
        return self.project_dir / self.objects_subdir

    @property
    def scripts_dir(self) -> Path:
        return self.project_dir / self.scripts_subdir


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If a directory is missing, the mirror would live inside
            the project, or a timing value is out of range.
    """
    config.project_dir = config.project_dir.expanduser().resolve()
    config.mirror_dir = config.mirror_dir.expanduser().resolve()

    if not config.project_dir.is_dir():
        raise ValueError(f"Project directory not found: {config.project_dir}")

    if not config.objects_dir.is_dir():
        raise ValueError(
            f"Project has no '{config.objects_subdir}' directory: {config.project_dir}"
        )

    if config.mirror_dir == config.project_dir or config.mirror_dir.is_relative_to(
        config.project_dir
    ):
        raise ValueError(
            f"Mirror directory {config.mirror_dir} must be outside the "
            f"project directory {config.project_dir}"
        )

    if config.mirror_dir.exists() and not config.mirror_dir.is_dir():
        raise ValueError(f"Mirror path exists and is not a directory: {config.mirror_dir}")

    for name in ("native_ext", "mirror_ext", "script_ext"):
        value = getattr(config, name)
        if not value or "." in value or "/" in value:
            raise ValueError(f"Invalid {name} '{value}': must be a bare extension")

    if config.mirror_ext == config.script_ext:
        raise ValueError(
            f"Mirror extension '{config.mirror_ext}' clashes with the script extension"
        )

    if not (0 < config.dedup_spacing < config.reverb_spacing):
        raise ValueError(
            f"Invalid spacing: need 0 < dedup_spacing ({config.dedup_spacing}) "
            f"< reverb_spacing ({config.reverb_spacing})"
        )

    if config.queue_size < 1:
        raise ValueError(f"Invalid queue_size {config.queue_size}: must be at least 1")

    if config.manifest_path is not None:
        config.manifest_path = config.manifest_path.expanduser().resolve()
        if not config.manifest_path.is_file():
            raise ValueError(f"Manifest not found: {config.manifest_path}")
    else:
        logger.warning(
            "No %s manifest found in %s; new resources will not be registered",
            MANIFEST_SUFFIX,
            config.project_dir,
        )


def discover_project(cwd: Path) -> Path | None:
    """Find the project directory when none was configured.

    *cwd* itself counts if it holds a manifest; otherwise a single
    ``*.gmx`` directory inside it is used.
    """
    if any(cwd.glob(f"*{MANIFEST_SUFFIX}")):
        return cwd
    candidates = [p for p in sorted(cwd.glob("*.gmx")) if p.is_dir()]
    if len(candidates) == 1:
        return candidates[0]
    return None


def discover_manifest(project_dir: Path) -> Path | None:
    """Return ``<Project>.project.gmx`` inside *project_dir*, if any.

    ``<dir stem>.project.gmx`` is preferred; otherwise the only
    ``*.project.gmx`` present is used.
    """
    preferred = project_dir / f"{project_dir.stem}{MANIFEST_SUFFIX}"
    if preferred.is_file():
        return preferred
    candidates = sorted(project_dir.glob(f"*{MANIFEST_SUFFIX}"))
    if len(candidates) == 1:
        return candidates[0]
    if candidates:
        logger.warning(
            "Several manifests in %s; pass --manifest to choose one", project_dir
        )
    return None


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _number(raw, key: str, cast, source: str):
    try:
        return cast(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {source} '{raw}' for {key}: must be a number") from None


def load_config(
    project: str | None = None,
    mirror_dir: str | None = None,
    manifest: str | None = None,
    reverb_spacing: float | None = None,
    dedup_spacing: float | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
    cwd: Path | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        project: Project directory override.
        mirror_dir: Mirror directory override.
        manifest: Manifest path override.
        reverb_spacing: Reverb window override (seconds).
        dedup_spacing: Duplicate window override (seconds).
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flat dict from ``config_schema.to_fallbacks()``.
        cwd: Directory relative paths and discovery start from.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If no project can be found or a value is invalid.
    """
    fb = yaml_fallbacks or {}
    base = cwd or Path.cwd()

    # --- Paths: CLI > env > YAML > discovery/default ---

    project_raw = project or os.getenv("GMX_MIRROR_PROJECT") or fb.get("project")
    if project_raw:
        project_dir = base / Path(project_raw).expanduser()
    else:
        found = discover_project(base)
        if found is None:
            raise ValueError(
                "GameMaker project not found. Pass the project directory, set "
                "GMX_MIRROR_PROJECT, or add 'project.path' to config.yml."
            )
        project_dir = found

    mirror_raw = (
        mirror_dir
        or os.getenv("GMX_MIRROR_DIR")
        or fb.get("mirror_dir")
        or DEFAULT_MIRROR_DIR
    )
    final_mirror = base / Path(mirror_raw).expanduser()

    manifest_raw = manifest or os.getenv("GMX_MIRROR_MANIFEST") or fb.get("manifest")
    if manifest_raw:
        manifest_path: Path | None = base / Path(manifest_raw).expanduser()
    else:
        manifest_path = discover_manifest(project_dir)

    # --- Numeric fields: CLI > env > YAML > default ---

    def resolve_number(cli_value, env_key: str, fb_key: str, cast, default):
        if cli_value is not None:
            return _number(cli_value, fb_key, cast, "value")
        env_raw = os.getenv(env_key)
        if env_raw is not None:
            return _number(env_raw, fb_key, cast, env_key)
        if fb_key in fb:
            return _number(fb[fb_key], fb_key, cast, "config value")
        return default

    final_reverb = resolve_number(
        reverb_spacing, "GMX_MIRROR_REVERB_SPACING", "reverb_spacing", float, 1.0
    )
    final_dedup = resolve_number(
        dedup_spacing, "GMX_MIRROR_DEDUP_SPACING", "dedup_spacing", float, 0.1
    )
    final_queue = resolve_number(
        None, "GMX_MIRROR_QUEUE_SIZE", "queue_size", int, 1024
    )

    # --- Boolean fields: CLI > env > YAML > default ---

    env_guard = _get_bool_env("GMX_MIRROR_CONTENT_GUARD")
    if env_guard is not None:
        final_guard = env_guard
    else:
        final_guard = bool(fb.get("content_guard", True))

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("GMX_MIRROR_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    config = Config(
        project_dir=project_dir,
        mirror_dir=final_mirror,
        manifest_path=manifest_path,
        objects_subdir=fb.get("objects_subdir", "objects"),
        scripts_subdir=fb.get("scripts_subdir", "scripts"),
        native_ext=fb.get("native_ext", "gmx"),
        mirror_ext=fb.get("mirror_ext", "gmo"),
        script_ext=fb.get("script_ext", "gml"),
        reverb_spacing=final_reverb,
        dedup_spacing=final_dedup,
        queue_size=final_queue,
        content_guard=final_guard,
        debug=final_debug,
    )

    validate_config(config)

    return config
