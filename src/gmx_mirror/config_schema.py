"""Pydantic schema for the YAML configuration file.

Each top-level YAML key has its own section model; every field is
optional so an empty or missing file is valid.  ``to_fallbacks()``
flattens a validated config into the ``yaml_fallbacks`` dict that
``config.load_config()`` consumes below CLI args and env vars.

Usage:
    from gmx_mirror.config_loader import load_hierarchical_config
    from gmx_mirror.config_schema import build_config, to_fallbacks

    unified = build_config(load_hierarchical_config())
    config = load_config(yaml_fallbacks=to_fallbacks(unified))
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ProjectConfig(BaseModel):
    """Where the native GameMaker project lives."""

    path: str | None = Field(default=None, description="Project directory")
    manifest: str | None = Field(
        default=None, description="Path to <Project>.project.gmx"
    )
    objects: str = Field(default="objects", description="Objects subdirectory")
    scripts: str = Field(default="scripts", description="Scripts subdirectory")
    native_ext: str = Field(
        default="gmx", min_length=1, description="Object file extension"
    )

    model_config = {"frozen": True}


class MirrorConfig(BaseModel):
    """Where and how the mirror is written."""

    path: str | None = Field(default=None, description="Mirror directory")
    ext: str = Field(default="gmo", min_length=1, description="Mirror object extension")
    script_ext: str = Field(
        default="gml", min_length=1, description="Script extension on both sides"
    )

    model_config = {"frozen": True}


class SyncConfig(BaseModel):
    """Timing and queueing of the live sync."""

    reverb_spacing: float = Field(
        default=1.0, gt=0, description="Seconds an opposite-side change is reverb"
    )
    dedup_spacing: float = Field(
        default=0.1, gt=0, description="Seconds a repeated change is a duplicate"
    )
    queue_size: int = Field(default=1024, ge=1, description="Event queue capacity")
    content_guard: bool = Field(
        default=True, description="Suppress events whose content we wrote"
    )
    debug: bool = Field(default=False, description="Enable debug logging")

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: ``text`` or ``json``.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: Literal["text", "json"] = Field(default="text", description="Log format")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """All config sections; ``UnifiedConfig()`` is always valid."""

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    mirror: MirrorConfig = Field(default_factory=MirrorConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Validate the merged dict from ``load_hierarchical_config()``.

    Missing sections get defaults.

    Raises:
        pydantic.ValidationError: If a value has the wrong type or range.
    """
    if not raw_data:
        return UnifiedConfig()
    return UnifiedConfig(**raw_data)


def to_fallbacks(unified: UnifiedConfig) -> dict[str, Any]:
    """Flatten *unified* into ``load_config(yaml_fallbacks=...)`` keys.

    Only values that are actually set are included for the path fields,
    so an absent ``project.path`` still triggers discovery.
    """
    fallbacks: dict[str, Any] = {
        "objects_subdir": unified.project.objects,
        "scripts_subdir": unified.project.scripts,
        "native_ext": unified.project.native_ext,
        "mirror_ext": unified.mirror.ext,
        "script_ext": unified.mirror.script_ext,
        "reverb_spacing": unified.sync.reverb_spacing,
        "dedup_spacing": unified.sync.dedup_spacing,
        "queue_size": unified.sync.queue_size,
        "content_guard": unified.sync.content_guard,
        "debug": unified.sync.debug,
    }
    if unified.project.path:
        fallbacks["project"] = unified.project.path
    if unified.project.manifest:
        fallbacks["manifest"] = unified.project.manifest
    if unified.mirror.path:
        fallbacks["mirror_dir"] = unified.mirror.path
    return fallbacks
