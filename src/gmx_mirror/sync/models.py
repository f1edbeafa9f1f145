"""Pydantic models for the sync engine.

Defines the data contracts shared by the sync modules:

- ``PathKind`` / ``Side``: what a changed path is and which side owns it.
- ``ResolvedPath``: a classified path with its counterpart.
- ``ChangeKind`` / ``ChangeEvent``: one raw filesystem notification.
- ``Direction`` / ``Verdict``: translation direction and suppressor outcome.
- ``SyncResult``: outcome of handling one change.

All models are frozen (immutable) so they can cross threads freely.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel


class Side(str, Enum):
    """The two trees kept in sync."""

    NATIVE = "native"
    MIRROR = "mirror"

    @property
    def opposite(self) -> Side:
        return Side.MIRROR if self is Side.NATIVE else Side.NATIVE


class PathKind(str, Enum):
    """Classification of a changed path."""

    NATIVE_OBJECT = "native_object"
    NATIVE_SCRIPT = "native_script"
    MIRROR_OBJECT = "mirror_object"
    MIRROR_SCRIPT = "mirror_script"
    UNRELATED = "unrelated"


class ResolvedPath(BaseModel):
    """A path the store has classified.

    Attributes:
        kind: Classification of the path.
        path: The path itself.
        name: Resource name (suffix stripped); empty for unrelated paths.
        counterpart: Path of the same resource on the other side.
        side: Side owning ``path``; ``None`` for unrelated paths.
    """

    kind: PathKind
    path: Path
    name: str = ""
    counterpart: Path | None = None
    side: Side | None = None

    model_config = {"frozen": True}


class ChangeKind(str, Enum):
    """Kind of filesystem notification."""

    WRITE = "write"
    CREATE = "create"
    REMOVE = "remove"
    OTHER = "other"


class ChangeEvent(BaseModel):
    """A filesystem notification as queued for the engine.

    Attributes:
        path: Path that changed.
        kind: What happened to it.
        is_directory: Whether the path is a directory.
        observed_at: Monotonic time the watcher saw the change.
    """

    path: Path
    kind: ChangeKind
    is_directory: bool = False
    observed_at: float

    model_config = {"frozen": True}


class Direction(str, Enum):
    """Direction of a translation."""

    NATIVE_TO_MIRROR = "native -> mirror"
    MIRROR_TO_NATIVE = "mirror -> native"


class Verdict(str, Enum):
    """Outcome of the reverb suppressor."""

    PASS = "pass"
    REVERB = "reverb"
    DUPLICATE = "duplicate"


class SyncResult(BaseModel):
    """Result of handling one change.

    Attributes:
        name: Resource name.
        direction: Which way the change was propagated.
        kind: Classification of the source path.
        success: Whether the translation succeeded.
        error: Error message if it failed.
        timestamp: Wall-clock time the result was produced (epoch seconds).
    """

    name: str
    direction: Direction
    kind: PathKind
    success: bool
    error: str | None = None
    timestamp: float

    model_config = {"frozen": True}
