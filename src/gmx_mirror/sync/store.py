"""Resource store adapter: where each resource lives on disk.

Maps between the native project layout and the mirror directory:

=====================================  ====================================
Native                                 Mirror
=====================================  ====================================
``<project>/objects/<name>.object.gmx``  ``<mirror>/<name>.gmo``
``<project>/scripts/<name>.gml``         ``<mirror>/<name>.gml``
=====================================  ====================================

Only direct children of the three roots are considered; anything else,
including dotfiles and editor swap files, classifies as ``UNRELATED``.
"""

from __future__ import annotations

import os
from pathlib import Path

from .models import PathKind, ResolvedPath, Side


class ResourceStore:
    """Classify paths and locate counterparts.

    Args:
        objects_dir: Native objects directory.
        scripts_dir: Native scripts directory.
        mirror_dir: Mirror directory.
        native_ext: Extension of native object files (after ``.object``).
        mirror_ext: Extension of mirror object files.
        script_ext: Extension of script files on both sides.
    """

    def __init__(
        self,
        objects_dir: Path,
        scripts_dir: Path,
        mirror_dir: Path,
        native_ext: str = "gmx",
        mirror_ext: str = "gmo",
        script_ext: str = "gml",
    ) -> None:
        self.objects_dir = _absolute(objects_dir)
        self.scripts_dir = _absolute(scripts_dir)
        self.mirror_dir = _absolute(mirror_dir)
        self.native_suffix = f".object.{native_ext}"
        self.mirror_suffix = f".{mirror_ext}"
        self.script_suffix = f".{script_ext}"

    @classmethod
    def from_config(cls, config) -> ResourceStore:
        """Build a store from a ``Config``."""
        return cls(
            objects_dir=config.objects_dir,
            scripts_dir=config.scripts_dir,
            mirror_dir=config.mirror_dir,
            native_ext=config.native_ext,
            mirror_ext=config.mirror_ext,
            script_ext=config.script_ext,
        )

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify(self, path: str | os.PathLike) -> ResolvedPath:
        """Classify *path* by its containing root and suffix.

        Args:
            path: Any filesystem path, as reported by the watcher.

        Returns:
            A ``ResolvedPath``; ``kind`` is ``UNRELATED`` when the path
            is not a resource this tool manages.
        """
        path = _absolute(Path(path))
        parent = path.parent
        filename = path.name
        unrelated = ResolvedPath(kind=PathKind.UNRELATED, path=path)

        if not filename or filename.startswith("."):
            return unrelated

        if parent == self.objects_dir:
            name = _strip(filename, self.native_suffix)
            if name:
                return ResolvedPath(
                    kind=PathKind.NATIVE_OBJECT,
                    path=path,
                    name=name,
                    counterpart=self.mirror_object_path(name),
                    side=Side.NATIVE,
                )
        elif parent == self.scripts_dir:
            name = _strip(filename, self.script_suffix)
            if name:
                return ResolvedPath(
                    kind=PathKind.NATIVE_SCRIPT,
                    path=path,
                    name=name,
                    counterpart=self.mirror_script_path(name),
                    side=Side.NATIVE,
                )
        elif parent == self.mirror_dir:
            name = _strip(filename, self.mirror_suffix)
            if name:
                return ResolvedPath(
                    kind=PathKind.MIRROR_OBJECT,
                    path=path,
                    name=name,
                    counterpart=self.native_object_path(name),
                    side=Side.MIRROR,
                )
            name = _strip(filename, self.script_suffix)
            if name:
                return ResolvedPath(
                    kind=PathKind.MIRROR_SCRIPT,
                    path=path,
                    name=name,
                    counterpart=self.native_script_path(name),
                    side=Side.MIRROR,
                )
        return unrelated

    @staticmethod
    def counterpart_exists(resolved: ResolvedPath) -> bool:
        """Return ``True`` if *resolved* has a counterpart file on disk."""
        return resolved.counterpart is not None and resolved.counterpart.is_file()

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def native_object_path(self, name: str) -> Path:
        return self.objects_dir / f"{name}{self.native_suffix}"

    def native_script_path(self, name: str) -> Path:
        return self.scripts_dir / f"{name}{self.script_suffix}"

    def mirror_object_path(self, name: str) -> Path:
        return self.mirror_dir / f"{name}{self.mirror_suffix}"

    def mirror_script_path(self, name: str) -> Path:
        return self.mirror_dir / f"{name}{self.script_suffix}"

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def native_objects(self) -> list[ResolvedPath]:
        """All native objects, sorted by file name."""
        return self._scan(self.objects_dir, PathKind.NATIVE_OBJECT)

    def native_scripts(self) -> list[ResolvedPath]:
        """All native scripts, sorted by file name."""
        return self._scan(self.scripts_dir, PathKind.NATIVE_SCRIPT)

    def watch_roots(self) -> list[Path]:
        """Directories the watcher must observe (existing ones only)."""
        roots = [self.objects_dir, self.scripts_dir, self.mirror_dir]
        return [root for root in roots if root.is_dir()]

    def _scan(self, root: Path, kind: PathKind) -> list[ResolvedPath]:
        if not root.is_dir():
            return []
        found = []
        for path in sorted(root.iterdir()):
            if not path.is_file():
                continue
            resolved = self.classify(path)
            if resolved.kind is kind:
                found.append(resolved)
        return found


def _absolute(path: Path) -> Path:
    return Path(os.path.abspath(os.fspath(path)))


def _strip(filename: str, suffix: str) -> str:
    """Return *filename* without *suffix*, or ``""`` if it does not match."""
    if filename.endswith(suffix) and len(filename) > len(suffix):
        return filename[: -len(suffix)]
    return ""
