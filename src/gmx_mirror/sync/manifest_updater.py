"""Serialized read-modify-write of the project manifest."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from ..file_handler import read_bytes, write_bytes
from ..translator.manifest import (
    append_manifest_entry,
    parse_manifest,
    render_manifest,
)
from ..translator.models import ResourceKind

logger = logging.getLogger(__name__)


class ManifestUpdater:
    """Register new resources in ``<Project>.project.gmx``.

    Args:
        manifest_path: Path to the project manifest.
        script_ext: Extension used for script entries.
    """

    def __init__(self, manifest_path: Path, script_ext: str = "gml") -> None:
        self.manifest_path = manifest_path
        self.script_ext = script_ext
        self._lock = threading.Lock()

    def add(self, name: str, kind: ResourceKind) -> bool:
        """Append *name* to the top-level group for *kind*.

        The file is rewritten only when the entry was missing.

        Returns:
            ``True`` if an entry was appended, ``False`` if it was
            already listed.

        Raises:
            OSError: If the manifest cannot be read or written.
            ParseError: If the manifest is not well-formed.
            UnknownGroupError: If the manifest lacks the group.
        """
        with self._lock:
            manifest = parse_manifest(read_bytes(self.manifest_path))
            updated = append_manifest_entry(
                manifest, kind.group, name, kind, script_ext=self.script_ext
            )
            if updated is manifest:
                logger.debug("%s %s already in manifest", kind.value, name)
                return False
            write_bytes(self.manifest_path, render_manifest(updated))
            logger.info("Registered %s %s in %s", kind.value, name, self.manifest_path.name)
            return True
