"""Sync engine: turn one filesystem change into one translation.

For every queued ``ChangeEvent`` the ``SyncEngine``:

1. Ignores anything that is not a write to a managed file.
2. Asks the ``ReverbSuppressor`` whether the change is an echo of its
   own previous write or a duplicate notification.
3. Optionally compares the file content against the digest of what the
   engine last wrote there (content guard).
4. Translates or copies the file to its counterpart, registering new
   resources in the project manifest.
5. Records the change in ``SyncState`` and reports a ``SyncResult``.

Error handling is per-event: a failure is reported and the engine keeps
going.  The native file is never touched when a mirror edit fails to
parse.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

from ..file_handler import decode_bytes, read_bytes, write_bytes
from ..translator.mirror import mirror_to_native, native_to_mirror
from ..translator.models import ResourceKind
from ..translator.native import default_resource, parse_native, render_native
from .manifest_updater import ManifestUpdater
from .models import (
    ChangeEvent,
    ChangeKind,
    Direction,
    PathKind,
    ResolvedPath,
    Side,
    SyncResult,
    Verdict,
)
from .reporter import LogSink
from .state import ReverbSuppressor, SyncState
from .store import ResourceStore

logger = logging.getLogger(__name__)

_DIRECTIONS = {
    Side.NATIVE: Direction.NATIVE_TO_MIRROR,
    Side.MIRROR: Direction.MIRROR_TO_NATIVE,
}


class SyncEngine:
    """Translate changes between the native project and the mirror.

    Args:
        store: Path classification and counterpart lookup.
        state: Shared sync state.
        suppressor: Reverb/duplicate filter.
        manifest_updater: Registers resources created from the mirror;
            ``None`` disables manifest updates.
        sink: Receives one ``SyncResult`` per handled change.
        clock: Monotonic clock used to record change times.
        content_guard: Suppress events whose file still holds exactly
            what the engine wrote.
    """

    def __init__(
        self,
        store: ResourceStore,
        state: SyncState,
        suppressor: ReverbSuppressor,
        manifest_updater: ManifestUpdater | None,
        sink: LogSink,
        clock: Callable[[], float] = time.monotonic,
        content_guard: bool = True,
    ) -> None:
        self.store = store
        self.state = state
        self.suppressor = suppressor
        self.manifest_updater = manifest_updater
        self.sink = sink
        self.clock = clock
        self.content_guard = content_guard

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def initial_pass(self) -> int:
        """Mirror every native object and script.

        Unlike ``handle()``, errors propagate: a project that cannot be
        mirrored completely is not worth watching.

        Returns:
            Number of resources mirrored.
        """
        count = 0
        for resolved in self.store.native_objects():
            logger.debug("Initial translation of %s", resolved.path)
            self._native_object(resolved, read_bytes(resolved.path))
            count += 1
        for resolved in self.store.native_scripts():
            logger.debug("Initial copy of %s", resolved.path)
            self._copy_script(resolved, read_bytes(resolved.path))
            count += 1
        logger.info("Mirrored %d resources into %s", count, self.store.mirror_dir)
        return count

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def handle(self, event: ChangeEvent) -> SyncResult | None:
        """Process one change.

        Returns:
            The reported ``SyncResult``, or ``None`` if the event was
            ignored or suppressed.
        """
        if event.kind is not ChangeKind.WRITE or event.is_directory:
            return None

        resolved = self.store.classify(event.path)
        if resolved.kind is PathKind.UNRELATED or resolved.side is None:
            return None

        verdict = self.suppressor.check(
            self.state, resolved.side, resolved.path, event.observed_at
        )
        if verdict is not Verdict.PASS:
            logger.debug("Suppressed %s (%s)", resolved.path, verdict.value)
            return None

        direction = _DIRECTIONS[resolved.side]
        try:
            if not resolved.path.is_file():
                logger.debug("Ignoring %s: file is gone", resolved.path)
                return None
            data = read_bytes(resolved.path)
            if self.content_guard:
                if self.state.is_echo(resolved.path, data):
                    logger.debug("Suppressed %s (unchanged content)", resolved.path)
                    return None
                self.state.forget(resolved.path)
            self._dispatch(resolved, data)
        except Exception as exc:
            logger.debug("Translation of %s failed", resolved.path, exc_info=True)
            result = SyncResult(
                name=resolved.name,
                direction=direction,
                kind=resolved.kind,
                success=False,
                error=str(exc) or type(exc).__name__,
                timestamp=time.time(),
            )
            self.sink.report(result)
            return result

        self.state.record(resolved.side, resolved.path, self.clock())
        result = SyncResult(
            name=resolved.name,
            direction=direction,
            kind=resolved.kind,
            success=True,
            timestamp=time.time(),
        )
        self.sink.report(result)
        return result

    def _dispatch(self, resolved: ResolvedPath, data: bytes) -> None:
        match resolved.kind:
            case PathKind.NATIVE_OBJECT:
                self._native_object(resolved, data)
            case PathKind.MIRROR_OBJECT:
                self._mirror_object(resolved, data)
            case PathKind.NATIVE_SCRIPT:
                self._copy_script(resolved, data)
            case PathKind.MIRROR_SCRIPT:
                existed = self.store.counterpart_exists(resolved)
                self._copy_script(resolved, data)
                if not existed:
                    self._register(resolved.name, ResourceKind.SCRIPT)
            case PathKind.UNRELATED:
                pass

    # ------------------------------------------------------------------
    # Translations
    # ------------------------------------------------------------------

    def _native_object(self, resolved: ResolvedPath, data: bytes) -> None:
        resource = parse_native(data)
        text = native_to_mirror(resource)
        self._write(resolved.counterpart, text.encode("utf-8"))

    def _mirror_object(self, resolved: ResolvedPath, data: bytes) -> None:
        existed = self.store.counterpart_exists(resolved)
        if existed:
            base = parse_native(read_bytes(resolved.counterpart))
        else:
            base = default_resource()

        text, _ = decode_bytes(data)
        # Parse before anything is written so a bad edit leaves the
        # native file untouched.
        resource = mirror_to_native(text, base)
        self._write(resolved.counterpart, render_native(resource))

        if not existed:
            self._register(resolved.name, ResourceKind.OBJECT)

    def _copy_script(self, resolved: ResolvedPath, data: bytes) -> None:
        self._write(resolved.counterpart, data)

    def _write(self, target: Path | None, data: bytes) -> None:
        if target is None:
            raise ValueError("resource has no counterpart path")
        if target.is_file() and read_bytes(target) == data:
            logger.debug("%s already up to date", target)
        else:
            write_bytes(target, data)
        self.state.remember_written(target, data)

    def _register(self, name: str, kind: ResourceKind) -> None:
        if self.manifest_updater is None:
            return
        self.manifest_updater.add(name, kind)
