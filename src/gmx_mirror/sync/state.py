"""In-memory sync state and reverb suppression.

Every file the engine writes is itself observed by the watcher, so each
translation would bounce straight back the other way.  ``SyncState``
remembers when each side last changed, and ``ReverbSuppressor`` uses that
to drop:

* **reverb** -- a change on side S shortly after a translation out of the
  opposite side (the engine's own write coming back);
* **duplicates** -- the same path reported twice in a burst, which most
  platforms do for a single save.

``SyncState`` also keeps the SHA-256 of every file the engine writes so
an echo that arrives after the reverb window can still be recognised by
content.

The state is passed explicitly; nothing here is module-global.
"""

from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass
from pathlib import Path

from .models import Side, Verdict


@dataclass
class SideState:
    """Last successful change seen on one side.

    Attributes:
        last_change_time: Monotonic time of the change, ``None`` if the
            side has not changed yet.
        last_changed_path: Path of that change.
    """

    last_change_time: float | None = None
    last_changed_path: Path | None = None


class SyncState:
    """Per-session sync bookkeeping, shared by engine and suppressor."""

    def __init__(self) -> None:
        self._sides = {Side.NATIVE: SideState(), Side.MIRROR: SideState()}
        self._digests: dict[Path, str] = {}
        self._lock = threading.Lock()

    @property
    def native(self) -> SideState:
        return self._sides[Side.NATIVE]

    @property
    def mirror(self) -> SideState:
        return self._sides[Side.MIRROR]

    def side(self, side: Side) -> SideState:
        return self._sides[side]

    def record(self, side: Side, path: Path, now: float) -> None:
        """Remember that *path* on *side* was translated at *now*."""
        with self._lock:
            track = self._sides[side]
            track.last_change_time = now
            track.last_changed_path = path

    # ------------------------------------------------------------------
    # Content digests
    # ------------------------------------------------------------------

    @staticmethod
    def content_hash(data: bytes) -> str:
        """SHA-256 hex digest of *data*."""
        return hashlib.sha256(data).hexdigest()

    def remember_written(self, path: Path, data: bytes) -> None:
        """Store the digest of bytes the engine just wrote to *path*."""
        with self._lock:
            self._digests[path] = self.content_hash(data)

    def forget(self, path: Path) -> None:
        """Drop the stored digest of *path*.  No-op if absent."""
        with self._lock:
            self._digests.pop(path, None)

    def is_echo(self, path: Path, data: bytes) -> bool:
        """Return ``True`` if *data* is exactly what the engine last wrote."""
        with self._lock:
            digest = self._digests.get(path)
        return digest is not None and digest == self.content_hash(data)


class ReverbSuppressor:
    """Decide whether a change should be translated.

    Args:
        reverb_spacing: Seconds after a translation out of one side during
            which changes on the other side are treated as reverb.
        dedup_spacing: Seconds within which a repeated change of the same
            path is treated as a duplicate.
    """

    def __init__(self, reverb_spacing: float = 1.0, dedup_spacing: float = 0.1) -> None:
        self.reverb_spacing = reverb_spacing
        self.dedup_spacing = dedup_spacing

    def check(
        self, state: SyncState, side: Side, path: Path, observed_at: float
    ) -> Verdict:
        """Classify a change of *path* on *side* observed at *observed_at*.

        Returns:
            ``Verdict.REVERB`` if the opposite side changed within
            ``reverb_spacing``; ``Verdict.DUPLICATE`` if this same path
            changed within ``dedup_spacing``; ``Verdict.PASS`` otherwise.
        """
        opposite = state.side(side.opposite)
        if (
            opposite.last_change_time is not None
            and observed_at - opposite.last_change_time <= self.reverb_spacing
        ):
            return Verdict.REVERB

        own = state.side(side)
        if (
            own.last_change_time is not None
            and path == own.last_changed_path
            and observed_at - own.last_change_time <= self.dedup_spacing
        ):
            return Verdict.DUPLICATE

        return Verdict.PASS
