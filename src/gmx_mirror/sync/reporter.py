"""Sync result reporting.

- ``format_result`` -- one human-readable line per translation.
- ``LogSink`` -- the protocol the engine reports through.
- ``LoggingSink`` -- logs each result and keeps a running tally.
- ``format_session_summary`` -- end-of-session totals.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from typing import Protocol

from .models import Direction, PathKind, SyncResult

logger = logging.getLogger(__name__)

_VERBS = {
    PathKind.NATIVE_OBJECT: "translated",
    PathKind.MIRROR_OBJECT: "translated",
    PathKind.NATIVE_SCRIPT: "copied",
    PathKind.MIRROR_SCRIPT: "copied",
}


class LogSink(Protocol):
    """Anything the engine can hand results to."""

    def report(self, result: SyncResult) -> None: ...


# ------------------------------------------------------------------
# Formatting
# ------------------------------------------------------------------


def format_result(result: SyncResult) -> str:
    """Format *result* as ``[HH:MM:SS] native -> mirror: translated Enemy``.

    Failed results read ``... : FAILED Enemy: <error>``.
    """
    stamp = time.strftime("%H:%M:%S", time.localtime(result.timestamp))
    prefix = f"[{stamp}] {result.direction.value}:"
    if result.success:
        verb = _VERBS.get(result.kind, "synced")
        return f"{prefix} {verb} {result.name}"
    return f"{prefix} FAILED {result.name}: {result.error or 'unknown error'}"


def format_session_summary(tally: dict[str, int]) -> str:
    """Format the tally from ``LoggingSink.snapshot()`` as one line."""
    to_mirror = tally.get(Direction.NATIVE_TO_MIRROR.value, 0)
    to_native = tally.get(Direction.MIRROR_TO_NATIVE.value, 0)
    failed = tally.get("failed", 0)
    return (
        f"{to_mirror} native -> mirror, {to_native} mirror -> native, "
        f"{failed} failed"
    )


# ------------------------------------------------------------------
# Logging sink
# ------------------------------------------------------------------


class LoggingSink:
    """Log every result and count them by direction.

    Successful results are logged at INFO, failures at ERROR.  The tally
    is read from other threads (the command listener), so it sits behind
    a lock.
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger
        self._lock = threading.Lock()
        self._tally: Counter[str] = Counter()
        self._last: SyncResult | None = None

    def report(self, result: SyncResult) -> None:
        line = format_result(result)
        with self._lock:
            if result.success:
                self._tally[result.direction.value] += 1
            else:
                self._tally["failed"] += 1
            self._last = result
        if result.success:
            self._log.info(line)
        else:
            self._log.error(line)

    def snapshot(self) -> dict[str, int]:
        """Copy of the current tally."""
        with self._lock:
            return dict(self._tally)

    @property
    def last(self) -> SyncResult | None:
        with self._lock:
            return self._last
