"""Filesystem watching: watchdog producer, single dispatch consumer.

The watchdog ``Observer`` thread only converts notifications into
``ChangeEvent`` objects and puts them on a bounded queue.  One dispatch
thread drains the queue and calls ``SyncEngine.handle`` strictly in
order, so translations never run concurrently and the manifest is only
ever written from that thread.
"""

from __future__ import annotations

import logging
import os
import queue
import threading
import time
from collections.abc import Callable, Iterable
from pathlib import Path

from watchdog.events import (
    FileSystemEvent,
    FileSystemEventHandler,
    FileSystemMovedEvent,
)
from watchdog.observers import Observer

from .engine import SyncEngine
from .models import ChangeEvent, ChangeKind

logger = logging.getLogger(__name__)

_STOP = object()

_EVENT_KINDS = {
    "modified": ChangeKind.WRITE,
    "created": ChangeKind.CREATE,
    "deleted": ChangeKind.REMOVE,
    # Editors that save atomically rename a temp file over the target.
    "moved": ChangeKind.WRITE,
}


class QueueingHandler(FileSystemEventHandler):
    """Turn watchdog events into ``ChangeEvent`` objects on a queue.

    Args:
        events: Queue shared with the dispatch thread.
        clock: Monotonic clock stamping each event.
    """

    def __init__(
        self,
        events: queue.Queue,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__()
        self._events = events
        self._clock = clock

    def on_any_event(self, event: FileSystemEvent) -> None:
        kind = _EVENT_KINDS.get(event.event_type, ChangeKind.OTHER)
        if isinstance(event, FileSystemMovedEvent):
            raw_path = event.dest_path
        else:
            raw_path = event.src_path
        change = ChangeEvent(
            path=Path(os.fsdecode(raw_path)),
            kind=kind,
            is_directory=event.is_directory,
            observed_at=self._clock(),
        )
        self._events.put(change)


class SyncService:
    """Run the watcher and the dispatch loop for one session.

    Args:
        engine: Engine handling each change.
        roots: Directories to watch (non-recursively).
        queue_size: Capacity of the event queue.
        observer_factory: Builds the watchdog observer; replaced in tests.
        clock: Monotonic clock stamping events.
    """

    def __init__(
        self,
        engine: SyncEngine,
        roots: Iterable[Path],
        queue_size: int = 1024,
        observer_factory: Callable[[], Observer] = Observer,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.engine = engine
        self.roots = list(roots)
        self.events: queue.Queue = queue.Queue(maxsize=queue_size)
        self.handler = QueueingHandler(self.events, clock=clock)
        self._observer_factory = observer_factory
        self._observer = None
        self._dispatcher: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._dispatcher is not None and self._dispatcher.is_alive()

    def start(self) -> None:
        """Start the dispatch thread, then the observer."""
        if self._dispatcher is not None:
            raise RuntimeError("sync service already started")

        self._dispatcher = threading.Thread(
            target=self._drain, name="gmx-mirror-dispatch", daemon=True
        )
        self._dispatcher.start()

        self._observer = self._observer_factory()
        for root in self.roots:
            self._observer.schedule(self.handler, str(root), recursive=False)
            logger.debug("Watching %s", root)
        self._observer.start()
        logger.info("Watching %d directories", len(self.roots))

    def submit(self, event: ChangeEvent) -> None:
        """Queue *event* as if the observer had reported it."""
        self.events.put(event)

    def stop(self, timeout: float | None = 10.0) -> None:
        """Stop watching and wait for the in-flight event to finish."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=timeout)
            self._observer = None
        if self._dispatcher is not None:
            self.events.put(_STOP)
            self._dispatcher.join(timeout=timeout)
            if self._dispatcher.is_alive():
                logger.warning("Dispatch thread did not stop within %ss", timeout)
            self._dispatcher = None

    def _drain(self) -> None:
        while True:
            item = self.events.get()
            try:
                if item is _STOP:
                    return
                self.engine.handle(item)
            except Exception:
                logger.exception("Unexpected error while handling %s", item)
            finally:
                self.events.task_done()
