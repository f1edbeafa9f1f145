"""Live two-way sync between a GameMaker project and its mirror.

Architecture
------------
A watchdog observer feeds filesystem notifications into a bounded queue;
one dispatch thread hands them to the ``SyncEngine`` in order.  Each
change is classified by the ``ResourceStore``, filtered by the
``ReverbSuppressor`` (the engine's own writes come back as events), then
translated to the other side.

Modules:

- ``engine``           -- ``SyncEngine``: one change in, one translation out.
- ``state``            -- ``SyncState`` and ``ReverbSuppressor``.
- ``store``            -- ``ResourceStore``: path classification.
- ``manifest_updater`` -- ``ManifestUpdater``: registers new resources.
- ``watcher``          -- ``SyncService``: observer + dispatch thread.
- ``reporter``         -- result formatting and ``LoggingSink``.
- ``models``           -- shared enums and pydantic models.

Usage example
-------------
::

    from gmx_mirror.sync import (
        LoggingSink, ReverbSuppressor, ResourceStore, SyncEngine,
        SyncService, SyncState,
    )

    store = ResourceStore(objects_dir, scripts_dir, mirror_dir)
    engine = SyncEngine(
        store, SyncState(), ReverbSuppressor(), updater, LoggingSink()
    )
    engine.initial_pass()
    service = SyncService(engine, store.watch_roots())
    service.start()
    ...
    service.stop()
"""

from .engine import SyncEngine
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
from .reporter import (
    LoggingSink,
    LogSink,
    format_result,
    format_session_summary,
)
from .state import ReverbSuppressor, SideState, SyncState
from .store import ResourceStore
from .watcher import QueueingHandler, SyncService

__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "Direction",
    "LogSink",
    "LoggingSink",
    "ManifestUpdater",
    "PathKind",
    "QueueingHandler",
    "ResolvedPath",
    "ResourceStore",
    "ReverbSuppressor",
    "Side",
    "SideState",
    "SyncEngine",
    "SyncResult",
    "SyncService",
    "SyncState",
    "Verdict",
    "format_result",
    "format_session_summary",
]
