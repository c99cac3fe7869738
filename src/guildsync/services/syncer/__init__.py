"""Syncer service package.

Re-exports all public symbols::

    from guildsync.services.syncer import Syncer, SyncerConfig, RemoteUpdater
"""

from .configs import SyncConfig, SyncerConfig, UpdaterConfig
from .service import Syncer, SyncPhase, TraversalContext
from .updater import RemoteUpdater, UpdateResult
from .utils import report_update


__all__ = [
    "RemoteUpdater",
    "SyncConfig",
    "SyncPhase",
    "Syncer",
    "SyncerConfig",
    "TraversalContext",
    "UpdateResult",
    "UpdaterConfig",
    "report_update",
]
