"""Service layer for guildsync.

Services depend on [guildsync.core][guildsync.core],
[guildsync.utils][guildsync.utils] and [guildsync.models][guildsync.models].
Each service extends [BaseService][guildsync.core.base_service.BaseService]
and implements ``async def run()``.

Attributes:
    Syncer: Paced, resumable walk over guild members that asks the backend
        to re-evaluate each member's token rules, one unit of work per tick.

See Also:
    [common][guildsync.services.common]: Table configuration and the SQL
        queries backing the progress store and member source.

Examples:
    ```python
    from guildsync.core import Store
    from guildsync.services import Syncer

    store = Store.from_yaml("config/store.yaml")
    async with store:
        syncer = Syncer.from_yaml("config/services/syncer.yaml", store=store)
        async with syncer:
            await syncer.run()
    ```
"""

from .syncer import (
    RemoteUpdater,
    SyncConfig,
    Syncer,
    SyncerConfig,
    SyncPhase,
    UpdaterConfig,
    UpdateResult,
)


__all__ = [
    "RemoteUpdater",
    "SyncConfig",
    "SyncPhase",
    "Syncer",
    "SyncerConfig",
    "UpdateResult",
    "UpdaterConfig",
]
