r"""guildsync -- paced Discord guild member token-rule sync.

Walks a configured list of Discord guilds and, one member per tick, asks a
backend service to re-evaluate that member's token-gated roles. Progress is
recorded in PostgreSQL so operators can see which guilds finished.

Imports flow strictly downward:

```text
   services        Syncer engine, updater, SQL queries
   /      \
 core    utils     Pool, Store, BaseService, logging, metrics / HTTP helpers
   \      /
    models         Frozen dataclasses (zero I/O)
```

Note:
    Top-level imports (``from guildsync import Syncer``) use lazy loading
    and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("guildsync")

__all__ = [
    "BaseService",
    "Logger",
    "Member",
    "Pool",
    "PoolConfig",
    "RemoteUpdater",
    "Store",
    "StoreConfig",
    "SyncLogEntry",
    "SyncRecord",
    "Syncer",
    "SyncerConfig",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "BaseService": ("guildsync.core", "BaseService"),
    "Logger": ("guildsync.core", "Logger"),
    "Pool": ("guildsync.core", "Pool"),
    "PoolConfig": ("guildsync.core", "PoolConfig"),
    "Store": ("guildsync.core", "Store"),
    "StoreConfig": ("guildsync.core", "StoreConfig"),
    "Member": ("guildsync.models", "Member"),
    "SyncLogEntry": ("guildsync.models", "SyncLogEntry"),
    "SyncRecord": ("guildsync.models", "SyncRecord"),
    "RemoteUpdater": ("guildsync.services", "RemoteUpdater"),
    "Syncer": ("guildsync.services", "Syncer"),
    "SyncerConfig": ("guildsync.services", "SyncerConfig"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module 'guildsync' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
