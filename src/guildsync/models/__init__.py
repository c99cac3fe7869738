"""Pure data models for guildsync.

Frozen dataclasses and enums with zero I/O, shared by the core and
services layers.

Attributes:
    Member: Linked guild member eligible for a sync.
    SyncRecord: Per-guild sync lifecycle row.
    SyncLogEntry: Append-only record of a completed guild pass.
    ServiceName: Service identifiers for logging and metrics.
    UpdateOutcome: Classification of a remote member update.
"""

from .constants import ServiceName, UpdateOutcome
from .member import Member
from .sync_state import SyncLogEntry, SyncRecord


__all__ = [
    "Member",
    "ServiceName",
    "SyncLogEntry",
    "SyncRecord",
    "UpdateOutcome",
]
