"""Persisted sync progress types.

Pure data containers for the two tables the sync job writes: the per-guild
sync state (one row per guild, upserted) and the append-only sync log.

See Also:
    [guildsync.services.common.queries][]: The query functions that read
        and write these rows.
"""

from __future__ import annotations

import datetime  # noqa: TC003
from dataclasses import dataclass

from ._validation import validate_count, validate_optional_datetime, validate_str_not_empty


@dataclass(frozen=True, slots=True)
class SyncRecord:
    """Lifecycle state of one guild, keyed by ``guild_id``.

    A record exists iff the guild has been started at least once.
    ``finished_update`` is ``None`` while a pass is in progress (or was
    interrupted) and set once the pass completes. ``times_updated`` counts
    completed passes across all runs.

    Attributes:
        guild_id: Discord guild ID (primary key).
        began_update: When the most recent pass started.
        finished_update: When the most recent pass completed, or ``None``.
        times_updated: Number of completed passes.
    """

    guild_id: str
    began_update: datetime.datetime | None
    finished_update: datetime.datetime | None
    times_updated: int

    def __post_init__(self) -> None:
        validate_str_not_empty(self.guild_id, "guild_id")
        validate_optional_datetime(self.began_update, "began_update")
        validate_optional_datetime(self.finished_update, "finished_update")
        validate_count(self.times_updated, "times_updated")

    @property
    def is_finished(self) -> bool:
        """Whether the most recent pass completed."""
        return self.finished_update is not None


@dataclass(frozen=True, slots=True)
class SyncLogEntry:
    """Immutable record of one completed guild pass.

    Attributes:
        guild_id: Discord guild ID.
        members_updated: Number of members the pass processed, counting
            every outcome (success or failure).
    """

    guild_id: str
    members_updated: int

    def __post_init__(self) -> None:
        validate_str_not_empty(self.guild_id, "guild_id")
        validate_count(self.members_updated, "members_updated")
