"""Shared configuration models for guildsync services.

See Also:
    [SyncerConfig][guildsync.services.syncer.SyncerConfig]: Embeds
        [TablesConfig][guildsync.services.common.configs.TablesConfig].
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator


#: Plain or schema-qualified SQL identifier, e.g. ``members`` or ``public.members``.
TABLE_NAME_PATTERN = re.compile(r"^[a-z_][a-z0-9_]*(\.[a-z_][a-z0-9_]*)?$", re.IGNORECASE)


def validate_table_name(name: str) -> str:
    """Return *name* unchanged if it is a safe SQL table identifier.

    Table names are interpolated into SQL text (they cannot be bound as
    parameters), so only plain identifiers are accepted.

    Raises:
        ValueError: If *name* is not a plain or schema-qualified identifier.
    """
    if not TABLE_NAME_PATTERN.match(name):
        raise ValueError(
            f"invalid table name {name!r} (must match [a-z_][a-z0-9_]*, optionally schema-qualified)"
        )
    return name


class TablesConfig(BaseModel):
    """Names of the three tables the sync job reads and writes.

    See Also:
        [queries][guildsync.services.common.queries]: The SQL that uses them.
    """

    members: str = Field(
        default="members", description="Guild members with linked addresses (read-only)"
    )
    sync: str = Field(default="guild_sync", description="Per-guild sync state (upserted)")
    sync_logs: str = Field(
        default="guild_sync_logs", description="Completed guild passes (append-only)"
    )

    @field_validator("members", "sync", "sync_logs")
    @classmethod
    def _validate_identifier(cls, v: str) -> str:
        return validate_table_name(v)
