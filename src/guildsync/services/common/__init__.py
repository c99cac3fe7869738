"""Shared building blocks for guildsync services: table config and SQL queries."""

from .configs import TablesConfig, validate_table_name
from .queries import (
    begin_guild_sync,
    fetch_guild_members,
    fetch_sync_record,
    finish_guild_sync,
    insert_sync_log,
)


__all__ = [
    "TablesConfig",
    "begin_guild_sync",
    "fetch_guild_members",
    "fetch_sync_record",
    "finish_guild_sync",
    "insert_sync_log",
    "validate_table_name",
]
