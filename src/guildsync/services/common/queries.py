"""Domain-specific database queries for the sync job.

Every SQL statement the job issues lives here. Each function takes a
[Store][guildsync.core.store.Store] and the name of the table it touches
(validated with
[validate_table_name][guildsync.services.common.configs.validate_table_name]).

The functions fall into two groups:

- **Member source**: ``fetch_guild_members``
- **Progress store**: ``begin_guild_sync``, ``finish_guild_sync``,
  ``insert_sync_log``, ``fetch_sync_record``

Errors are not handled here. Any
[DatabaseError][guildsync.core.exceptions.DatabaseError] propagates to the
caller and ends the run, because later runs rely on ``times_updated`` and
the sync log being accurate.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from guildsync.core.exceptions import QueryError
from guildsync.models import Member, SyncLogEntry, SyncRecord

from .configs import validate_table_name


if TYPE_CHECKING:
    from guildsync.core.store import Store

logger = logging.getLogger(__name__)


# =============================================================================
# Member source
# =============================================================================


async def fetch_guild_members(store: Store, guild_id: str, *, table: str) -> list[Member]:
    """Fetch the distinct members of *guild_id* that have a linked address.

    One member is returned per distinct ``discord_account_id``, ordered by
    account ID so that repeated loads yield the same content. Rows that
    fail [Member][guildsync.models.Member] construction (e.g. an address
    containing null bytes) are skipped with a warning.

    Returns:
        List of [Member][guildsync.models.Member] instances, possibly empty.
    """
    table = validate_table_name(table)
    rows = await store.fetch(
        f"""
        SELECT DISTINCT ON (discord_account_id) discord_account_id, cosmos_address
        FROM {table}
        WHERE discord_guild_id = $1
          AND cosmos_address IS NOT NULL
        ORDER BY discord_account_id
        """,  # noqa: S608
        guild_id,
    )
    members: list[Member] = []
    for row in rows:
        try:
            members.append(
                Member(
                    guild_id=guild_id,
                    discord_account_id=str(row["discord_account_id"]),
                    cosmos_address=row["cosmos_address"],
                )
            )
        except (ValueError, TypeError) as e:
            logger.warning("Skipping invalid member %s: %s", row["discord_account_id"], e)
    return members


# =============================================================================
# Progress store
# =============================================================================


async def begin_guild_sync(store: Store, guild_id: str, *, table: str) -> None:
    """Mark a guild pass as started.

    Inserts the guild's sync row, or resets ``began_update`` and clears
    ``finished_update`` on the existing one, in a single atomic upsert.
    ``times_updated`` is left untouched.
    """
    table = validate_table_name(table)
    await store.execute(
        f"""
        INSERT INTO {table} (discord_guild_id, began_update, finished_update)
        VALUES ($1, now(), NULL)
        ON CONFLICT (discord_guild_id) DO UPDATE
        SET began_update = EXCLUDED.began_update,
            finished_update = NULL
        """,  # noqa: S608
        guild_id,
    )


async def finish_guild_sync(store: Store, guild_id: str, *, table: str) -> None:
    """Mark a guild pass as finished and count it.

    Sets ``finished_update`` and increments ``times_updated`` by one.

    Raises:
        QueryError: If the guild has no sync row, which means
            [begin_guild_sync][guildsync.services.common.queries.begin_guild_sync]
            was never called for it.
    """
    table = validate_table_name(table)
    status = await store.execute(
        f"""
        UPDATE {table}
        SET finished_update = now(),
            times_updated = COALESCE(times_updated, 0) + 1
        WHERE discord_guild_id = $1
        """,  # noqa: S608
        guild_id,
    )
    if status == "UPDATE 0":
        raise QueryError(f"no sync row for guild {guild_id} in {table}")


async def insert_sync_log(store: Store, entry: SyncLogEntry, *, table: str) -> None:
    """Append one completed-pass row to the sync log."""
    table = validate_table_name(table)
    await store.execute(
        f"""
        INSERT INTO {table} (discord_guild_id, members_updated)
        VALUES ($1, $2)
        """,  # noqa: S608
        entry.guild_id,
        entry.members_updated,
    )


async def fetch_sync_record(store: Store, guild_id: str, *, table: str) -> SyncRecord | None:
    """Fetch the sync state row of *guild_id*, or ``None`` if it was never started."""
    table = validate_table_name(table)
    row = await store.fetchrow(
        f"""
        SELECT discord_guild_id, began_update, finished_update, times_updated
        FROM {table}
        WHERE discord_guild_id = $1
        """,  # noqa: S608
        guild_id,
    )
    if row is None:
        return None
    return SyncRecord(
        guild_id=str(row["discord_guild_id"]),
        began_update=row["began_update"],
        finished_update=row["finished_update"],
        times_updated=row["times_updated"] or 0,
    )
