"""Syncer service for guildsync.

Walks the configured guilds one unit of work per tick and asks the backend
to re-evaluate each linked member's token rules. A unit of work is either
loading a guild's members or updating one member; finishing a guild
(``finish_guild_sync`` and the sync log row) is bookkeeping done in the
same tick as the unit that emptied its member pool.

Traversal state lives in a [TraversalContext][guildsync.services.syncer.service.TraversalContext]
owned by the service. [step()][guildsync.services.syncer.Syncer.step]
performs exactly one unit of work and [run()][guildsync.services.syncer.Syncer.run]
only waits for the next tick after ``step()`` has returned, so at most one
outbound update is ever in flight.

Per-member failures are reported and absorbed; storage errors propagate and
end the run.

Examples:
    ```python
    from guildsync.core import Store
    from guildsync.services import Syncer

    store = Store.from_yaml("config/store.yaml")
    syncer = Syncer.from_yaml("config/services/syncer.yaml", store=store)

    async with store, syncer:
        await syncer.run()
    ```
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

from guildsync.core.base_service import BaseService
from guildsync.models import Member, SyncLogEntry
from guildsync.models.constants import ServiceName
from guildsync.services.common.queries import (
    begin_guild_sync,
    fetch_guild_members,
    finish_guild_sync,
    insert_sync_log,
)

from .configs import SyncerConfig
from .updater import RemoteUpdater, UpdateResult
from .utils import report_update


if TYPE_CHECKING:
    from collections.abc import Iterable

    from guildsync.core.store import Store


class SyncPhase(StrEnum):
    """Observable state of the traversal.

    Attributes:
        AWAITING_TICK: Idle until the next tick.
        GUILD_START: Loading the active guild's members.
        MEMBER_STEP: Updating one member of the active guild.
        GUILD_DRAIN: Recording the active guild as finished.
        TERMINAL: No guilds remain; the run is complete.
    """

    AWAITING_TICK = "awaiting_tick"
    GUILD_START = "guild_start"
    MEMBER_STEP = "member_step"
    GUILD_DRAIN = "guild_drain"
    TERMINAL = "terminal"


@dataclass(slots=True)
class TraversalContext:
    """Work queue of one sync run.

    Attributes:
        pending_guilds: Guilds not yet started, in processing order.
        guild_id: The active guild, or ``None`` once all are done.
        members: Remaining member pool of the active guild; ``None`` until
            the guild's first tick loads it.
        expected_total: Pool size at load time, written to the sync log.
        phase: Current [SyncPhase][guildsync.services.syncer.service.SyncPhase].
        guilds_completed: Guilds fully processed in this run.
    """

    pending_guilds: deque[str] = field(default_factory=deque)
    guild_id: str | None = None
    members: list[Member] | None = None
    expected_total: int = 0
    phase: SyncPhase = SyncPhase.AWAITING_TICK
    guilds_completed: int = 0

    @classmethod
    def from_guilds(cls, guilds: Iterable[str]) -> TraversalContext:
        """Build a context whose first tick starts the first guild."""
        pending = deque(guilds)
        if not pending:
            return cls(phase=SyncPhase.TERMINAL)
        return cls(pending_guilds=pending, guild_id=pending.popleft())

    def advance(self) -> bool:
        """Activate the next pending guild. Returns False if none remain."""
        self.members = None
        self.expected_total = 0
        if not self.pending_guilds:
            self.guild_id = None
            return False
        self.guild_id = self.pending_guilds.popleft()
        return True


class Syncer(BaseService[SyncerConfig]):
    """Paced guild member sync.

    See Also:
        [SyncerConfig][guildsync.services.syncer.SyncerConfig]:
            Configuration model for this service.
        [RemoteUpdater][guildsync.services.syncer.updater.RemoteUpdater]:
            Client for the token-rule-info endpoint.
    """

    SERVICE_NAME: ClassVar[ServiceName] = ServiceName.SYNCER
    CONFIG_CLASS: ClassVar[type[SyncerConfig]] = SyncerConfig

    def __init__(
        self,
        store: Store,
        config: SyncerConfig | None = None,
        *,
        updater: RemoteUpdater | None = None,
        json_logs: bool = False,
    ) -> None:
        super().__init__(store=store, config=config, json_logs=json_logs)
        self._updater = updater or RemoteUpdater(self._config.updater)
        self._ctx = TraversalContext.from_guilds(self._config.guilds)

    @property
    def context(self) -> TraversalContext:
        """The traversal state of the current (or last) run."""
        return self._ctx

    @property
    def phase(self) -> SyncPhase:
        return self._ctx.phase

    @property
    def completed(self) -> bool:
        """Whether every configured guild has been processed."""
        return self._ctx.phase is SyncPhase.TERMINAL

    async def run(self) -> None:
        """Process every configured guild, one unit of work per tick.

        Returns when all guilds are finished, or early if shutdown is
        requested while waiting for a tick (the active guild then keeps
        ``finished_update = NULL``).

        Raises:
            DatabaseError: On any storage failure.
        """
        self._ctx = TraversalContext.from_guilds(self._config.guilds)
        if self.completed:
            self._logger.warning("no_guilds_configured", guilds_env=self._config.guilds_env)
            return

        tick = self._config.sync.tick
        self._logger.info(
            "sync_started",
            guilds=len(self._ctx.pending_guilds) + 1,
            tick=tick,
            endpoint=self._updater.config.url,
        )

        async with self._updater:
            while not self.completed:
                if await self.wait(tick):
                    self._logger.warning(
                        "sync_interrupted",
                        guild_id=self._ctx.guild_id,
                        members_remaining=len(self._ctx.members or ()),
                        guilds_remaining=len(self._ctx.pending_guilds),
                    )
                    return
                await self.step()

    async def step(self) -> SyncPhase:
        """Perform one unit of work and return the resulting phase.

        Loads the active guild if its pool is not loaded yet, otherwise
        updates one member. If that leaves the pool empty the guild is
        drained in the same step.
        """
        ctx = self._ctx
        if ctx.phase is SyncPhase.TERMINAL:
            return ctx.phase

        if ctx.members is None:
            ctx.phase = SyncPhase.GUILD_START
            await self._start_guild()
        else:
            ctx.phase = SyncPhase.MEMBER_STEP
            await self._update_next_member()

        if ctx.members:
            ctx.phase = SyncPhase.AWAITING_TICK
        else:
            ctx.phase = SyncPhase.GUILD_DRAIN
            await self._drain_guild()

        return ctx.phase

    async def _start_guild(self) -> None:
        ctx = self._ctx
        assert ctx.guild_id is not None  # noqa: S101
        tables = self._config.tables

        members = await fetch_guild_members(self._store, ctx.guild_id, table=tables.members)
        ctx.members = members
        ctx.expected_total = len(members)
        await begin_guild_sync(self._store, ctx.guild_id, table=tables.sync)

        self.set_gauge("members_pending", len(members))
        self.set_gauge("guilds_pending", len(ctx.pending_guilds))
        self._logger.info(
            "guild_started",
            guild_id=ctx.guild_id,
            members=len(members),
            guilds_remaining=len(ctx.pending_guilds),
        )

    async def _update_next_member(self) -> None:
        ctx = self._ctx
        assert ctx.guild_id is not None and ctx.members  # noqa: S101
        member = ctx.members.pop()

        self._logger.info(
            "member_update_started",
            guild_id=ctx.guild_id,
            discord_user_id=member.discord_account_id,
        )
        try:
            result = await self._updater.update(ctx.guild_id, member.discord_account_id)
        except Exception as e:  # Intentionally broad: per-member error boundary
            result = UpdateResult.from_exception(ctx.guild_id, member.discord_account_id, e)

        report_update(self._logger, result)
        self.inc_counter("members_processed")
        self.inc_counter(f"updates_{result.outcome}")
        self.observe_update(result.outcome, result.duration)
        self.set_gauge("members_pending", len(ctx.members))

    async def _drain_guild(self) -> None:
        ctx = self._ctx
        assert ctx.guild_id is not None  # noqa: S101
        guild_id = ctx.guild_id
        members = ctx.expected_total
        tables = self._config.tables

        await finish_guild_sync(self._store, guild_id, table=tables.sync)
        await insert_sync_log(
            self._store,
            SyncLogEntry(guild_id=guild_id, members_updated=members),
            table=tables.sync_logs,
        )
        ctx.guilds_completed += 1
        self.inc_counter("guilds_completed")

        has_next = ctx.advance()
        self.set_gauge("guilds_pending", len(ctx.pending_guilds) + int(has_next))
        self._logger.info(
            "guild_finished",
            guild_id=guild_id,
            members=members,
            guilds_remaining=len(ctx.pending_guilds) + int(has_next),
        )

        if has_next:
            ctx.phase = SyncPhase.GUILD_START
        else:
            ctx.phase = SyncPhase.TERMINAL
            self._logger.info("sync_completed", guilds=ctx.guilds_completed)
