"""Shared fixtures and helpers for services.syncer test package."""

from collections.abc import Callable, Iterator
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from guildsync.models import Member
from guildsync.models.constants import UpdateOutcome
from guildsync.services.syncer import (
    SyncConfig,
    Syncer,
    SyncerConfig,
    UpdaterConfig,
    UpdateResult,
)


_STATUS = {
    UpdateOutcome.SUCCESS: 200,
    UpdateOutcome.REJECTED: 400,
    UpdateOutcome.UNEXPECTED: 500,
}

_SERVICE = "guildsync.services.syncer.service"


class FakeUpdater:
    """In-memory RemoteUpdater that records calls into a shared event list.

    ``outcomes`` maps a discord user ID to the UpdateOutcome to return, or
    to an exception to raise. Unlisted users succeed.
    """

    def __init__(self, events: list[tuple[Any, ...]]) -> None:
        self.config = UpdaterConfig()
        self.events = events
        self.calls: list[tuple[str, str]] = []
        self.outcomes: dict[str, UpdateOutcome | BaseException] = {}
        self.on_update: Callable[[], None] | None = None
        self.opened = 0
        self.closed = 0

    async def __aenter__(self) -> "FakeUpdater":
        self.opened += 1
        return self

    async def __aexit__(self, *exc: object) -> None:
        self.closed += 1

    async def update(self, guild_id: str, discord_user_id: str) -> UpdateResult:
        self.calls.append((guild_id, discord_user_id))
        self.events.append(("process", guild_id, discord_user_id))
        if self.on_update is not None:
            self.on_update()
        outcome = self.outcomes.get(discord_user_id, UpdateOutcome.SUCCESS)
        if isinstance(outcome, BaseException):
            raise outcome
        return UpdateResult(
            outcome=outcome,
            guild_id=guild_id,
            discord_user_id=discord_user_id,
            status=_STATUS.get(outcome),
            reason="test",
            duration=0.01,
        )


@pytest.fixture
def events() -> list[tuple[Any, ...]]:
    """Ordered record of every store and updater interaction."""
    return []


@pytest.fixture
def guild_members() -> dict[str, list[str]]:
    """Guild ID -> discord account IDs returned by the member query."""
    return {}


@pytest.fixture
def progress(
    events: list[tuple[Any, ...]], guild_members: dict[str, list[str]]
) -> Iterator[SimpleNamespace]:
    """Patch the syncer's query functions with recording fakes."""

    async def fetch(_store: Any, guild_id: str, *, table: str) -> list[Member]:
        events.append(("load", guild_id))
        return [Member(guild_id, uid, f"cosmos1{uid}") for uid in guild_members.get(guild_id, [])]

    async def begin(_store: Any, guild_id: str, *, table: str) -> None:
        events.append(("begin", guild_id))

    async def finish(_store: Any, guild_id: str, *, table: str) -> None:
        events.append(("finish", guild_id))

    async def log(_store: Any, entry: Any, *, table: str) -> None:
        events.append(("log", entry.guild_id, entry.members_updated))

    with (
        patch(f"{_SERVICE}.fetch_guild_members", new=AsyncMock(side_effect=fetch)) as m_fetch,
        patch(f"{_SERVICE}.begin_guild_sync", new=AsyncMock(side_effect=begin)) as m_begin,
        patch(f"{_SERVICE}.finish_guild_sync", new=AsyncMock(side_effect=finish)) as m_finish,
        patch(f"{_SERVICE}.insert_sync_log", new=AsyncMock(side_effect=log)) as m_log,
    ):
        yield SimpleNamespace(fetch=m_fetch, begin=m_begin, finish=m_finish, log=m_log)


@pytest.fixture
def updater(events: list[tuple[Any, ...]]) -> FakeUpdater:
    return FakeUpdater(events)


@pytest.fixture
def make_syncer(updater: FakeUpdater, progress: SimpleNamespace) -> Callable[..., Syncer]:
    """Build a Syncer over a mock store with a near-zero tick."""

    def _make(guilds: list[str], **overrides: Any) -> Syncer:
        config = SyncerConfig(guilds=guilds, sync=SyncConfig(tick=0.001), **overrides)
        return Syncer(store=MagicMock(), config=config, updater=updater)  # type: ignore[arg-type]

    return _make
