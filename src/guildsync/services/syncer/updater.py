"""Remote updater for the token-rule-info endpoint.

[RemoteUpdater][guildsync.services.syncer.updater.RemoteUpdater] performs
one POST per member and turns whatever happens into an
[UpdateResult][guildsync.services.syncer.updater.UpdateResult]. Transport
failures are returned, not raised, so the caller never has to guess which
exceptions an HTTP client may throw.

Examples:
    ```python
    async with RemoteUpdater(UpdaterConfig(endpoint="http://backend", port=8080)) as updater:
        result = await updater.update("808885156490133514", "123821047347744788")
        result.outcome  # UpdateOutcome.SUCCESS
    ```
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Self

import aiohttp

from guildsync.models.constants import UpdateOutcome
from guildsync.utils.http import read_bounded_json

from .configs import UpdaterConfig


@dataclass(frozen=True, slots=True)
class UpdateResult:
    """Outcome of one remote member update.

    Attributes:
        outcome: Classification of the call.
        guild_id: Guild the member was updated against.
        discord_user_id: Member that was updated.
        status: HTTP status, or ``None`` for transport errors.
        reason: HTTP reason phrase, or ``None`` for transport errors.
        body: Parsed JSON body (``SUCCESS`` only).
        error: Error text (``TRANSPORT_ERROR`` only).
        error_type: Exception class name (``TRANSPORT_ERROR`` only).
        duration: Wall-clock seconds spent on the call.
    """

    outcome: UpdateOutcome
    guild_id: str
    discord_user_id: str
    status: int | None = None
    reason: str | None = None
    body: Any = None
    error: str | None = None
    error_type: str | None = None
    duration: float = 0.0

    @classmethod
    def from_exception(
        cls,
        guild_id: str,
        discord_user_id: str,
        exc: BaseException,
        duration: float = 0.0,
    ) -> UpdateResult:
        """Build a ``TRANSPORT_ERROR`` result from a failed call."""
        return cls(
            outcome=UpdateOutcome.TRANSPORT_ERROR,
            guild_id=guild_id,
            discord_user_id=discord_user_id,
            error=str(exc) or repr(exc),
            error_type=type(exc).__name__,
            duration=duration,
        )

    @property
    def ok(self) -> bool:
        return self.outcome is UpdateOutcome.SUCCESS


class RemoteUpdater:
    """HTTP client for the token-rule-info endpoint.

    Holds one ``aiohttp.ClientSession`` for the lifetime of a sync run.
    Use as an async context manager, or call
    [open()][guildsync.services.syncer.updater.RemoteUpdater.open] and
    [close()][guildsync.services.syncer.updater.RemoteUpdater.close].
    A session passed to the constructor is used as-is and never closed here.
    """

    def __init__(
        self,
        config: UpdaterConfig | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config or UpdaterConfig()
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(
            total=self._config.timeout,
            connect=min(self._config.connect_timeout, self._config.timeout),
            sock_read=self._config.timeout,
        )

    @property
    def config(self) -> UpdaterConfig:
        return self._config

    async def open(self) -> None:
        """Create the HTTP session. Idempotent."""
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True

    async def close(self) -> None:
        """Close the HTTP session if this updater created it. Idempotent."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> Self:
        await self.open()
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def update(self, guild_id: str, discord_user_id: str) -> UpdateResult:
        """POST ``{discordUserId, guildId}`` and classify the response.

        Returns:
            ``SUCCESS`` with the parsed body on 200, ``REJECTED`` on 400,
            ``UNEXPECTED`` on any other status, ``TRANSPORT_ERROR`` when
            no usable response was obtained within the deadline.

        Raises:
            RuntimeError: If the updater has not been opened.
        """
        if self._session is None:
            raise RuntimeError("RemoteUpdater not open. Call open() first.")

        payload = {"discordUserId": discord_user_id, "guildId": guild_id}
        start = time.monotonic()
        try:
            async with self._session.post(
                self._config.url, json=payload, timeout=self._timeout
            ) as resp:
                if resp.status == 200:
                    body = await read_bounded_json(resp, self._config.max_response_size)
                    outcome = UpdateOutcome.SUCCESS
                elif resp.status == 400:
                    body = None
                    outcome = UpdateOutcome.REJECTED
                else:
                    body = None
                    outcome = UpdateOutcome.UNEXPECTED
                return UpdateResult(
                    outcome=outcome,
                    guild_id=guild_id,
                    discord_user_id=discord_user_id,
                    status=resp.status,
                    reason=resp.reason,
                    body=body,
                    duration=time.monotonic() - start,
                )
        except (TimeoutError, OSError, aiohttp.ClientError, ValueError) as e:
            return UpdateResult.from_exception(
                guild_id, discord_user_id, e, duration=time.monotonic() - start
            )
