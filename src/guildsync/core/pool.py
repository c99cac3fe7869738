"""
asyncpg connection pool for the sync job's progress and member tables.

The pool is created disconnected. [connect()][guildsync.core.pool.Pool.connect]
retries with backoff until ``retry.max_attempts`` is reached, then raises
[ConnectionPoolError][guildsync.core.exceptions.ConnectionPoolError].

Statements run through [fetch()][guildsync.core.pool.Pool.fetch],
[fetchrow()][guildsync.core.pool.Pool.fetchrow] and
[execute()][guildsync.core.pool.Pool.execute]. A dropped connection is retried
on a fresh connection; anything the server itself rejects, and any statement
timeout, becomes a [QueryError][guildsync.core.exceptions.QueryError] on the
first occurrence.

The password is only ever read from the environment. TLS is required for
every host other than the local machine unless ``ssl`` is set.

Examples:
    ```python
    async with Pool.from_yaml("config/store.yaml") as pool:
        await pool.fetchrow("SELECT 1")
    ```
"""

from __future__ import annotations

import asyncio
import os
from contextlib import AbstractAsyncContextManager
from typing import Any, Literal, cast

import asyncpg
from pydantic import BaseModel, Field, SecretStr, model_validator

from .exceptions import ConnectionPoolError, QueryError
from .logger import Logger
from .yaml import load_yaml


LOCAL_HOSTS: frozenset[str] = frozenset({"localhost", "127.0.0.1"})

_Operation = Literal["fetch", "fetchrow", "execute"]

# Errors that mean the connection went away, not that the statement was bad.
_DROPPED_CONNECTION: tuple[type[Exception], ...] = (
    asyncpg.InterfaceError,
    asyncpg.ConnectionDoesNotExistError,
)


class DatabaseConfig(BaseModel):
    """Where the members and sync tables live.

    ``password`` is filled from the environment variable named by
    ``password_env`` when not given. ``ssl=None`` means "on unless the host is
    local".
    """

    host: str = Field(default="localhost", min_length=1)
    port: int = Field(default=5432, ge=1, le=65535)
    database: str = Field(default="guildsync", min_length=1)
    user: str = Field(default="postgres", min_length=1)
    password_env: str = Field(default="DB_PASS", min_length=1)  # pragma: allowlist secret
    password: SecretStr | None = None
    ssl: bool | None = None

    @model_validator(mode="after")
    def _fill_from_environment(self) -> DatabaseConfig:
        if self.password is None:
            secret = os.environ.get(self.password_env)
            if not secret:
                raise ValueError(f"{self.password_env} environment variable not set")
            self.password = SecretStr(secret)
        if self.ssl is None:
            self.ssl = self.host not in LOCAL_HOSTS
        return self

    def secret(self) -> str:
        """Return the plain-text password for the driver."""
        return self.password.get_secret_value() if self.password is not None else ""


class PoolLimitsConfig(BaseModel):
    """Pool sizing. One statement is in flight at a time, so a handful is plenty."""

    min_size: int = Field(default=1, ge=1, le=100)
    max_size: int = Field(default=5, ge=1, le=200)
    max_queries: int = Field(default=50_000, ge=100)
    max_inactive_connection_lifetime: float = Field(default=600.0, ge=0.0)

    @model_validator(mode="after")
    def _check_bounds(self) -> PoolLimitsConfig:
        if self.max_size < self.min_size:
            raise ValueError(f"max_size ({self.max_size}) must be >= min_size ({self.min_size})")
        return self


class PoolTimeoutsConfig(BaseModel):
    """Seconds to wait for a free connection."""

    acquisition: float = Field(default=60.0, ge=0.1)


class PoolRetryConfig(BaseModel):
    """Backoff for connecting and for statements hit by a dropped connection.

    Delay for attempt ``n`` (zero-based) is ``initial_delay * 2**n`` when
    ``exponential_backoff`` is set, else ``initial_delay * (n + 1)``; both are
    capped at ``max_delay``.
    """

    max_attempts: int = Field(default=3, ge=1, le=10)
    initial_delay: float = Field(default=0.2, ge=0.1)
    max_delay: float = Field(default=10.0, ge=0.1)
    exponential_backoff: bool = True

    @model_validator(mode="after")
    def _check_delays(self) -> PoolRetryConfig:
        if self.max_delay < self.initial_delay:
            raise ValueError(
                f"max_delay ({self.max_delay}) must be >= initial_delay ({self.initial_delay})"
            )
        return self


class ServerSettingsConfig(BaseModel):
    """Session settings sent on every new connection.

    ``statement_timeout`` is in milliseconds; ``0`` turns it off.
    """

    application_name: str = "guildsync"
    timezone: str = "UTC"
    statement_timeout: int = Field(default=300_000, ge=0)


class PoolConfig(BaseModel):
    """Everything ``Pool`` needs, one section per concern."""

    database: DatabaseConfig = Field(default_factory=lambda: DatabaseConfig.model_validate({}))
    limits: PoolLimitsConfig = Field(default_factory=PoolLimitsConfig)
    timeouts: PoolTimeoutsConfig = Field(default_factory=PoolTimeoutsConfig)
    retry: PoolRetryConfig = Field(default_factory=PoolRetryConfig)
    server_settings: ServerSettingsConfig = Field(default_factory=ServerSettingsConfig)


class Pool:
    """Thin retrying wrapper around ``asyncpg.Pool``.

    Services reach the database through [Store][guildsync.core.store.Store];
    only the store holds a ``Pool``.
    """

    def __init__(self, config: PoolConfig | None = None) -> None:
        self._config = config or PoolConfig()
        self._inner: asyncpg.Pool[asyncpg.Record] | None = None
        self._lock = asyncio.Lock()
        self._logger = Logger("pool")

    @classmethod
    def from_yaml(cls, config_path: str) -> Pool:
        return cls.from_dict(load_yaml(config_path))

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> Pool:
        return cls(config=PoolConfig.model_validate(config_dict))

    @property
    def config(self) -> PoolConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        return self._inner is not None

    def _retry_delay(self, attempt: int) -> float:
        retry = self._config.retry
        factor = 2**attempt if retry.exponential_backoff else attempt + 1
        return float(min(retry.initial_delay * factor, retry.max_delay))

    def _server_settings(self) -> dict[str, str]:
        settings = self._config.server_settings
        return {
            "application_name": settings.application_name,
            "timezone": settings.timezone,
            "statement_timeout": str(settings.statement_timeout),
        }

    def _pool_kwargs(self) -> dict[str, Any]:
        db = self._config.database
        limits = self._config.limits
        return {
            "host": db.host,
            "port": db.port,
            "database": db.database,
            "user": db.user,
            "password": db.secret(),
            "ssl": bool(db.ssl),
            "min_size": limits.min_size,
            "max_size": limits.max_size,
            "max_queries": limits.max_queries,
            "max_inactive_connection_lifetime": limits.max_inactive_connection_lifetime,
            "timeout": self._config.timeouts.acquisition,
            "server_settings": self._server_settings(),
        }

    async def connect(self) -> None:
        """Open the pool, retrying refused or failed connection attempts.

        Does nothing when already connected.

        Raises:
            ConnectionPoolError: Every attempt failed.
        """
        async with self._lock:
            if self._inner is not None:
                return

            db = self._config.database
            attempts = self._config.retry.max_attempts
            self._logger.info(
                "db_connecting", host=db.host, port=db.port, database=db.database, ssl=db.ssl
            )

            for attempt in range(attempts):
                try:
                    self._inner = await asyncpg.create_pool(**self._pool_kwargs())
                except (asyncpg.PostgresError, OSError, ConnectionError) as e:
                    if attempt + 1 == attempts:
                        self._logger.error("db_connect_failed", attempts=attempts, error=str(e))
                        raise ConnectionPoolError(
                            f"Failed to connect after {attempts} attempts: {e}"
                        ) from e
                    delay = self._retry_delay(attempt)
                    self._logger.warning(
                        "db_connect_retry", attempt=attempt + 1, delay=delay, error=str(e)
                    )
                    await asyncio.sleep(delay)
                else:
                    self._logger.info("db_connected")
                    return

    async def close(self) -> None:
        """Close every connection. Safe to call when not connected."""
        async with self._lock:
            inner, self._inner = self._inner, None
            if inner is not None:
                await inner.close()
                self._logger.info("db_closed")

    def acquire(self) -> AbstractAsyncContextManager[asyncpg.Connection[asyncpg.Record]]:
        """Borrow a connection for the duration of an ``async with`` block."""
        if self._inner is None:
            raise RuntimeError("Pool not connected. Call connect() first.")
        return cast(
            "AbstractAsyncContextManager[asyncpg.Connection[asyncpg.Record]]",
            self._inner.acquire(),
        )

    async def _run_statement(
        self,
        operation: _Operation,
        query: str,
        args: tuple[Any, ...],
        timeout: float | None,  # noqa: ASYNC109
    ) -> Any:
        """Run one statement, moving to a fresh connection if the current one drops.

        Raises:
            ConnectionPoolError: The connection kept dropping through the retry budget.
            QueryError: The server rejected the statement or it timed out.
        """
        attempts = self._config.retry.max_attempts
        attempt = 0
        while True:
            try:
                async with self.acquire() as conn:
                    return await getattr(conn, operation)(query, *args, timeout=timeout)
            except _DROPPED_CONNECTION as e:
                attempt += 1
                if attempt >= attempts:
                    self._logger.error(
                        "statement_failed", operation=operation, attempts=attempts, error=str(e)
                    )
                    raise ConnectionPoolError(
                        f"{operation} failed after {attempts} attempts: {e}"
                    ) from e
                delay = self._retry_delay(attempt - 1)
                self._logger.warning(
                    "statement_retry", operation=operation, attempt=attempt, delay=delay
                )
                await asyncio.sleep(delay)
            except (asyncpg.PostgresError, TimeoutError) as e:
                self._logger.error(
                    "statement_rejected",
                    operation=operation,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise QueryError(f"{operation} failed: {e}") from e

    async def fetch(
        self, query: str, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> list[asyncpg.Record]:
        return cast("list[asyncpg.Record]", await self._run_statement("fetch", query, args, timeout))

    async def fetchrow(
        self, query: str, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> asyncpg.Record | None:
        return cast(
            "asyncpg.Record | None", await self._run_statement("fetchrow", query, args, timeout)
        )

    async def execute(
        self, query: str, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> str:
        """Run a statement and return its status tag, e.g. ``"UPDATE 1"``."""
        return cast("str", await self._run_statement("execute", query, args, timeout))

    async def __aenter__(self) -> Pool:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def __repr__(self) -> str:
        db = self._config.database
        return f"Pool(host={db.host}, database={db.database}, connected={self.is_connected})"
