"""
Database handle handed to services.

[Store][guildsync.core.store.Store] owns a [Pool][guildsync.core.pool.Pool]
and gives every statement a default deadline: ``timeouts.query`` for
``fetch``/``fetchrow``, ``timeouts.write`` for ``execute``. The statements
themselves live in [guildsync.services.common.queries][].

```python
async with Store.from_yaml("config/store.yaml") as store:
    await store.fetchrow("SELECT 1")
```
"""

from __future__ import annotations

from typing import Any

import asyncpg  # noqa: TC002
from pydantic import BaseModel, Field, field_validator

from .logger import Logger
from .pool import Pool, PoolConfig
from .yaml import load_yaml


MIN_TIMEOUT_SECONDS = 0.1


class StoreTimeoutsConfig(BaseModel):
    """Default statement deadlines in seconds; ``None`` waits forever."""

    query: float | None = 60.0
    write: float | None = 30.0

    @field_validator("query", "write")
    @classmethod
    def _check_floor(cls, v: float | None) -> float | None:
        if v is not None and v < MIN_TIMEOUT_SECONDS:
            raise ValueError(f"Timeout must be None (infinite) or >= {MIN_TIMEOUT_SECONDS} seconds")
        return v


class StoreConfig(BaseModel):
    timeouts: StoreTimeoutsConfig = Field(default_factory=StoreTimeoutsConfig)


class Store:
    """Connection lifecycle plus deadline-aware ``fetch``/``fetchrow``/``execute``."""

    def __init__(self, pool: Pool | None = None, config: StoreConfig | None = None) -> None:
        self._pool = pool or Pool()
        self._config = config or StoreConfig()
        self._logger = Logger("store")

    @classmethod
    def from_yaml(cls, config_path: str) -> Store:
        return cls.from_dict(load_yaml(config_path))

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> Store:
        """Build from ``{"pool": {...}, "timeouts": {...}}``; both keys optional."""
        rest = dict(config_dict)
        pool_section = rest.pop("pool", None)
        pool = Pool.from_dict(pool_section) if pool_section is not None else None
        return cls(pool=pool, config=StoreConfig.model_validate(rest))

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def pool_config(self) -> PoolConfig:
        return self._pool.config

    def _deadline(self, explicit: float | None, default: float | None) -> float | None:
        return explicit if explicit is not None else default

    async def fetch(
        self, query: str, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> list[asyncpg.Record]:
        deadline = self._deadline(timeout, self._config.timeouts.query)
        return await self._pool.fetch(query, *args, timeout=deadline)

    async def fetchrow(
        self, query: str, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> asyncpg.Record | None:
        deadline = self._deadline(timeout, self._config.timeouts.query)
        return await self._pool.fetchrow(query, *args, timeout=deadline)

    async def execute(
        self, query: str, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> str:
        """Run a write and return its status tag."""
        deadline = self._deadline(timeout, self._config.timeouts.write)
        return await self._pool.execute(query, *args, timeout=deadline)

    async def connect(self) -> None:
        await self._pool.connect()
        self._logger.debug("store_opened")

    async def close(self) -> None:
        await self._pool.close()
        self._logger.debug("store_closed")

    async def __aenter__(self) -> Store:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        db = self._pool.config.database
        return f"Store(host={db.host}, database={db.database}, connected={self._pool.is_connected})"
