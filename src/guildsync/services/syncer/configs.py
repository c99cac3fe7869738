"""Syncer service configuration models.

See Also:
    [Syncer][guildsync.services.syncer.Syncer]: The service class that
        consumes these configurations.
    [BaseServiceConfig][guildsync.core.base_service.BaseServiceConfig]:
        Base class providing the ``metrics`` field.
"""

from __future__ import annotations

import json
import os
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from guildsync.core.base_service import BaseServiceConfig
from guildsync.services.common.configs import TablesConfig


class UpdaterConfig(BaseModel):
    """Remote token-rule-info endpoint settings.

    The request URL is ``<endpoint>:<port><path>``. ``timeout`` is a hard
    deadline on each call, independent of the sync tick, so one hanging
    request cannot stall the run.

    See Also:
        [RemoteUpdater][guildsync.services.syncer.updater.RemoteUpdater]:
            The client driven by this configuration.
    """

    endpoint: str = Field(
        default="http://localhost", description="Backend base address (scheme and host)"
    )
    port: int = Field(default=8080, ge=1, le=65535, description="Backend port")
    path: str = Field(default="/token-rule-info", description="Update endpoint path")
    timeout: float = Field(
        default=30.0, ge=0.1, le=600.0, description="Total deadline per update call (seconds)"
    )
    connect_timeout: float = Field(
        default=10.0, ge=0.1, le=120.0, description="Connection deadline (capped to timeout)"
    )
    max_response_size: int = Field(
        default=1_048_576,
        ge=1024,
        le=52_428_800,
        description="Maximum response body size in bytes (default: 1 MB)",
    )

    @field_validator("endpoint")
    @classmethod
    def _validate_endpoint(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"endpoint must start with http:// or https://, got {v!r}")
        return v.rstrip("/")

    @field_validator("path")
    @classmethod
    def _validate_path(cls, v: str) -> str:
        return v if v.startswith("/") else f"/{v}"

    @model_validator(mode="after")
    def _validate_connect_timeout(self) -> UpdaterConfig:
        if self.connect_timeout > self.timeout:
            raise ValueError(
                f"connect_timeout ({self.connect_timeout}) must not exceed timeout ({self.timeout})"
            )
        return self

    @property
    def url(self) -> str:
        """Full request URL."""
        return f"{self.endpoint}:{self.port}{self.path}"


class SyncConfig(BaseModel):
    """Pacing of the traversal.

    Every unit of work (loading a guild, or updating one member) costs one
    tick, so the endpoint never sees more than one request per ``tick``
    seconds.
    """

    tick: float = Field(
        default=5.0, gt=0.0, le=3600.0, description="Seconds between units of work"
    )


class SyncerConfig(BaseServiceConfig):
    """Syncer service configuration.

    ``guilds`` is the ordered list of guild IDs to process. When it is not
    given, it is read as a JSON list from the environment variable named by
    ``guilds_env``, e.g. ``GUILDS_TO_UPDATE='["123821047347744788"]'``.
    Duplicates are dropped, keeping the first occurrence.
    """

    updater: UpdaterConfig = Field(default_factory=UpdaterConfig)
    tables: TablesConfig = Field(default_factory=TablesConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    guilds_env: str = Field(
        default="GUILDS_TO_UPDATE",
        min_length=1,
        description="Environment variable holding a JSON list of guild IDs",
    )
    guilds: list[str] = Field(default_factory=list, description="Guild IDs, in processing order")

    @model_validator(mode="before")
    @classmethod
    def resolve_guilds(cls, data: Any) -> Any:
        """Read ``guilds`` from the environment when it is not configured."""
        if isinstance(data, dict) and "guilds" not in data:
            env_var = data.get("guilds_env", "GUILDS_TO_UPDATE")
            raw = os.getenv(env_var)
            if raw:
                try:
                    data["guilds"] = json.loads(raw)
                except json.JSONDecodeError as e:
                    raise ValueError(f"{env_var} must be a JSON list of guild IDs: {e}") from e
        return data

    @field_validator("guilds", mode="before")
    @classmethod
    def _coerce_guild_ids(cls, v: Any) -> Any:
        # Snowflakes are often written unquoted in YAML and arrive as ints
        if isinstance(v, list):
            return [str(g) if isinstance(g, int) and not isinstance(g, bool) else g for g in v]
        return v

    @field_validator("guilds")
    @classmethod
    def _validate_guilds(cls, v: list[str]) -> list[str]:
        seen: set[str] = set()
        unique: list[str] = []
        for raw_id in v:
            guild_id = raw_id.strip()
            if not guild_id:
                raise ValueError("guild IDs must not be empty")
            if guild_id not in seen:
                seen.add(guild_id)
                unique.append(guild_id)
        return unique
