"""
Shared plumbing for guildsync services.

A service is entered as an async context manager inside an open
[Store][guildsync.core.store.Store] and then ``run()`` once:

```python
async with store, Syncer(store, config) as syncer:
    await syncer.run()
```

``BaseService`` supplies the typed config, a [Logger][guildsync.core.logger.Logger]
named after the service, a shutdown flag that signal handlers can set, the
interruptible [wait()][guildsync.core.base_service.BaseService.wait] used for
pacing, and metric helpers that are inert unless ``metrics.enabled``.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, Self, TypeVar, cast

from pydantic import BaseModel, Field

from guildsync.models.constants import ServiceName

from .logger import Logger
from .metrics import SYNC_COUNTER, SYNC_GAUGE, SYNC_INFO, UPDATE_DURATION_SECONDS, MetricsConfig
from .store import Store
from .yaml import load_yaml


class BaseServiceConfig(BaseModel):
    """Fields every service config carries."""

    metrics: MetricsConfig = Field(default_factory=MetricsConfig)


ConfigT = TypeVar("ConfigT", bound=BaseServiceConfig)


class BaseService(ABC, Generic[ConfigT]):
    """Base for services; subclasses set ``SERVICE_NAME``, ``CONFIG_CLASS`` and ``run()``."""

    SERVICE_NAME: ClassVar[ServiceName]
    CONFIG_CLASS: ClassVar[type[BaseServiceConfig]]

    def __init__(
        self,
        store: Store,
        config: ConfigT | None = None,
        *,
        json_logs: bool = False,
    ) -> None:
        self._store = store
        self._config = cast("ConfigT", config if config is not None else self.CONFIG_CLASS())
        self._logger = Logger(self.SERVICE_NAME, json_output=json_logs)
        self._shutdown_event = asyncio.Event()

    @classmethod
    def from_yaml(cls, config_path: str, store: Store, **kwargs: Any) -> Self:
        return cls.from_dict(load_yaml(config_path), store=store, **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], store: Store, **kwargs: Any) -> Self:
        """Validate ``data`` against ``CONFIG_CLASS`` and construct the service."""
        config = cast("ConfigT", cls.CONFIG_CLASS.model_validate(data))
        return cls(store=store, config=config, **kwargs)

    @property
    def config(self) -> ConfigT:
        return self._config

    @property
    def is_running(self) -> bool:
        return not self._shutdown_event.is_set()

    @abstractmethod
    async def run(self) -> None:
        """Do the service's work, pacing with ``wait()``, and return when done."""

    def request_shutdown(self) -> None:
        """Ask ``run()`` to stop at its next ``wait()``. Safe from signal handlers."""
        self._shutdown_event.set()

    async def wait(self, timeout: float) -> bool:  # noqa: ASYNC109
        """Sleep up to ``timeout`` seconds; return True if shutdown cut it short."""
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    async def __aenter__(self) -> Self:
        self._shutdown_event.clear()
        if self._metrics_enabled:
            SYNC_INFO.info({"service": self.SERVICE_NAME})
        self._logger.info("service_started")
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self._shutdown_event.set()
        self._logger.info("service_stopped")

    @property
    def _metrics_enabled(self) -> bool:
        return self._config.metrics.enabled

    def set_gauge(self, name: str, value: float) -> None:
        if self._metrics_enabled:
            SYNC_GAUGE.labels(service=self.SERVICE_NAME, name=name).set(value)

    def inc_counter(self, name: str, value: float = 1) -> None:
        if self._metrics_enabled:
            SYNC_COUNTER.labels(service=self.SERVICE_NAME, name=name).inc(value)

    def observe_update(self, outcome: str, duration: float) -> None:
        """Record how long one remote update took, labelled by its outcome."""
        if self._metrics_enabled:
            UPDATE_DURATION_SECONDS.labels(service=self.SERVICE_NAME, outcome=outcome).observe(
                duration
            )
