"""
Prometheus metrics for a sync run, served over aiohttp.

A run over a large guild can take hours at one member per tick, so progress
is exported while the run is in flight:

``guildsync_info``
    Which service is running; set once on start.
``guildsync_state{service,name}``
    Gauges: ``guilds_pending``, ``members_pending``.
``guildsync_events_total{service,name}``
    Counters: ``members_processed``, ``guilds_completed``, ``updates_<outcome>``.
``guildsync_update_duration_seconds{service,outcome}``
    Latency of each remote update call.

Services write through the helpers on
[BaseService][guildsync.core.base_service.BaseService], which do nothing
unless ``metrics.enabled`` is set.
"""

from __future__ import annotations

from typing import Any

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from pydantic import BaseModel, Field


class MetricsConfig(BaseModel):
    """Where to serve ``/metrics``; nothing is served unless ``enabled``."""

    enabled: bool = False
    port: int = Field(default=8000, ge=1024, le=65535)
    host: str = "127.0.0.1"
    path: str = "/metrics"


SYNC_INFO = Info("guildsync", "Running guildsync service")

SYNC_GAUGE = Gauge(
    "guildsync_state",
    "Pending work in the current run",
    ["service", "name"],
)

SYNC_COUNTER = Counter(
    "guildsync_events",
    "Work done in the current process",
    ["service", "name"],
)

UPDATE_DURATION_SECONDS = Histogram(
    "guildsync_update_duration_seconds",
    "Duration of one remote member update",
    ["service", "outcome"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60),
)


class MetricsServer:
    """Scrape endpoint for the metrics above.

    ```python
    async with MetricsServer(MetricsConfig(enabled=True, port=8001)):
        await syncer.run()
    ```
    """

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        """Bind and serve. Raises ``OSError`` if the port cannot be bound."""
        if not self._config.enabled or self._runner is not None:
            return

        app = web.Application()
        app.router.add_get(self._config.path, self._handle_metrics)

        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        try:
            await web.TCPSite(runner, self._config.host, self._config.port).start()
        except OSError:
            await runner.cleanup()
            raise
        self._runner = runner

    async def stop(self) -> None:
        runner, self._runner = self._runner, None
        if runner is not None:
            await runner.cleanup()

    async def __aenter__(self) -> MetricsServer:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    @staticmethod
    async def _handle_metrics(_request: web.Request) -> web.Response:
        return web.Response(body=generate_latest(), headers={"Content-Type": CONTENT_TYPE_LATEST})

