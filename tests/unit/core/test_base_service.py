"""
Unit tests for core.base_service module.

Tests:
- BaseService initialization with Store and config
- Factory methods (from_yaml, from_dict)
- Graceful shutdown via request_shutdown()
- wait() interruptible sleep
- is_running property
- Context manager support (__aenter__/__aexit__)
- Metric helpers gated by metrics.enabled
"""

import asyncio
from unittest.mock import patch

import pytest
from pydantic import Field

from guildsync.core.base_service import BaseService, BaseServiceConfig
from guildsync.core.metrics import MetricsConfig


class ConcreteServiceConfig(BaseServiceConfig):
    """Test configuration inheriting from BaseServiceConfig."""

    max_items: int = Field(default=100, ge=1)


class ConcreteService(BaseService[ConcreteServiceConfig]):
    """Test implementation."""

    SERVICE_NAME = "test_service"  # type: ignore[assignment]
    CONFIG_CLASS = ConcreteServiceConfig

    def __init__(self, store, config: ConcreteServiceConfig | None = None, **kwargs):
        super().__init__(store=store, config=config, **kwargs)
        self.run_count = 0

    async def run(self):
        self.run_count += 1


class TestBaseServiceConfig:
    """BaseServiceConfig defaults."""

    def test_metrics_disabled_by_default(self):
        assert BaseServiceConfig().metrics.enabled is False


class TestInit:
    """BaseService initialization."""

    def test_with_config(self, mock_store):
        service = ConcreteService(store=mock_store, config=ConcreteServiceConfig(max_items=50))
        assert service.config.max_items == 50

    def test_with_defaults(self, mock_store):
        service = ConcreteService(store=mock_store)
        assert service.config.max_items == 100
        assert service._store is mock_store

    def test_logger_named_after_service(self, mock_store):
        service = ConcreteService(store=mock_store)
        assert service._logger.name == "test_service"

    def test_json_logs(self, mock_store):
        service = ConcreteService(store=mock_store, json_logs=True)
        assert service._logger._json_output is True

    def test_running_until_shutdown(self, mock_store):
        service = ConcreteService(store=mock_store)
        assert service.is_running is True
        service.request_shutdown()
        assert service.is_running is False


class TestFactoryMethods:
    """BaseService factory methods."""

    def test_from_dict(self, mock_store):
        service = ConcreteService.from_dict({"max_items": 200}, store=mock_store)
        assert service.config.max_items == 200

    def test_from_dict_passes_kwargs(self, mock_store):
        service = ConcreteService.from_dict({}, store=mock_store, json_logs=True)
        assert service._logger._json_output is True

    def test_from_yaml(self, mock_store, tmp_path):
        config_file = tmp_path / "service.yaml"
        config_file.write_text("max_items: 75\nmetrics:\n  enabled: true\n")
        service = ConcreteService.from_yaml(str(config_file), store=mock_store)
        assert service.config.max_items == 75
        assert service.config.metrics.enabled is True

    def test_from_yaml_file_not_found(self, mock_store):
        with pytest.raises(FileNotFoundError):
            ConcreteService.from_yaml("/nonexistent/path/config.yaml", store=mock_store)


class TestWait:
    """BaseService.wait() interruptible sleep."""

    async def test_timeout_returns_false(self, mock_store):
        service = ConcreteService(store=mock_store)
        assert await service.wait(0.01) is False

    async def test_shutdown_returns_true(self, mock_store):
        service = ConcreteService(store=mock_store)
        service.request_shutdown()
        assert await service.wait(10.0) is True

    async def test_shutdown_during_wait(self, mock_store):
        service = ConcreteService(store=mock_store)
        loop = asyncio.get_running_loop()
        loop.call_later(0.01, service.request_shutdown)
        assert await asyncio.wait_for(service.wait(10.0), timeout=2.0) is True


class TestContextManager:
    """BaseService async context manager."""

    async def test_enter_clears_shutdown(self, mock_store):
        service = ConcreteService(store=mock_store)
        service.request_shutdown()
        async with service:
            assert service.is_running is True
        assert service.is_running is False

    async def test_run_inside_context(self, mock_store):
        async with ConcreteService(store=mock_store) as service:
            await service.run()
        assert service.run_count == 1


class TestMetricHelpers:
    """set_gauge / inc_counter / observe_update."""

    def _service(self, store, *, enabled: bool) -> ConcreteService:
        config = ConcreteServiceConfig(metrics=MetricsConfig(enabled=enabled))
        return ConcreteService(store=store, config=config)

    def test_disabled_is_noop(self, mock_store):
        service = self._service(mock_store, enabled=False)
        with (
            patch("guildsync.core.base_service.SYNC_GAUGE") as gauge,
            patch("guildsync.core.base_service.SYNC_COUNTER") as counter,
            patch("guildsync.core.base_service.UPDATE_DURATION_SECONDS") as hist,
        ):
            service.set_gauge("members_pending", 3)
            service.inc_counter("members_processed")
            service.observe_update("success", 0.2)
        gauge.labels.assert_not_called()
        counter.labels.assert_not_called()
        hist.labels.assert_not_called()

    def test_enabled_records(self, mock_store):
        service = self._service(mock_store, enabled=True)
        with (
            patch("guildsync.core.base_service.SYNC_GAUGE") as gauge,
            patch("guildsync.core.base_service.SYNC_COUNTER") as counter,
            patch("guildsync.core.base_service.UPDATE_DURATION_SECONDS") as hist,
        ):
            service.set_gauge("members_pending", 3)
            service.inc_counter("members_processed")
            service.observe_update("success", 0.2)
        gauge.labels.assert_called_once_with(service="test_service", name="members_pending")
        gauge.labels.return_value.set.assert_called_once_with(3)
        counter.labels.return_value.inc.assert_called_once_with(1)
        hist.labels.assert_called_once_with(service="test_service", outcome="success")
        hist.labels.return_value.observe.assert_called_once_with(0.2)

    async def test_service_info_set_on_enter(self, mock_store):
        service = self._service(mock_store, enabled=True)
        with patch("guildsync.core.base_service.SYNC_INFO") as info:
            async with service:
                pass
        info.info.assert_called_once_with({"service": "test_service"})
