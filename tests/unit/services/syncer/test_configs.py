"""Unit tests for services.syncer.configs module.

Tests:
- UpdaterConfig defaults, URL building and validation
- SyncConfig tick bounds
- SyncerConfig guild list resolution (YAML, environment), coercion and dedup
"""

import pytest
from pydantic import ValidationError

from guildsync.services.syncer import SyncConfig, SyncerConfig, UpdaterConfig


class TestUpdaterConfig:
    """UpdaterConfig Pydantic model."""

    def test_defaults(self):
        config = UpdaterConfig()
        assert config.url == "http://localhost:8080/token-rule-info"
        assert config.timeout == 30.0
        assert config.connect_timeout == 10.0
        assert config.max_response_size == 1_048_576

    def test_url_from_parts(self):
        config = UpdaterConfig(endpoint="https://backend.example.com/", port=443)
        assert config.url == "https://backend.example.com:443/token-rule-info"

    def test_path_gets_leading_slash(self):
        assert UpdaterConfig(path="v2/token-rule-info").path == "/v2/token-rule-info"

    @pytest.mark.parametrize("endpoint", ["backend", "ftp://backend", "localhost:8080"])
    def test_endpoint_needs_http_scheme(self, endpoint):
        with pytest.raises(ValidationError, match="http"):
            UpdaterConfig(endpoint=endpoint)

    def test_connect_timeout_capped(self):
        with pytest.raises(ValidationError, match="connect_timeout"):
            UpdaterConfig(timeout=5.0, connect_timeout=10.0)

    @pytest.mark.parametrize("timeout", [0.0, 0.05, 601.0])
    def test_timeout_bounds(self, timeout):
        with pytest.raises(ValidationError):
            UpdaterConfig(timeout=timeout, connect_timeout=0.1)

    @pytest.mark.parametrize("port", [0, 65536])
    def test_port_bounds(self, port):
        with pytest.raises(ValidationError):
            UpdaterConfig(port=port)


class TestSyncConfig:
    """SyncConfig Pydantic model."""

    def test_default_tick(self):
        assert SyncConfig().tick == 5.0

    @pytest.mark.parametrize("tick", [0.0, -1.0, 3601.0])
    def test_invalid_tick(self, tick):
        with pytest.raises(ValidationError):
            SyncConfig(tick=tick)

    def test_small_tick_allowed(self):
        assert SyncConfig(tick=0.001).tick == 0.001


class TestSyncerConfigGuilds:
    """SyncerConfig guild list resolution."""

    def test_defaults_empty(self):
        config = SyncerConfig()
        assert config.guilds == []
        assert config.guilds_env == "GUILDS_TO_UPDATE"

    def test_from_yaml_list(self):
        assert SyncerConfig(guilds=["1", "2"]).guilds == ["1", "2"]

    def test_order_preserved(self):
        assert SyncerConfig(guilds=["b", "a", "c"]).guilds == ["b", "a", "c"]

    def test_int_ids_coerced(self):
        assert SyncerConfig(guilds=[808885156490133514]).guilds == ["808885156490133514"]

    def test_ids_stripped(self):
        assert SyncerConfig(guilds=[" 1 "]).guilds == ["1"]

    def test_duplicates_dropped_keeping_first(self):
        assert SyncerConfig(guilds=["1", "2", "1", "3", "2"]).guilds == ["1", "2", "3"]

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError, match="must not be empty"):
            SyncerConfig(guilds=["1", "  "])

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("GUILDS_TO_UPDATE", '["808885156490133514", "1"]')
        assert SyncerConfig().guilds == ["808885156490133514", "1"]

    def test_from_custom_env(self, monkeypatch):
        monkeypatch.setenv("MY_GUILDS", '["7"]')
        assert SyncerConfig(guilds_env="MY_GUILDS").guilds == ["7"]

    def test_explicit_list_wins_over_env(self, monkeypatch):
        monkeypatch.setenv("GUILDS_TO_UPDATE", '["env"]')
        assert SyncerConfig(guilds=["yaml"]).guilds == ["yaml"]

    def test_invalid_env_json(self, monkeypatch):
        monkeypatch.setenv("GUILDS_TO_UPDATE", "[not json")
        with pytest.raises(ValidationError, match="GUILDS_TO_UPDATE must be a JSON list"):
            SyncerConfig()

    def test_env_not_a_list(self, monkeypatch):
        monkeypatch.setenv("GUILDS_TO_UPDATE", '{"a": 1}')
        with pytest.raises(ValidationError):
            SyncerConfig()

    def test_empty_env_is_empty_list(self, monkeypatch):
        monkeypatch.setenv("GUILDS_TO_UPDATE", "")
        assert SyncerConfig().guilds == []


class TestSyncerConfigSections:
    """Nested sections."""

    def test_from_dict(self):
        config = SyncerConfig(
            updater={"endpoint": "http://backend", "port": 9000},
            tables={"members": "bot.members"},
            sync={"tick": 1.5},
            metrics={"enabled": True, "port": 9100},
            guilds=["1"],
        )
        assert config.updater.url == "http://backend:9000/token-rule-info"
        assert config.tables.members == "bot.members"
        assert config.tables.sync == "guild_sync"
        assert config.sync.tick == 1.5
        assert config.metrics.enabled is True
