"""
Shared fixtures: a Store whose pool talks to a mocked asyncpg connection,
plus the configuration dictionaries the factory tests load.
"""

import logging
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from guildsync.core.pool import DatabaseConfig, Pool, PoolConfig
from guildsync.core.store import Store


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    logging.basicConfig(level=logging.DEBUG)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's guild list and DB password out of tests."""
    monkeypatch.delenv("GUILDS_TO_UPDATE", raising=False)
    monkeypatch.delenv("DB_PASS", raising=False)


@pytest.fixture
def mock_connection() -> MagicMock:
    """An asyncpg connection whose statements return empty results."""
    conn = MagicMock()
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.execute = AsyncMock(return_value="INSERT 0 1")
    return conn


@pytest.fixture
def mock_asyncpg_pool(mock_connection: MagicMock) -> MagicMock:
    """An asyncpg pool that always hands out ``mock_connection``."""
    borrowed = MagicMock()
    borrowed.__aenter__ = AsyncMock(return_value=mock_connection)
    borrowed.__aexit__ = AsyncMock(return_value=None)

    inner = MagicMock()
    inner.acquire = MagicMock(return_value=borrowed)
    inner.close = AsyncMock()
    return inner


@pytest.fixture
def mock_pool(mock_asyncpg_pool: MagicMock, monkeypatch: pytest.MonkeyPatch) -> Pool:
    """A connected Pool for ``test_db`` on localhost."""
    monkeypatch.setenv("DB_PASS", "test_password")
    pool = Pool(
        PoolConfig(database=DatabaseConfig(host="localhost", database="test_db", user="test_user"))
    )
    pool._inner = mock_asyncpg_pool
    return pool


@pytest.fixture
def mock_store(mock_pool: Pool) -> Store:
    return Store(pool=mock_pool)


@pytest.fixture
def pool_config_dict() -> dict[str, Any]:
    return {
        "database": {"host": "localhost", "database": "test_db", "user": "test_user"},
        "limits": {"min_size": 2, "max_size": 10, "max_queries": 1000},
        "timeouts": {"acquisition": 5.0},
        "retry": {"max_attempts": 2, "initial_delay": 0.5, "max_delay": 2.0},
        "server_settings": {"application_name": "test_app"},
    }


@pytest.fixture
def store_config_dict(pool_config_dict: dict[str, Any]) -> dict[str, Any]:
    return {"pool": pool_config_dict, "timeouts": {"query": 15.0, "write": 20.0}}


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark everything under tests/unit as ``unit``."""
    for item in items:
        if "unit" in item.path.parts:
            item.add_marker(pytest.mark.unit)
