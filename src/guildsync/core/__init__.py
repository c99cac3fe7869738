"""Infrastructure under the services: database access, logging, metrics, config.

``Store`` (over ``Pool``) is the only way services touch PostgreSQL;
``BaseService`` gives them shutdown, pacing and metric helpers.
"""

from .base_service import BaseService, BaseServiceConfig, ConfigT
from .exceptions import ConfigurationError, ConnectionPoolError, DatabaseError, QueryError, SyncError
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import MetricsConfig, MetricsServer
from .pool import DatabaseConfig, Pool, PoolConfig
from .store import Store, StoreConfig, StoreTimeoutsConfig
from .yaml import load_yaml


__all__ = [
    "BaseService",
    "BaseServiceConfig",
    "ConfigT",
    "ConfigurationError",
    "ConnectionPoolError",
    "DatabaseConfig",
    "DatabaseError",
    "Logger",
    "MetricsConfig",
    "MetricsServer",
    "Pool",
    "PoolConfig",
    "QueryError",
    "Store",
    "StoreConfig",
    "StoreTimeoutsConfig",
    "StructuredFormatter",
    "SyncError",
    "format_kv_pairs",
    "load_yaml",
]
