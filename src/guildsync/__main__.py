"""Command line: ``guildsync`` / ``python -m guildsync``.

Runs one sync pass over the configured guilds and exits:

```bash
GUILDS_TO_UPDATE='["808885156490133514"]' guildsync --json-logs
guildsync --config config/services/syncer.yaml --log-level DEBUG
```

Exit status is 0 when every guild finished (or none were configured), 1 when
the run stopped early or storage failed, 2 for bad configuration and 130 on
an unhandled Ctrl-C.
"""

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from guildsync.core import MetricsServer, Store
from guildsync.core.exceptions import ConfigurationError, DatabaseError
from guildsync.core.logger import Logger, StructuredFormatter
from guildsync.core.yaml import load_yaml
from guildsync.models.constants import ServiceName
from guildsync.services.syncer import Syncer, SyncerConfig


CONFIG_BASE = Path("config")
STORE_CONFIG = CONFIG_BASE / "store.yaml"
SYNCER_CONFIG = CONFIG_BASE / "services" / "syncer.yaml"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130

NO_GUILDS_HINT = (
    "No guilds to update. List guild IDs under 'guilds' in {config} "
    "or set {env} to a JSON list, e.g. {env}='[\"808885156490133514\"]'"
)

# Where each key of a service's ``pool:`` block lands in the store config.
_POOL_OVERRIDE_SECTIONS: dict[str, str] = {
    "user": "database",
    "password_env": "database",
    "min_size": "limits",
    "max_size": "limits",
    "application_name": "server_settings",
}

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)

logger = Logger("cli")


@contextmanager
def _stop_on_signals(syncer: Syncer) -> Iterator[None]:
    """Turn SIGINT/SIGTERM into a graceful shutdown request while the block runs."""
    loop = asyncio.get_running_loop()

    def on_signal(sig: signal.Signals) -> None:
        logger.info("shutdown_signal", signal=sig.name)
        syncer.request_shutdown()

    for sig in _STOP_SIGNALS:
        loop.add_signal_handler(sig, on_signal, sig)
    try:
        yield
    finally:
        for sig in _STOP_SIGNALS:
            loop.remove_signal_handler(sig)


async def run_service(syncer: Syncer) -> int:
    """Run one pass with metrics served and stop signals handled; return the exit code."""
    metrics = syncer.config.metrics
    try:
        async with MetricsServer(metrics), syncer:
            if metrics.enabled:
                logger.info("metrics_serving", host=metrics.host, port=metrics.port, path=metrics.path)
            with _stop_on_signals(syncer):
                await syncer.run()
    except DatabaseError as e:
        logger.error("sync_failed", error=str(e), error_type=type(e).__name__)
        return EXIT_FAILURE
    except Exception as e:  # Intentionally broad: CLI error boundary
        logger.exception("sync_failed", error=str(e), error_type=type(e).__name__)
        return EXIT_FAILURE

    return EXIT_OK if syncer.completed else EXIT_FAILURE


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="guildsync",
        description="Re-evaluate token rules for every linked member of the configured guilds",
    )
    parser.add_argument(
        "--config", type=Path, default=SYNCER_CONFIG, help=f"syncer config (default: {SYNCER_CONFIG})"
    )
    parser.add_argument(
        "--store-config",
        type=Path,
        default=STORE_CONFIG,
        help=f"database config (default: {STORE_CONFIG})",
    )
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default="INFO")
    parser.add_argument("--json-logs", action="store_true", help="one JSON object per log line")
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Send every record, third-party ones included, through ``StructuredFormatter``."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(level)


def _load_yaml_dict(path: Path) -> dict[str, Any]:
    if path.exists():
        return load_yaml(str(path))
    logger.warning("config_not_found", path=str(path))
    return {}


def _apply_pool_overrides(store_dict: dict[str, Any], pool_overrides: dict[str, Any] | None) -> None:
    """Fold a service's ``pool:`` block into the store config, in place.

    ``application_name`` falls back to ``guildsync-syncer`` when neither file sets it.
    """
    pool = store_dict.setdefault("pool", {})
    pool.setdefault("server_settings", {}).setdefault(
        "application_name", f"guildsync-{ServiceName.SYNCER}"
    )
    for key, value in (pool_overrides or {}).items():
        section = _POOL_OVERRIDE_SECTIONS.get(key)
        if section is None:
            raise ConfigurationError(f"Unsupported pool override: {key}")
        pool.setdefault(section, {})[key] = value


def build_syncer_config(service_dict: dict[str, Any]) -> SyncerConfig:
    try:
        return SyncerConfig.model_validate(service_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid syncer configuration: {e}") from e


def build_store(store_dict: dict[str, Any]) -> Store:
    """Build the store; a missing ``DB_PASS`` surfaces here as ``ConfigurationError``."""
    try:
        return Store.from_dict(store_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid store configuration: {e}") from e


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        service_dict = _load_yaml_dict(args.config)
        pool_overrides = service_dict.pop("pool", None)
        config = build_syncer_config(service_dict)

        if not config.guilds:
            print(NO_GUILDS_HINT.format(config=args.config, env=config.guilds_env))  # noqa: T201
            return EXIT_OK

        store_dict = _load_yaml_dict(args.store_config)
        _apply_pool_overrides(store_dict, pool_overrides)
        store = build_store(store_dict)
    except ConfigurationError as e:
        logger.error("invalid_configuration", error=str(e))
        return EXIT_CONFIG

    syncer = Syncer(store=store, config=config, json_logs=args.json_logs)
    try:
        async with store:
            return await run_service(syncer)
    except DatabaseError as e:
        logger.error("database_unavailable", error=str(e))
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.info("interrupted")
        return EXIT_INTERRUPTED


def cli() -> None:
    """Console-script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(EXIT_INTERRUPTED)


if __name__ == "__main__":
    cli()
