"""
Event-style logging for the sync job.

Every lifecycle step and every remote-update outcome is reported as a
snake_case event name plus keyword fields:

```python
logger = Logger("syncer")
logger.info("guild_started", guild_id="808885156490133514", members=42)
# info syncer guild_started guild_id=808885156490133514 members=42
```

With ``json_output=True`` the same call produces one JSON object per line
(``timestamp``, ``level``, ``service``, ``message`` and the fields).

Records go through the standard ``logging`` machinery, so handler failures
are reported by ``logging`` and never reach the caller.
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any


DEFAULT_MAX_VALUE_LENGTH = 1000

_QUOTE_TRIGGERS = (" ", "=", '"', "'")


def _clip(value: Any, limit: int | None) -> str:
    text = str(value)
    if limit and len(text) > limit:
        return f"{text[:limit]}...<truncated {len(text) - limit} chars>"
    return text


def _render(text: str) -> str:
    if text and not any(ch in text for ch in _QUOTE_TRIGGERS):
        return text
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def format_kv_pairs(
    kwargs: dict[str, Any],
    max_value_length: int | None = DEFAULT_MAX_VALUE_LENGTH,
    prefix: str = " ",
) -> str:
    """Render fields as ``key=value`` pairs separated by spaces.

    Values longer than ``max_value_length`` are clipped (``None`` disables
    clipping). Empty values and values containing spaces, ``=`` or quotes are
    wrapped in double quotes with backslash escaping.

    Returns an empty string for no fields, else ``prefix`` followed by the pairs.
    """
    if not kwargs:
        return ""
    return prefix + " ".join(
        f"{key}={_render(_clip(value, max_value_length))}" for key, value in kwargs.items()
    )


class StructuredFormatter(logging.Formatter):
    """``<level> <logger> <message> key=value ...`` for every record.

    Fields come from the ``structured_kv`` attribute set by
    [Logger][guildsync.core.logger.Logger], already clipped there; third-party
    records (asyncpg, aiohttp) have none and get the bare prefix.
    """

    def format(self, record: logging.LogRecord) -> str:
        line = f"{record.levelname.lower()} {record.name} {record.getMessage()}"
        line += format_kv_pairs(getattr(record, "structured_kv", {}), max_value_length=None)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class Logger:
    """A named ``logging.Logger`` whose methods take event fields as kwargs.

    Values are clipped at ``max_value_length`` characters in key=value mode;
    ``None`` keeps them whole.
    """

    def __init__(
        self,
        name: str,
        *,
        json_output: bool = False,
        max_value_length: int | None = DEFAULT_MAX_VALUE_LENGTH,
    ) -> None:
        self._logger = logging.getLogger(name)
        self._json_output = json_output
        self._max_value_length = max_value_length

    @property
    def name(self) -> str:
        return self._logger.name

    def with_value_limit(self, max_value_length: int | None) -> Logger:
        """Same logger and output mode, clipping values at ``max_value_length`` (``None``: never)."""
        return Logger(self.name, json_output=self._json_output, max_value_length=max_value_length)

    def _emit(self, level: int, event: str, fields: dict[str, Any], exc_info: bool = False) -> None:
        if not self._logger.isEnabledFor(level):
            return

        if self._json_output:
            payload = {
                "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
                "level": logging.getLevelName(level).lower(),
                "service": self._logger.name,
                "message": event,
                **fields,
            }
            self._logger.log(level, json.dumps(payload, default=str), exc_info=exc_info)
            return

        extra = {}
        if fields:
            limit = self._max_value_length
            extra["structured_kv"] = {key: _clip(value, limit) for key, value in fields.items()}
        self._logger.log(level, event, extra=extra, exc_info=exc_info)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._emit(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._emit(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._emit(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._emit(logging.ERROR, msg, kwargs)

    def critical(self, msg: str, **kwargs: Any) -> None:
        self._emit(logging.CRITICAL, msg, kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """ERROR with the traceback of the exception being handled."""
        self._emit(logging.ERROR, msg, kwargs, exc_info=True)
