"""Size-capped reads of aiohttp response bodies.

The update endpoint is outside our control; these helpers stop reading once
``max_size`` bytes have arrived instead of buffering whatever it sends.
"""

from __future__ import annotations

import json
from typing import Any

import aiohttp


def _too_large(max_size: int) -> ValueError:
    return ValueError(f"Response body too large: >{max_size} bytes")


async def read_bounded(response: aiohttp.ClientResponse, max_size: int) -> bytes:
    """Return the whole body, or raise ``ValueError`` past ``max_size`` bytes.

    A declared ``Content-Length`` over the cap is rejected without reading.
    Otherwise the stream is read until EOF, asking for at most one byte more
    than the remaining allowance so an overrun is detected without reading it all.
    """
    declared = response.content_length
    if declared is not None and declared > max_size:
        raise _too_large(max_size)

    body = bytearray()
    while chunk := await response.content.read(max_size + 1 - len(body)):
        body += chunk
        if len(body) > max_size:
            raise _too_large(max_size)
    return bytes(body)


async def read_bounded_json(response: aiohttp.ClientResponse, max_size: int) -> Any:
    """Parse a size-capped JSON body; an empty body is ``None``.

    Raises:
        ValueError: The body exceeds ``max_size``.
        json.JSONDecodeError: The body is not JSON.
    """
    body = await read_bounded(response, max_size)
    return json.loads(body) if body else None
