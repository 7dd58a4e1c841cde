"""Copy a child's stdout/stderr into a caller-supplied writable sink."""

from __future__ import annotations

import asyncio
import io
import logging
from typing import IO, Any, Optional

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024
_SINK_ERRORS = (OSError, ValueError, TypeError)


def _is_text_sink(sink: Any) -> bool:
    if isinstance(sink, io.TextIOBase):
        return True
    mode = getattr(sink, "mode", None)
    return isinstance(mode, str) and "b" not in mode


async def forward_stream(reader: Optional[asyncio.StreamReader], sink: IO[Any], *, label: str = "") -> int:
    """
    Drain ``reader`` into ``sink`` until EOF.

    A sink that starts failing is abandoned but the pipe keeps being drained,
    so the child never blocks on a full pipe buffer.

    Returns:
        Number of bytes read from the child
    """
    if reader is None:
        return 0

    text_sink = _is_text_sink(sink)
    sink_ok = True
    total = 0
    while True:
        chunk = await reader.read(_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if not sink_ok:
            continue
        try:
            sink.write(chunk.decode("utf-8", errors="replace") if text_sink else chunk)
            sink.flush()
        except _SINK_ERRORS as exc:  # policy_guard: allow-silent-handler
            logger.warning("Output sink for %s stopped accepting data: %s", label or "child", exc)
            sink_ok = False
    return total


__all__ = ["forward_stream"]
