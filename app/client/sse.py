"""
Parser for the AI reply event stream.

The server sends one JSON payload per event and a literal terminator:

    data: {"content": "Hel"}
    data: {"content": "lo"}
    data: [DONE]

A failed stream sends ``data: {"error": "..."}`` before ``[DONE]``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Iterable, Iterator

logger = logging.getLogger(__name__)

DONE_MARKER = "[DONE]"

CONTENT = "content"
ERROR = "error"
DONE = "done"


@dataclass(frozen=True)
class StreamEvent:
    """One decoded event: kind is content, error or done."""

    kind: str
    text: str = ""


def parse_sse_line(line: str) -> StreamEvent | None:
    """
    Decode one line of the stream.

    Blank lines, comments, non-data fields and undecodable payloads
    return None.
    """
    line = line.rstrip("\r\n")
    if not line.startswith("data:"):
        return None

    data = line[len("data:"):]
    if data.startswith(" "):
        data = data[1:]

    if data == DONE_MARKER:
        return StreamEvent(DONE)

    try:
        payload = json.loads(data)
    except json.JSONDecodeError:
        logger.warning(f"Skipping undecodable stream payload: {data[:80]!r}")
        return None

    if not isinstance(payload, dict):
        return None
    if "error" in payload:
        return StreamEvent(ERROR, str(payload["error"]))
    if "content" in payload:
        return StreamEvent(CONTENT, str(payload["content"]))
    return None


def parse_sse(lines: Iterable[str]) -> Iterator[StreamEvent]:
    """Decode lines until the terminator."""
    for line in lines:
        event = parse_sse_line(line)
        if event is None:
            continue
        yield event
        if event.kind == DONE:
            return


async def aparse_sse(lines: AsyncIterable[str]) -> AsyncIterator[StreamEvent]:
    """Async variant of parse_sse for httpx ``aiter_lines()``."""
    async for line in lines:
        event = parse_sse_line(line)
        if event is None:
            continue
        yield event
        if event.kind == DONE:
            return
