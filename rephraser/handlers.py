#!/usr/bin/env python3
# Async Iterator over Streamed Completion Frames
import json
from typing import AsyncIterable, AsyncIterator, Optional, Union
from loguru import logger


DATA_PREFIX = "data:"
DONE_PAYLOAD = "[DONE]"


class _StreamDone:
    """Sentinel returned for the terminating `data: [DONE]` frame."""

    def __repr__(self) -> str:
        return "STREAM_DONE"


STREAM_DONE = _StreamDone()


def decode_frame(line: str) -> Union[str, None, _StreamDone]:
    """
    Decodes a single server-sent-events line.

    Returns the delta content carried by the frame, None when the line holds
    no text (blank lines, comments, other fields, role-only deltas) or
    STREAM_DONE for the termination frame. A malformed JSON payload raises.
    """
    line = line.strip()
    if not line.startswith(DATA_PREFIX):
        return None
    data = line[len(DATA_PREFIX):].strip()
    if data == DONE_PAYLOAD:
        return STREAM_DONE
    if not data:
        return None
    chunk = json.loads(data)
    content: Optional[str] = chunk["choices"][0]["delta"].get("content")
    if content is not None and not isinstance(content, str):
        raise TypeError(f"delta content is {type(content).__name__}, not str")
    return content or None


async def iter_stream_content(lines: AsyncIterable[str]) -> AsyncIterator[str]:
    async for raw in lines:
        # A single read can carry several frames
        for line in raw.split("\n"):
            try:
                content = decode_frame(line)
            except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
                logger.warning(f"Failed to parse chunk: {e!r} in {line!r}")
                continue
            if content is STREAM_DONE:
                return
            if content:
                yield content
