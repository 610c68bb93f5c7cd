from __future__ import annotations
import asyncio
from typing import AsyncIterator, Optional, Protocol, TextIO


class LineSource(Protocol):
    """
    Required interface for an input source.

    A source produces a lazy sequence of text lines and is closed once
    the ingestion pass is over. Opening happens before the loop starts so
    an unavailable input fails the process at startup.
    """

    name: str

    def lines(self) -> AsyncIterator[str]:
        ...

    def close(self) -> None:
        ...


class StreamLineSource:
    """
    Shared implementation for sources backed by a text stream.

    readline() blocks, so each read runs in a worker thread and the event
    loop stays free for sink writes and timers.
    """

    name = "stream"

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    async def lines(self) -> AsyncIterator[str]:
        if self._stream is None:
            return

        while True:
            line = await asyncio.to_thread(self._stream.readline)
            if not line:
                break
            yield line

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
