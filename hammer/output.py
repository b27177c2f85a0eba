"""Console output serialised through a single writer task."""

from __future__ import annotations

import asyncio
import sys
from collections import Counter
from typing import Optional, TextIO, Tuple

WARNING = "warning"
ERROR = "error"
PROGRESS = "progress"

_Message = Tuple[str, str]


class OutputSink:
    """Queue-fed console writer shared by every concurrent unit of a run.

    Producers never touch the stream; they enqueue messages and a single task
    writes them in arrival order. Progress lines are redrawn in place with a
    carriage return, and the next regular line first terminates them.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream if stream is not None else sys.stdout
        self._queue: "asyncio.Queue[Optional[_Message]]" = asyncio.Queue()
        self._writer: Optional[asyncio.Task] = None
        self._progress_open = False
        self.counts: Counter = Counter()

    async def __aenter__(self) -> "OutputSink":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def start(self) -> None:
        if self._writer is None:
            self._writer = asyncio.get_running_loop().create_task(self._drain_queue())

    async def close(self) -> None:
        """Flush every queued message and stop the writer."""
        if self._writer is None:
            return
        self._queue.put_nowait(None)
        await self._writer
        self._writer = None
        if self._progress_open:
            self._stream.write("\n")
            self._stream.flush()
            self._progress_open = False

    def warning(self, text: str) -> None:
        self._queue.put_nowait((WARNING, text))

    def error(self, text: str) -> None:
        self._queue.put_nowait((ERROR, text))

    def progress(self, text: str) -> None:
        self._queue.put_nowait((PROGRESS, text))

    async def _drain_queue(self) -> None:
        while True:
            message = await self._queue.get()
            if message is None:
                return
            self._write(*message)

    def _write(self, kind: str, text: str) -> None:
        if kind == PROGRESS:
            self._stream.write("\r" + text)
            self._progress_open = True
        else:
            if self._progress_open:
                self._stream.write("\n")
                self._progress_open = False
            self._stream.write(text + "\n")
        self._stream.flush()
        self.counts[kind] += 1
