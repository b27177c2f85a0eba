"""Throughput statistics for the progress line."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from .output import OutputSink

Clock = Callable[[], float]


@dataclass(frozen=True)
class StatsSnapshot:
    count: int
    elapsed: float
    rate_per_minute: float

    @classmethod
    def compute(cls, count: int, elapsed: float) -> "StatsSnapshot":
        """Average rate is ``count / elapsed minutes``; zero before any time passes."""
        rate = count / (elapsed / 60.0) if elapsed > 0 else 0.0
        return cls(count=count, elapsed=elapsed, rate_per_minute=rate)

    def render(self) -> str:
        return (
            f"Completed {self.count} total requests in {format_elapsed(self.elapsed)} "
            f"(average {self.rate_per_minute:0.2f} requests/minute)..."
        )


def format_elapsed(seconds: float) -> str:
    """Round to whole seconds and render as ``1h2m3s``."""
    total = int(round(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


class StatsReporter:
    """Emits the overwritten progress line; only the start time is kept."""

    def __init__(self, sink: OutputSink, clock: Clock = time.monotonic):
        self._sink = sink
        self._clock = clock
        self._started_at: Optional[float] = None

    def start(self) -> None:
        if self._started_at is None:
            self._started_at = self._clock()

    def snapshot(self, count: int) -> StatsSnapshot:
        self.start()
        return StatsSnapshot.compute(count, self._clock() - self._started_at)

    def report(self, count: int) -> None:
        self._sink.progress(self.snapshot(count).render())
