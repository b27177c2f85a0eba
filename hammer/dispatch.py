"""The driver loop: admit, dispatch round-robin, report, repeat."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Set

from .admission import AdmissionController
from .config import RunConfig, select_target
from .errors import AdmissionFailure
from .executor import RequestExecutor
from .output import OutputSink
from .stats import StatsReporter

LOGGER = logging.getLogger(__name__)


class DispatchLoop:
    """Launches one request cycle and one stats report per admitted permit.

    The loop never waits on the work it launches; acquiring a permit is its
    only source of backpressure. It stops when admission fails or, for bounded
    runs, after ``max_iterations`` dispatches.
    """

    def __init__(
        self,
        config: RunConfig,
        admission: AdmissionController,
        executor: RequestExecutor,
        reporter: StatsReporter,
        sink: OutputSink,
    ):
        self._config = config
        self._admission = admission
        self._executor = executor
        self._reporter = reporter
        self._sink = sink
        self._cycles: Set[asyncio.Task] = set()
        self.iterations = 0
        self.failure: Optional[AdmissionFailure] = None

    @property
    def in_flight(self) -> int:
        return len(self._cycles)

    def stop(self, reason: str = "dispatch stopped") -> None:
        """Cancel admission so the loop exits at its next acquisition."""
        self._admission.cancel(reason)

    async def run(self, max_iterations: Optional[int] = None) -> int:
        """Dispatch until admission fails or the iteration limit is reached.

        Returns the number of iterations dispatched by this call.
        """
        loop = asyncio.get_running_loop()
        limit = max_iterations if max_iterations is not None else self._config.max_iterations
        self._reporter.start()
        dispatched = 0

        while limit is None or dispatched < limit:
            try:
                permit = await self._admission.acquire()
            except AdmissionFailure as exc:
                self.failure = exc
                LOGGER.error("Failed to acquire permit: %s", exc)
                self._sink.error(f"Failed to acquire permit: {exc}")
                break

            iteration = self.iterations
            url = select_target(self._config.urls, iteration)
            task = loop.create_task(self._executor.execute(url, permit))
            self._cycles.add(task)
            task.add_done_callback(self._cycles.discard)
            loop.call_soon(self._reporter.report, iteration)

            self.iterations += 1
            dispatched += 1

        return dispatched

    async def wait_idle(self) -> None:
        """Wait for launched cycles and their body drains to finish."""
        while self._cycles:
            await asyncio.gather(*list(self._cycles), return_exceptions=True)
        await self._executor.wait_drained()
