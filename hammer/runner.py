"""Wires the components together for one run."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import httpx

from .admission import AdmissionController
from .config import RunConfig
from .dispatch import DispatchLoop
from .executor import RequestExecutor
from .output import OutputSink
from .stats import StatsReporter
from .transport import build_client

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    iterations: int
    admission_failed: bool


async def run(
    config: RunConfig,
    *,
    sink: Optional[OutputSink] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RunResult:
    """Hammer the configured targets until admission fails or the limit is hit.

    Without ``max_iterations`` this only returns on admission failure. A
    bounded run waits for every launched cycle and body drain before the
    client is closed.
    """
    LOGGER.info("max concurrent requests: %d", config.concurrency)
    LOGGER.info("max parallel workers: %d", os.cpu_count() or 1)

    sink = sink if sink is not None else OutputSink()
    async with sink, build_client(config, transport=transport) as client:
        admission = AdmissionController(config.concurrency)
        executor = RequestExecutor(client, config, sink)
        dispatcher = DispatchLoop(config, admission, executor, StatsReporter(sink), sink)
        try:
            iterations = await dispatcher.run()
        finally:
            await dispatcher.wait_idle()

    LOGGER.info("Dispatched %d requests", iterations)
    return RunResult(iterations=iterations, admission_failed=dispatcher.failure is not None)
