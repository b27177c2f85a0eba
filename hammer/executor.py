"""One request/response cycle against a single target."""

from __future__ import annotations

import asyncio
import logging
from typing import Set

import httpx

from .admission import Permit
from .config import RunConfig
from .output import OutputSink

LOGGER = logging.getLogger(__name__)


def describe_failure(url: str, exc: Exception) -> str:
    detail = str(exc) or type(exc).__name__
    return f'GET "{url}": {detail}'


class RequestExecutor:
    """Runs request cycles on a shared client.

    Each cycle owns the permit it is handed and releases it when the main path
    finishes. Response bodies are drained by detached tasks that the executor
    keeps track of until they complete.
    """

    def __init__(self, client: httpx.AsyncClient, config: RunConfig, sink: OutputSink):
        self._client = client
        self._config = config
        self._sink = sink
        self._drains: Set[asyncio.Task] = set()

    @property
    def pending_drains(self) -> int:
        return len(self._drains)

    async def execute(self, url: str, permit: Permit) -> None:
        try:
            await self._cycle(url)
        except Exception as exc:
            LOGGER.exception("Request cycle for %s failed", url)
            self._sink.error(describe_failure(url, exc))
        finally:
            permit.release()

    async def wait_drained(self) -> None:
        """Wait for every background body drain started so far."""
        while self._drains:
            await asyncio.gather(*list(self._drains), return_exceptions=True)

    async def _cycle(self, url: str) -> None:
        headers = self._config.clone_headers()
        if headers.get("connection", "").strip().lower() == "close":
            del headers["connection"]

        try:
            request = self._client.build_request("GET", url, headers=headers)
            response = await self._client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            LOGGER.debug("Request to %s failed", url, exc_info=exc)
            self._sink.error(describe_failure(url, exc))
            return

        if not self._config.is_expected(response.status_code):
            self._sink.warning(f"Received non-200 response: {response.status_code} {url}")

        self._drain_in_background(response)

        if self._config.delay:
            await asyncio.sleep(self._config.delay)

    def _drain_in_background(self, response: httpx.Response) -> None:
        task = asyncio.get_running_loop().create_task(self._drain(response))
        self._drains.add(task)
        task.add_done_callback(self._drains.discard)

    async def _drain(self, response: httpx.Response) -> None:
        try:
            async for _ in response.aiter_raw():
                pass
        except httpx.HTTPError as exc:
            LOGGER.debug("Could not drain body from %s: %s", response.url, exc)
        finally:
            await response.aclose()
