"""Shared pytest fixtures for engine tests."""

from __future__ import annotations

import asyncio
import io
import logging
import sys
from pathlib import Path
from typing import Callable, Iterator, List

import httpx
import pytest
from fastapi import FastAPI, HTTPException, Request

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from hammer.logging_utils import LOGGER_NAME
from hammer.output import OutputSink


class RecordingTransport(httpx.MockTransport):
    """Mock transport answering every request with a fixed status.

    Tracks the requests it saw and how many were being handled at once.
    """

    def __init__(self, status_code: int = 200, latency: float = 0.0, fail: bool = False):
        super().__init__(self._respond)
        self.status_code = status_code
        self.latency = latency
        self.fail = fail
        self.requests: List[httpx.Request] = []
        self.active = 0
        self.peak = 0

    async def _respond(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
            if self.fail:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(self.status_code, text="body")
        finally:
            self.active -= 1

    @property
    def hosts(self) -> List[str]:
        return [request.url.host for request in self.requests]


def build_target_app() -> FastAPI:
    """Small service the engine can be pointed at in-process."""
    app = FastAPI(title="hammer target")
    app.state.seen_headers = []

    @app.get("/ok")
    def ok(request: Request):
        app.state.seen_headers.append(request.headers.getlist("x-token"))
        return {"ok": True}

    @app.get("/missing")
    def missing():
        raise HTTPException(status_code=404, detail="not here")

    @app.get("/boom")
    def boom():
        raise HTTPException(status_code=500, detail="boom")

    return app


@pytest.fixture(autouse=True)
def isolate_logging() -> Iterator[None]:
    """Drop handlers installed by configure_logging between tests."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def recording_transport() -> Callable[..., RecordingTransport]:
    return RecordingTransport


@pytest.fixture
def target_app() -> FastAPI:
    return build_target_app()


@pytest.fixture
def console() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def sink(console) -> OutputSink:
    return OutputSink(console)
