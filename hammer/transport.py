"""Construction of the shared HTTP client."""

from __future__ import annotations

from typing import Optional

import httpx

from .config import RunConfig


def build_client(config: RunConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """Return an ``AsyncClient`` keeping up to ``concurrency`` idle connections.

    The total connection count is unbounded: a connection whose body is still
    draining must not stall the next admitted request.

    With ``use_http2`` the client speaks HTTP/2 only, which also allows
    prior-knowledge HTTP/2 over cleartext connections.
    """
    limits = httpx.Limits(
        max_connections=None,
        max_keepalive_connections=config.concurrency,
    )
    return httpx.AsyncClient(
        http1=not config.use_http2,
        http2=config.use_http2,
        limits=limits,
        timeout=httpx.Timeout(config.timeout),
        follow_redirects=True,
        trust_env=False,
        transport=transport,
    )
