"""Shared HTTP client factory."""

from __future__ import annotations

import httpx

from fedcrawl import __version__

USER_AGENT = f"fedcrawl/{__version__}"

# Errors raised by httpx for a single request that never produced a response.
TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


def build_client(timeout: float, max_connections: int = 100) -> httpx.AsyncClient:
    """Return an :class:`httpx.AsyncClient` shared by all adapters of a run.

    Redirects are *not* followed by default; the resolver depends on seeing
    the raw ``Location`` header.  Adapters that want redirects opt in per
    request.
    """
    return httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=False,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        limits=httpx.Limits(max_connections=max_connections),
    )
