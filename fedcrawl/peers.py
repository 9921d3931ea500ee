"""Peer lister — the hostnames an instance federates with."""

from __future__ import annotations

import logging

import httpx

from fedcrawl.client import TRANSPORT_ERRORS
from fedcrawl.errors import FetchError, InvalidStatusError, SchemaError

logger = logging.getLogger(__name__)

PEERS_PATH = "/api/v1/instance/peers"


class PeerLister:
    """Reads Mastodon's ``/api/v1/instance/peers`` endpoint."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def list_peers(self, base_url: str) -> list[str]:
        """Return the peer hostnames known to the instance at *base_url*."""
        url = f"{base_url}{PEERS_PATH}"
        try:
            response = await self._client.get(url, follow_redirects=True)
        except TRANSPORT_ERRORS as exc:
            raise FetchError(f"Cannot fetch {url}: {exc}") from exc

        if not response.is_success:
            raise InvalidStatusError(url, response.status_code)

        try:
            peers = response.json()
        except ValueError as exc:
            raise SchemaError(f"{url} did not return JSON: {exc}") from exc

        if not isinstance(peers, list) or not all(isinstance(p, str) for p in peers):
            raise SchemaError(f"{url} did not return a list of hostnames")
        logger.debug("%s lists %d peer(s)", base_url, len(peers))
        return peers
