"""Endpoint resolver — maps a hostname to the base URL of its server.

Many instances serve their account domain (``example.org``) from a different
web host (``social.example.org``).  The webfinger endpoint on the account
domain then redirects to the real host, which is what we want to talk to.
"""

from __future__ import annotations

import logging
import re

import httpx

from fedcrawl.client import TRANSPORT_ERRORS
from fedcrawl.errors import ResolutionError

logger = logging.getLogger(__name__)

WEBFINGER_PATH = "/.well-known/webfinger"

_LOCATION_RE = re.compile(r"https://(.+)/\.well-known/webfinger")


class EndpointResolver:
    """Resolves hostnames through a single, unfollowed webfinger request."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def resolve(self, hostname: str) -> str:
        """Return ``https://<host>`` for the server behind *hostname*.

        Any status code is accepted; only a redirect whose ``Location``
        points at another webfinger endpoint changes the result.

        Raises:
            ResolutionError: the request failed at the transport level.
        """
        url = f"https://{hostname}{WEBFINGER_PATH}"
        try:
            response = await self._client.get(url, follow_redirects=False)
        except TRANSPORT_ERRORS as exc:
            raise ResolutionError(f"Cannot resolve {hostname}: {exc}") from exc

        location = response.headers.get("Location")
        if location:
            match = _LOCATION_RE.search(location)
            if match:
                logger.debug("%s redirects to %s", hostname, match.group(1))
                return f"https://{match.group(1)}"
        return f"https://{hostname}"
