"""NodeInfo 2.0 descriptor model and fetcher.

See https://nodeinfo.diaspora.software/schema.html for the schema.  Only the
fields the crawler relies on are required; anything else the server sends is
kept verbatim so the persisted document is complete.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fedcrawl.client import TRANSPORT_ERRORS
from fedcrawl.errors import FetchError, InvalidStatusError, SchemaError, WrongContentTypeError

NODEINFO_PATH = "/nodeinfo/2.0"


class _Document(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Software(_Document):
    name: str
    version: str


class Services(_Document):
    inbound: list[str] = Field(default_factory=list)
    outbound: list[str] = Field(default_factory=list)


class Users(_Document):
    total: int | None = None
    active_halfyear: int | None = Field(default=None, alias="activeHalfyear")
    active_month: int | None = Field(default=None, alias="activeMonth")


class Usage(_Document):
    users: Users
    local_posts: int | None = Field(default=None, alias="localPosts")
    local_comments: int | None = Field(default=None, alias="localComments")


class NodeInfo(_Document):
    version: str
    software: Software
    protocols: list[str]
    services: Services = Field(default_factory=Services)
    open_registrations: bool = Field(alias="openRegistrations")
    usage: Usage
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_document(self) -> dict[str, Any]:
        """Return the JSON-ready document using the wire field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class NodeInfoFetcher:
    """Fetches and validates ``<base_url>/nodeinfo/2.0``."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def fetch(self, base_url: str) -> NodeInfo:
        """Return the validated NodeInfo document served at *base_url*.

        Raises:
            InvalidStatusError:    status was not 200.
            WrongContentTypeError: ``Content-Type`` missing or not JSON.
            SchemaError:           body is not a valid NodeInfo 2.0 document.
            FetchError:            transport failure.
        """
        url = f"{base_url}{NODEINFO_PATH}"
        try:
            response = await self._client.get(url, follow_redirects=True)
        except TRANSPORT_ERRORS as exc:
            raise FetchError(f"Cannot fetch {url}: {exc}") from exc

        if response.status_code != 200:
            raise InvalidStatusError(url, response.status_code)

        content_type = response.headers.get("Content-Type", "")
        if not content_type.startswith("application/json"):
            raise WrongContentTypeError(f"{url} returned content type {content_type!r}")

        try:
            return NodeInfo.model_validate_json(response.content)
        except ValidationError as exc:
            raise SchemaError(f"{url} is not a NodeInfo 2.0 document: {exc}") from exc
