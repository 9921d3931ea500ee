"""Error hierarchy for the crawler adapters."""

from __future__ import annotations


class CrawlError(Exception):
    """Base error for per-hostname crawl failures."""


class ResolutionError(CrawlError):
    """Raised when the webfinger lookup for a hostname cannot be completed."""


class FetchError(CrawlError):
    """Raised when a remote document cannot be fetched or decoded."""


class InvalidStatusError(FetchError):
    """Raised when the remote answers with an unexpected HTTP status."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(f"{url} returned HTTP {status_code}")
        self.url = url
        self.status_code = status_code


class WrongContentTypeError(FetchError):
    """Raised when a JSON endpoint answers with a non-JSON content type."""


class SchemaError(FetchError):
    """Raised when a response body does not match the expected schema."""


class PersistenceError(CrawlError):
    """Raised when a descriptor cannot be written to the output directory."""
