"""Custom exceptions for the link audit pipeline."""

import requests


class HttpFetchError(Exception):
    """Raised when an HTTP fetch fails due to network/transport errors."""

    def __init__(self, url: str, original: Exception):
        self.url = url
        self.original = original
        super().__init__(f"HTTP fetch failed for {url}: {original}")

    @property
    def is_timeout(self) -> bool:
        return isinstance(self.original, requests.exceptions.Timeout)

    @property
    def error_code(self) -> str:
        return type(self.original).__name__


class SitemapFetchError(Exception):
    """Raised when the top-level sitemap cannot be downloaded or parsed."""

    def __init__(self, sitemap_url: str, reason: str):
        self.sitemap_url = sitemap_url
        self.reason = reason
        super().__init__(f"Could not fetch sitemap from {sitemap_url}: {reason}")


class EmptyScanInputError(Exception):
    """Raised when a scan is requested with no URLs to scan."""


class NotificationError(Exception):
    """Raised when a notification cannot be delivered and the caller asked to know."""
