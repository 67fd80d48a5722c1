import logging
import xml.etree.ElementTree as ET
from typing import Optional

from linkaudit.exceptions import HttpFetchError, SitemapFetchError

logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    # "{http://www.sitemaps.org/schemas/sitemap/0.9}url" -> "url"
    return tag.rsplit("}", 1)[-1]


def _child_locs(root: ET.Element, entry_name: str) -> list[str]:
    locs = []
    for entry in root:
        if _local_name(entry.tag) != entry_name:
            continue
        for child in entry:
            if _local_name(child.tag) == "loc" and child.text and child.text.strip():
                locs.append(child.text.strip())
                break
    return locs


class SitemapFetcher:
    """Download a sitemap and flatten it into a list of page URLs.

    Handles both `<urlset>` documents and `<sitemapindex>` documents whose
    entries are fetched recursively. Recursion is bounded by `max_depth` and a
    seen-set so self-referencing indices cannot loop forever.
    """

    def __init__(self, http_service, max_depth: int = 5):
        self.http_service = http_service
        self.max_depth = max_depth

    def fetch_sitemap(self, sitemap_url: str) -> list[str]:
        """Return every page URL listed by `sitemap_url`.

        Raises SitemapFetchError if the top-level document is unreachable or
        unparseable. Sub-sitemap failures are logged and skipped.
        """
        logger.info("Fetching sitemap %s", sitemap_url)
        urls = self._fetch_recursive(sitemap_url, depth=0, seen=set())
        valid = [u.strip() for u in urls if isinstance(u, str) and u.strip().startswith("http")]
        logger.info("Sitemap %s yielded %d URLs", sitemap_url, len(valid))
        return valid

    def _download(self, sitemap_url: str) -> ET.Element:
        try:
            response = self.http_service.fetch_sitemap(sitemap_url)
        except HttpFetchError as e:
            raise SitemapFetchError(sitemap_url, str(e.original)) from e

        if response.status_code < 200 or response.status_code >= 300:
            raise SitemapFetchError(sitemap_url, f"status {response.status_code}")
        if not response.text or not response.text.strip():
            raise SitemapFetchError(sitemap_url, "empty document")

        try:
            return ET.fromstring(response.text)
        except ET.ParseError as e:
            raise SitemapFetchError(sitemap_url, f"invalid XML: {e}") from e

    def _fetch_recursive(self, sitemap_url: str, depth: int, seen: set) -> list[str]:
        seen.add(sitemap_url)
        root = self._download(sitemap_url)
        kind = _local_name(root.tag)

        if kind == "urlset":
            return _child_locs(root, "url")

        if kind != "sitemapindex":
            logger.warning("Unrecognized sitemap root <%s> at %s", kind, sitemap_url)
            return []

        children = _child_locs(root, "sitemap")
        logger.info("Sitemap index %s lists %d sub-sitemaps", sitemap_url, len(children))
        if depth + 1 > self.max_depth:
            logger.warning("Max sitemap depth (%s) reached at %s; skipping %d sub-sitemaps", self.max_depth, sitemap_url, len(children))
            return []

        urls: list[str] = []
        for child_url in children:
            if child_url in seen:
                logger.warning("Skipping already visited sub-sitemap %s", child_url)
                continue
            try:
                urls.extend(self._fetch_recursive(child_url, depth + 1, seen))
            except SitemapFetchError as e:
                logger.error("Sub-sitemap fetch failed: %s", e)
        return urls

    def validate_sitemap(self, sitemap_url: str, timeout: Optional[float] = 5) -> dict:
        """Check that a sitemap answers without downloading it."""
        try:
            response = self.http_service.head(sitemap_url, timeout=timeout)
        except HttpFetchError as e:
            return {"valid": False, "error": str(e.original), "status": None}

        if response.status_code >= 400:
            return {"valid": False, "error": f"status {response.status_code}", "status": response.status_code}
        return {
            "valid": True,
            "status": response.status_code,
            "content_type": response.content_type,
            "size": response.content_length,
        }
