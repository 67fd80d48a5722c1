import logging
from typing import Iterable, Optional, Sequence
from urllib.parse import unquote_plus, urlsplit, urlunsplit

from linkaudit.domain.cleaning_report import CleaningReport
from linkaudit.domain.scan_settings import (
    EXCLUDED_EXTENSIONS,
    EXCLUDED_PARAMS,
    EXCLUDED_PATH_PREFIXES,
    LOCALE_PREFIXES,
)

logger = logging.getLogger(__name__)


class SitemapCleaner:
    """Normalize and deduplicate raw sitemap URLs.

    Per URL: strip tracking/locale query params, collapse a leading locale
    path prefix, drop the fragment, then reject document/media files and
    excluded paths. The surviving set is deduplicated and sorted.
    """

    def __init__(
        self,
        excluded_extensions: Sequence[str] = EXCLUDED_EXTENSIONS,
        excluded_params: Sequence[str] = EXCLUDED_PARAMS,
        locale_prefixes: Sequence[str] = LOCALE_PREFIXES,
        excluded_path_prefixes: Sequence[str] = EXCLUDED_PATH_PREFIXES,
    ):
        self.excluded_extensions = tuple(e.lower() for e in excluded_extensions)
        self.excluded_params = frozenset(excluded_params)
        self.locale_prefixes = tuple(p.lower() for p in locale_prefixes)
        self.excluded_path_prefixes = tuple(p.lower() for p in excluded_path_prefixes)

    @classmethod
    def from_settings(cls, settings) -> "SitemapCleaner":
        return cls(
            excluded_extensions=settings.excluded_extensions,
            excluded_params=settings.excluded_params,
            locale_prefixes=settings.locale_prefixes,
            excluded_path_prefixes=settings.excluded_path_prefixes,
        )

    def process(self, urls: Iterable[str]) -> list[str]:
        """Return the cleaned, unique, sorted URL list."""
        urls = list(urls or [])
        logger.info("Cleaning sitemap: %d URLs", len(urls))

        kept = set()
        for raw in urls:
            cleaned = self.clean_single_url(raw)
            if cleaned is None:
                continue
            if self.is_excluded_file(cleaned) or self.is_excluded_path(cleaned):
                continue
            kept.add(cleaned)

        result = sorted(kept)
        logger.info("Cleaning done: %d unique URLs (%d removed)", len(result), len(urls) - len(result))
        return result

    def clean_single_url(self, url: Optional[str]) -> Optional[str]:
        """Normalize one URL; returns None when it is not a usable http(s) URL."""
        if not url or not isinstance(url, str):
            return None
        try:
            parts = urlsplit(url.strip())
        except ValueError:
            logger.warning("Ignoring invalid URL: %r", url)
            return None

        scheme = parts.scheme.lower()
        if scheme not in ("http", "https") or not parts.netloc:
            logger.warning("Ignoring invalid URL: %r", url)
            return None

        query = self._strip_params(parts.query)
        path = self.strip_locale_prefix(parts.path)
        return urlunsplit((scheme, parts.netloc.lower(), path, query, ""))

    def _strip_params(self, query: str) -> str:
        if not query:
            return ""
        kept = []
        for pair in query.split("&"):
            if not pair:
                continue
            name = unquote_plus(pair.split("=", 1)[0])
            if name in self.excluded_params:
                continue
            kept.append(pair)
        return "&".join(kept)

    def _matching_locale_prefix(self, path: str) -> Optional[str]:
        lowered = path.lower()
        for prefix in self.locale_prefixes:
            if lowered.startswith(prefix):
                return prefix
        return None

    def strip_locale_prefix(self, path: str) -> str:
        """Drop the first matching locale prefix, keeping the leading slash.

        Stacked prefixes such as `/en/fr/x` lose only the outer one, so
        cleaning is idempotent for every path except those.
        """
        prefix = self._matching_locale_prefix(path)
        if prefix is not None:
            path = path[len(prefix) - 1:]
        if not path.startswith("/"):
            path = "/" + path
        return path

    def _path_of(self, url: str) -> str:
        try:
            return urlsplit(url).path.lower()
        except ValueError:
            return ""

    def is_excluded_file(self, url: str) -> bool:
        path = self._path_of(url)
        return any(path.endswith(ext) for ext in self.excluded_extensions)

    def is_excluded_path(self, url: str) -> bool:
        path = self._path_of(url)
        return any(path.startswith(prefix) for prefix in self.excluded_path_prefixes)

    def generate_report(self, original_urls: Sequence[str], cleaned_urls: Sequence[str]) -> CleaningReport:
        """Descriptive counts only; has no effect on what `process` keeps."""
        files_removed = 0
        language_normalized = 0
        for url in original_urls:
            if not isinstance(url, str):
                continue
            if self.is_excluded_file(url):
                files_removed += 1
            if self._matching_locale_prefix(self._path_of(url)) is not None:
                language_normalized += 1

        unique = {self.clean_single_url(u) or u for u in original_urls}
        return CleaningReport(
            original=len(original_urls),
            cleaned=len(cleaned_urls),
            removed=len(original_urls) - len(cleaned_urls),
            files_removed=files_removed,
            language_normalized=language_normalized,
            duplicates_removed=len(original_urls) - len(unique),
        )
