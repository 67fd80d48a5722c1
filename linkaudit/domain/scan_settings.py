from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

DEFAULT_SITEMAP_URL = "https://www.stereolabs.com/sitemap.xml"
DEFAULT_USER_AGENT = "LinkAudit/1.0 (Internal SEO Tool)"
CRON_USER_AGENT = "LinkAudit-Cron/1.0"

EXCLUDED_EXTENSIONS = (
    # documents
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".txt", ".rtf", ".odt", ".ods", ".odp",
    # images
    ".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp", ".ico", ".bmp",
    # media
    ".mp4", ".avi", ".mov", ".mp3", ".wav",
    # archives
    ".zip", ".rar", ".tar", ".gz",
)

EXCLUDED_PATH_PREFIXES = (
    "/admin", "/wp-admin", "/api/", "/assets/", "/static/",
    "/downloads/", "/files/", "/uploads/", "/media/",
    "/.well-known/", "/robots.txt", "/sitemap",
)

EXCLUDED_PARAMS = (
    "lang", "locale", "language", "l",
    "utm_source", "utm_medium", "utm_campaign", "utm_content", "utm_term",
    "gclid", "fbclid", "_ga", "_gac",
)

# Order matters: the first matching prefix wins.
LOCALE_PREFIXES = (
    "/en-us/", "/en-gb/", "/en-ca/", "/en-au/", "/en-nz/", "/en-ie/", "/en-in/", "/en-sg/", "/en-za/",
    "/fr-fr/", "/fr-ca/", "/fr-be/", "/fr-ch/", "/fr-lu/",
    "/de-de/", "/de-at/", "/de-ch/", "/de-lu/",
    "/es-es/", "/es-mx/", "/es-ar/", "/es-co/", "/es-cl/", "/es-us/",
    "/it-it/", "/it-ch/",
    "/pt-pt/", "/pt-br/",
    "/nl-nl/", "/nl-be/",
    "/ja-jp/", "/ko-kr/",
    "/zh-cn/", "/zh-tw/", "/zh-hk/", "/zh-hans/", "/zh-hant/",
    "/sv-se/", "/da-dk/", "/nb-no/", "/fi-fi/", "/pl-pl/", "/cs-cz/",
    "/ru-ru/", "/tr-tr/", "/he-il/", "/ar-ae/",
    "/en/", "/fr/", "/de/", "/es/", "/it/", "/ja/", "/zh/", "/ko/",
    "/pt/", "/nl/", "/sv/", "/da/", "/no/", "/fi/", "/pl/", "/cs/",
    "/ru/", "/tr/", "/he/", "/ar/",
)


@dataclass(frozen=True)
class ScanSettings:
    """Everything a scan run needs, built once and passed down explicitly."""

    sitemap_url: str = DEFAULT_SITEMAP_URL
    site_url: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = 10.0
    max_concurrent: int = 10
    max_redirects: int = 5
    retries: int = 0
    batch_pause_seconds: float = 1.0
    page_delay_seconds: float = 0.5
    include_resources: bool = False
    max_pages: Optional[int] = None
    sitemap_max_depth: int = 5
    link_text_max_length: int = 100
    snippet_max_length: int = 200
    excluded_extensions: tuple[str, ...] = EXCLUDED_EXTENSIONS
    excluded_path_prefixes: tuple[str, ...] = EXCLUDED_PATH_PREFIXES
    excluded_params: tuple[str, ...] = EXCLUDED_PARAMS
    locale_prefixes: tuple[str, ...] = LOCALE_PREFIXES

    def __post_init__(self):
        if self.max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")
        if self.max_pages is not None and self.max_pages < 0:
            raise ValueError("max_pages must be >= 0")

    def with_overrides(self, *, sitemap_url: Optional[str] = None, max_pages: Optional[int] = None) -> "ScanSettings":
        changes = {}
        if sitemap_url:
            changes["sitemap_url"] = sitemap_url
        if max_pages is not None:
            changes["max_pages"] = max_pages
        return replace(self, **changes) if changes else self

    def for_cron(self) -> "ScanSettings":
        """Profile for scheduled runs that must fit a bounded execution window."""
        return replace(
            self,
            max_pages=50,
            max_concurrent=5,
            request_timeout=15.0,
            retries=1,
            user_agent=CRON_USER_AGENT,
        )

    def to_dict(self) -> dict:
        return {
            "sitemap_url": self.sitemap_url,
            "site_url": self.site_url,
            "user_agent": self.user_agent,
            "request_timeout": self.request_timeout,
            "max_concurrent": self.max_concurrent,
            "max_redirects": self.max_redirects,
            "retries": self.retries,
            "batch_pause_seconds": self.batch_pause_seconds,
            "page_delay_seconds": self.page_delay_seconds,
            "include_resources": self.include_resources,
            "max_pages": self.max_pages,
        }
