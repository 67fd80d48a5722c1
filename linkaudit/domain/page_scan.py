from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from linkaudit.domain.link import ExtractedLink
from linkaudit.domain.link_check import LinkCheckResult, LinkStatus


@dataclass(frozen=True)
class PageStats:
    total_links_found: int = 0
    links_checked: int = 0
    internal: int = 0
    external: int = 0
    ok: int = 0
    broken: int = 0
    warnings: int = 0
    errors: int = 0
    timeouts: int = 0

    @property
    def success_rate(self) -> str:
        if self.links_checked == 0:
            return "0%"
        return f"{(self.ok / self.links_checked) * 100:.1f}%"

    @classmethod
    def from_results(cls, links: list[ExtractedLink], checked: list[LinkCheckResult]) -> "PageStats":
        def count(status: LinkStatus) -> int:
            return sum(1 for r in checked if r.status is status)

        internal = sum(1 for r in checked if r.is_internal)
        return cls(
            total_links_found=len(links),
            links_checked=len(checked),
            internal=internal,
            external=len(checked) - internal,
            ok=count(LinkStatus.OK),
            broken=count(LinkStatus.BROKEN),
            warnings=count(LinkStatus.WARNING),
            errors=count(LinkStatus.ERROR),
            timeouts=count(LinkStatus.TIMEOUT),
        )

    def to_dict(self) -> dict:
        return {
            "total_links_found": self.total_links_found,
            "links_checked": self.links_checked,
            "internal": self.internal,
            "external": self.external,
            "ok": self.ok,
            "broken": self.broken,
            "warnings": self.warnings,
            "errors": self.errors,
            "timeouts": self.timeouts,
            "success_rate": self.success_rate,
        }


@dataclass(frozen=True)
class PageScanResult:
    """Outcome of scanning one sitemap page."""

    page_url: str
    accessible: bool
    status_code: int = 0
    error: Optional[str] = None
    links: list[ExtractedLink] = field(default_factory=list)
    checked_links: list[LinkCheckResult] = field(default_factory=list)
    stats: PageStats = field(default_factory=PageStats)
    scanned_at: Optional[str] = None

    @classmethod
    def inaccessible(cls, page_url: str, status_code: int, error: str, scanned_at: Optional[str] = None) -> "PageScanResult":
        return cls(page_url=page_url, accessible=False, status_code=status_code, error=error, scanned_at=scanned_at)

    def to_dict(self, include_links: bool = False) -> dict:
        d = {
            "page_url": self.page_url,
            "accessible": self.accessible,
            "status_code": self.status_code,
            "error": self.error,
            "stats": self.stats.to_dict(),
            "scanned_at": self.scanned_at,
        }
        if include_links:
            d["links"] = [link.to_dict() for link in self.links]
            d["checked_links"] = [r.to_dict() for r in self.checked_links]
        return d
