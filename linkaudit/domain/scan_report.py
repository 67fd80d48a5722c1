from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from linkaudit.domain.link import SourceLocation
from linkaudit.domain.link_check import LinkCheckResult, LinkStatus
from linkaudit.domain.page_scan import PageScanResult
from linkaudit.utils.datetime_utils import format_duration, utc_now_iso


@dataclass(frozen=True)
class Error404:
    """Compact record of one link that answered 404."""

    url: str
    found_on: str
    link_text: str
    position: SourceLocation
    is_internal: bool

    @classmethod
    def from_result(cls, result: LinkCheckResult) -> "Error404":
        return cls(
            url=result.link.url,
            found_on=result.link.found_on,
            link_text=result.link.link_text,
            position=result.link.position,
            is_internal=result.link.is_internal,
        )

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "found_on": self.found_on,
            "link_text": self.link_text,
            "position": self.position.to_dict(),
            "is_internal": self.is_internal,
        }


@dataclass
class ScanStats:
    pages_scanned: int = 0
    pages_successful: int = 0
    pages_error: int = 0
    links_checked: int = 0
    links_internal: int = 0
    links_external: int = 0
    links_ok: int = 0
    errors_404: int = 0
    errors_other: int = 0
    warnings: int = 0
    timeouts: int = 0

    def record_link(self, result: LinkCheckResult) -> None:
        self.links_checked += 1
        if result.is_internal:
            self.links_internal += 1
        else:
            self.links_external += 1
        if result.status is LinkStatus.OK:
            self.links_ok += 1
        elif result.status is LinkStatus.BROKEN:
            self.errors_404 += 1
        elif result.status is LinkStatus.WARNING:
            self.warnings += 1
        elif result.status is LinkStatus.TIMEOUT:
            self.timeouts += 1
        else:
            self.errors_other += 1

    def to_dict(self) -> dict:
        return dict(self.__dict__)


@dataclass
class ScanReport:
    """Full run: per-page results, aggregate counters and the 404 list.

    Owned by the orchestrator while the scan runs; `finalize()` closes the
    timestamps, after which the report should be treated as read-only.
    """

    total_pages: int
    start_time: str = field(default_factory=utc_now_iso)
    pages: list[PageScanResult] = field(default_factory=list)
    stats: ScanStats = field(default_factory=ScanStats)
    errors_404: list[Error404] = field(default_factory=list)
    end_time: Optional[str] = None
    duration: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def finalized(self) -> bool:
        return self.end_time is not None

    @property
    def total_links(self) -> int:
        return self.stats.links_checked

    def add_page(self, page: PageScanResult) -> None:
        if self.finalized:
            raise RuntimeError("cannot add pages to a finalized scan report")
        self.pages.append(page)

    def add_404(self, result: LinkCheckResult) -> None:
        if self.finalized:
            raise RuntimeError("cannot add errors to a finalized scan report")
        self.errors_404.append(Error404.from_result(result))

    def finalize(self, duration_seconds: float) -> None:
        self.end_time = utc_now_iso()
        self.duration_seconds = duration_seconds
        self.duration = format_duration(duration_seconds)

    def to_dict(self, include_pages: bool = False) -> dict:
        d = {
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
            "duration_seconds": self.duration_seconds,
            "total_pages": self.total_pages,
            "total_links": self.total_links,
            "stats": self.stats.to_dict(),
            "errors_404": [e.to_dict() for e in self.errors_404],
        }
        if include_pages:
            d["pages"] = [p.to_dict() for p in self.pages]
        return d
