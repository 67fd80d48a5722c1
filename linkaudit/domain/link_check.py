from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from linkaudit.domain.link import ExtractedLink


class LinkStatus(str, Enum):
    OK = "ok"
    BROKEN = "broken"
    WARNING = "warning"
    TIMEOUT = "timeout"
    ERROR = "error"


@dataclass(frozen=True)
class LinkCheckResult:
    """An ExtractedLink plus the outcome of verifying it."""

    link: ExtractedLink
    status: LinkStatus
    status_code: int = 0
    response_time_ms: int = 0
    final_url: Optional[str] = None
    redirected: bool = False
    content_type: Optional[str] = None
    last_modified: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    checked_at: Optional[str] = None

    @property
    def url(self) -> str:
        return self.link.url

    @property
    def is_internal(self) -> bool:
        return self.link.is_internal

    @property
    def is_404(self) -> bool:
        return self.status is LinkStatus.BROKEN and self.status_code == 404

    def to_dict(self) -> dict:
        d = self.link.to_dict()
        d.update(
            {
                "status": self.status.value,
                "status_code": self.status_code,
                "response_time_ms": self.response_time_ms,
                "final_url": self.final_url,
                "redirected": self.redirected,
                "content_type": self.content_type,
                "last_modified": self.last_modified,
                "error": self.error,
                "error_code": self.error_code,
                "checked_at": self.checked_at,
            }
        )
        return d
