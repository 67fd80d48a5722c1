from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LinkKind(str, Enum):
    """Category of the element a reference was found on."""

    NAVIGATION = "navigation"
    RESOURCE = "resource"
    SCRIPT = "script"
    EMBED = "embed"
    IMAGE = "image"
    MEDIA = "media"


@dataclass(frozen=True)
class SourceLocation:
    """Where a reference was found: owning page, best-effort line, markup snippet."""

    found_on: str
    line: int = 0
    html: str = ""

    def to_dict(self) -> dict:
        return {"found_on": self.found_on, "line": self.line, "html": self.html}


@dataclass(frozen=True)
class ExtractedLink:
    """One outbound reference found on a page."""

    url: str
    original_href: str
    element: str
    kind: LinkKind
    link_text: str
    is_internal: bool
    position: SourceLocation
    duplicate_count: int = 1

    @property
    def found_on(self) -> str:
        return self.position.found_on

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "original_href": self.original_href,
            "element": self.element,
            "kind": self.kind.value,
            "link_text": self.link_text,
            "is_internal": self.is_internal,
            "found_on": self.found_on,
            "position": self.position.to_dict(),
            "duplicate_count": self.duplicate_count,
        }
