import logging
import re
from collections import Counter
from dataclasses import replace
from enum import Enum
from typing import Callable, Iterable, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

from linkaudit.domain.link import ExtractedLink, LinkKind, SourceLocation

logger = logging.getLogger(__name__)

_UNRESOLVABLE_PREFIXES = ("#", "javascript:", "mailto:", "tel:")
_WHITESPACE = re.compile(r"\s+")
# <link> rel values that reference a fetched resource.
_RESOURCE_LINK_RELS = frozenset({"stylesheet", "icon", "preload"})


class LinkElement(Enum):
    """Link-bearing elements and the attribute that carries their URL."""

    ANCHOR = ("a", "href", LinkKind.NAVIGATION)
    STYLESHEET = ("link", "href", LinkKind.RESOURCE)
    SCRIPT = ("script", "src", LinkKind.SCRIPT)
    IFRAME = ("iframe", "src", LinkKind.EMBED)
    IMAGE = ("img", "src", LinkKind.IMAGE)
    VIDEO = ("video", "src", LinkKind.MEDIA)
    AUDIO = ("audio", "src", LinkKind.MEDIA)
    SOURCE = ("source", "src", LinkKind.MEDIA)

    def __init__(self, tag: str, attribute: str, kind: LinkKind):
        self.tag = tag
        self.attribute = attribute
        self.kind = kind

    @classmethod
    def for_tag(cls, tag: str) -> Optional["LinkElement"]:
        for member in cls:
            if member.tag == tag:
                return member
        return None


def resolve_url(href: Optional[str], base_url: str) -> Optional[str]:
    """Resolve `href` against `base_url`; None for anchors and non-fetchable schemes."""
    if not href:
        return None
    href = href.strip()
    if not href or href.lower().startswith(_UNRESOLVABLE_PREFIXES):
        return None
    try:
        resolved = urljoin(base_url, href)
        parts = urlsplit(resolved)
    except ValueError:
        return None
    if not parts.scheme:
        return None
    return resolved


def hostname_of(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None


def is_resource_link(element) -> bool:
    rel = element.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    return any(value.lower() in _RESOURCE_LINK_RELS for value in rel)


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def find_line_number(html: str, element_html: str) -> int:
    """Best-effort 1-based line of `element_html` within `html`; 0 when not found.

    Heuristic: linear scan for the whitespace-normalized serialized markup.
    The parser re-serializes attributes, so elements spanning several lines
    or written with unusual quoting are reported as 0.
    """
    needle = normalize_whitespace(element_html)
    if not needle:
        return 0
    for index, line in enumerate(html.split("\n")):
        if needle in line or needle in normalize_whitespace(line):
            return index + 1
    return 0


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class LinkExtractor:
    """Find every outbound reference on a page, with where it was found."""

    def __init__(
        self,
        site_url: Optional[str] = None,
        include_resources: bool = False,
        link_text_max_length: int = 100,
        snippet_max_length: int = 200,
        soup_factory: Optional[Callable[[str], BeautifulSoup]] = None,
    ):
        self.site_hostname = hostname_of(site_url)
        self.include_resources = include_resources
        self.link_text_max_length = link_text_max_length
        self.snippet_max_length = snippet_max_length
        self._soup_factory = soup_factory or (lambda html: BeautifulSoup(html, "html.parser"))

    @classmethod
    def from_settings(cls, settings) -> "LinkExtractor":
        return cls(
            site_url=settings.site_url,
            include_resources=settings.include_resources,
            link_text_max_length=settings.link_text_max_length,
            snippet_max_length=settings.snippet_max_length,
        )

    def _enabled_elements(self) -> list[LinkElement]:
        if self.include_resources:
            return list(LinkElement)
        return [LinkElement.ANCHOR]

    def is_internal(self, url: str, page_url: str) -> bool:
        site = self.site_hostname or hostname_of(page_url)
        target = hostname_of(url)
        return bool(site) and target == site

    def extract_links(self, html: Optional[str], page_url: str) -> list[ExtractedLink]:
        """Return the page's references in document order, deduplicated by target URL."""
        if not html:
            return []
        soup = self._soup_factory(html)
        enabled = self._enabled_elements()
        tags = [e.tag for e in enabled]

        links: list[ExtractedLink] = []
        for element in soup.find_all(tags):
            kind = LinkElement.for_tag(element.name)
            if kind is None or kind not in enabled:
                continue
            if kind is LinkElement.STYLESHEET and not is_resource_link(element):
                continue
            link = self._extract_single_link(element, kind, page_url, html)
            if link is not None:
                links.append(link)

        unique = self.deduplicate_links(links)
        logger.debug("Extracted %d links (%d unique) from %s", len(links), len(unique), page_url)
        return unique

    def _extract_single_link(self, element, kind: LinkElement, page_url: str, html: str) -> Optional[ExtractedLink]:
        href = element.get(kind.attribute)
        if not href:
            return None
        absolute = resolve_url(href, page_url)
        if absolute is None:
            return None

        if kind is LinkElement.ANCHOR:
            text = normalize_whitespace(element.get_text())
        else:
            text = element.get("alt") or element.get("title") or ""
        text = text[: self.link_text_max_length]

        element_html = str(element)
        return ExtractedLink(
            url=absolute,
            original_href=href,
            element=element.name,
            kind=kind.kind,
            link_text=text,
            is_internal=self.is_internal(absolute, page_url),
            position=SourceLocation(
                found_on=page_url,
                line=find_line_number(html, element_html),
                html=_truncate(element_html, self.snippet_max_length),
            ),
        )

    def deduplicate_links(self, links: Iterable[ExtractedLink]) -> list[ExtractedLink]:
        """Keep the first occurrence of each URL; its duplicate_count counts all occurrences."""
        links = list(links)
        counts = Counter(link.url for link in links)
        seen = set()
        unique = []
        for link in links:
            if link.url in seen:
                continue
            seen.add(link.url)
            unique.append(replace(link, duplicate_count=counts[link.url]))
        return unique

    def filter_links(
        self,
        links: Iterable[ExtractedLink],
        internal: Optional[bool] = None,
        external: Optional[bool] = None,
        elements: Optional[Iterable[str]] = None,
        exclude_domains: Optional[Iterable[str]] = None,
    ) -> list[ExtractedLink]:
        filtered = list(links)
        if internal is True:
            filtered = [link for link in filtered if link.is_internal]
        if external is True:
            filtered = [link for link in filtered if not link.is_internal]
        if elements:
            wanted = set(elements)
            filtered = [link for link in filtered if link.element in wanted]
        if exclude_domains:
            excluded = set(exclude_domains)
            filtered = [link for link in filtered if hostname_of(link.url) not in excluded]
        return filtered

    def generate_stats(self, links: Iterable[ExtractedLink]) -> dict:
        links = list(links)
        internal = sum(1 for link in links if link.is_internal)
        by_element = Counter(link.element for link in links)
        by_category = Counter(link.kind.value for link in links)
        domains = Counter(h for h in (hostname_of(link.url) for link in links) if h)
        return {
            "total": len(links),
            "internal": internal,
            "external": len(links) - internal,
            "by_element": dict(by_element),
            "by_category": dict(by_category),
            "domains": dict(domains),
        }
