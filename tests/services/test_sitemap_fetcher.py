from unittest.mock import Mock

import pytest
import requests

from linkaudit.domain.http_response import HttpResponse
from linkaudit.exceptions import HttpFetchError, SitemapFetchError
from linkaudit.services.sitemap_fetcher import SitemapFetcher


def _urlset(*urls):
    entries = "".join(f"<url><loc>{u}</loc></url>" for u in urls)
    return f'<?xml version="1.0"?><urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'


def _index(*urls):
    entries = "".join(f"<sitemap><loc>{u}</loc></sitemap>" for u in urls)
    return f'<?xml version="1.0"?><sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'


def _http(documents):
    """Fake HttpService serving `documents` (url -> xml text or exception)."""
    def fetch_sitemap(url):
        doc = documents.get(url)
        if isinstance(doc, Exception):
            raise doc
        if doc is None:
            return HttpResponse(404, "")
        return HttpResponse(200, doc)

    http = Mock()
    http.fetch_sitemap.side_effect = fetch_sitemap
    return http


def test_urlset_returns_locs():
    http = _http({"https://example.com/sitemap.xml": _urlset("https://example.com/a", " https://example.com/b ")})
    urls = SitemapFetcher(http).fetch_sitemap("https://example.com/sitemap.xml")
    assert urls == ["https://example.com/a", "https://example.com/b"]


def test_urlset_without_namespace():
    http = _http({"https://example.com/s.xml": "<urlset><url><loc>https://example.com/a</loc></url></urlset>"})
    assert SitemapFetcher(http).fetch_sitemap("https://example.com/s.xml") == ["https://example.com/a"]


def test_non_http_entries_dropped():
    http = _http({"https://example.com/s.xml": _urlset("https://example.com/a", "/relative", "ftp://example.com/x")})
    assert SitemapFetcher(http).fetch_sitemap("https://example.com/s.xml") == ["https://example.com/a"]


def test_index_is_flattened():
    http = _http({
        "https://example.com/index.xml": _index("https://example.com/s1.xml", "https://example.com/s2.xml"),
        "https://example.com/s1.xml": _urlset("https://example.com/a"),
        "https://example.com/s2.xml": _urlset("https://example.com/b", "https://example.com/c"),
    })
    urls = SitemapFetcher(http).fetch_sitemap("https://example.com/index.xml")
    assert urls == ["https://example.com/a", "https://example.com/b", "https://example.com/c"]


def test_failed_sub_sitemap_is_skipped():
    http = _http({
        "https://example.com/index.xml": _index("https://example.com/broken.xml", "https://example.com/ok.xml"),
        "https://example.com/broken.xml": "<not xml",
        "https://example.com/ok.xml": _urlset("https://example.com/a"),
    })
    assert SitemapFetcher(http).fetch_sitemap("https://example.com/index.xml") == ["https://example.com/a"]


def test_cyclic_index_terminates():
    http = _http({
        "https://example.com/a.xml": _index("https://example.com/b.xml"),
        "https://example.com/b.xml": _index("https://example.com/a.xml", "https://example.com/pages.xml"),
        "https://example.com/pages.xml": _urlset("https://example.com/p"),
    })
    assert SitemapFetcher(http).fetch_sitemap("https://example.com/a.xml") == ["https://example.com/p"]


def test_depth_limit_stops_recursion():
    http = _http({
        "https://example.com/0.xml": _index("https://example.com/1.xml"),
        "https://example.com/1.xml": _index("https://example.com/2.xml"),
        "https://example.com/2.xml": _urlset("https://example.com/deep"),
    })
    assert SitemapFetcher(http, max_depth=1).fetch_sitemap("https://example.com/0.xml") == []
    assert SitemapFetcher(http, max_depth=2).fetch_sitemap("https://example.com/0.xml") == ["https://example.com/deep"]


def test_top_level_transport_failure_raises():
    http = _http({"https://example.com/s.xml": HttpFetchError("https://example.com/s.xml", requests.exceptions.ConnectionError("down"))})
    with pytest.raises(SitemapFetchError) as exc:
        SitemapFetcher(http).fetch_sitemap("https://example.com/s.xml")
    assert exc.value.sitemap_url == "https://example.com/s.xml"


def test_top_level_404_raises():
    with pytest.raises(SitemapFetchError):
        SitemapFetcher(_http({})).fetch_sitemap("https://example.com/missing.xml")


def test_top_level_invalid_xml_raises():
    http = _http({"https://example.com/s.xml": "<urlset><url>"})
    with pytest.raises(SitemapFetchError) as exc:
        SitemapFetcher(http).fetch_sitemap("https://example.com/s.xml")
    assert "invalid XML" in exc.value.reason


def test_validate_sitemap():
    http = Mock()
    http.head.return_value = HttpResponse(200, "", "application/xml", content_length="2048")
    result = SitemapFetcher(http).validate_sitemap("https://example.com/s.xml")
    assert result == {"valid": True, "status": 200, "content_type": "application/xml", "size": "2048"}

    http.head.return_value = HttpResponse(404, "")
    assert SitemapFetcher(http).validate_sitemap("https://example.com/s.xml")["valid"] is False

    http.head.side_effect = HttpFetchError("https://example.com/s.xml", requests.exceptions.Timeout("slow"))
    result = SitemapFetcher(http).validate_sitemap("https://example.com/s.xml")
    assert result["valid"] is False
    assert result["error"] == "slow"
