from unittest.mock import Mock

import requests

from linkaudit.domain.http_response import HttpResponse
from linkaudit.domain.link import ExtractedLink, LinkKind, SourceLocation
from linkaudit.domain.link_check import LinkStatus
from linkaudit.exceptions import HttpFetchError
from linkaudit.services.link_checker import LinkChecker, classify_status, is_checkable
from linkaudit.services.worker_pool import BatchWorkerPool


PAGE = "https://example.com/page"


def _link(url, href=None, internal=True):
    return ExtractedLink(
        url=url,
        original_href=href or url,
        element="a",
        kind=LinkKind.NAVIGATION,
        link_text="text",
        is_internal=internal,
        position=SourceLocation(found_on=PAGE, line=1),
    )


def _checker(http_service):
    return LinkChecker(http_service, worker_pool=BatchWorkerPool(max_workers=2, pause_seconds=0, sleep=lambda s: None))


def test_classify_status():
    assert classify_status(200) is LinkStatus.OK
    assert classify_status(301) is LinkStatus.OK
    assert classify_status(404) is LinkStatus.BROKEN
    assert classify_status(403) is LinkStatus.WARNING
    assert classify_status(500) is LinkStatus.WARNING


def test_404_is_broken():
    http = Mock()
    http.check_status.return_value = HttpResponse(404, "", final_url="https://example.com/x", requested_url="https://example.com/x")
    result = _checker(http).check_single_link(_link("https://example.com/x"))

    assert result.status is LinkStatus.BROKEN
    assert result.status_code == 404
    assert result.is_404 is True


def test_500_is_warning_not_404():
    http = Mock()
    http.check_status.return_value = HttpResponse(500, "")
    result = _checker(http).check_single_link(_link("https://example.com/x"))

    assert result.status is LinkStatus.WARNING
    assert result.is_404 is False


def test_200_is_ok_with_redirect_recorded():
    http = Mock()
    http.check_status.return_value = HttpResponse(
        200, "ok", "text/html", final_url="https://example.com/new", requested_url="https://example.com/old"
    )
    result = _checker(http).check_single_link(_link("https://example.com/old"))

    assert result.status is LinkStatus.OK
    assert result.redirected is True
    assert result.final_url == "https://example.com/new"
    assert result.content_type == "text/html"


def test_timeout_has_status_zero():
    http = Mock()
    http.check_status.side_effect = HttpFetchError("https://slow.example.com", requests.exceptions.ReadTimeout("read timed out"))
    result = _checker(http).check_single_link(_link("https://slow.example.com"))

    assert result.status is LinkStatus.TIMEOUT
    assert result.status_code == 0
    assert result.error_code == "ReadTimeout"


def test_connection_error_is_error():
    http = Mock()
    http.check_status.side_effect = HttpFetchError("https://nope.invalid", requests.exceptions.ConnectionError("dns"))
    result = _checker(http).check_single_link(_link("https://nope.invalid"))

    assert result.status is LinkStatus.ERROR
    assert result.status_code == 0
    assert "dns" in result.error


def test_unexpected_exception_is_error_not_raised():
    http = Mock()
    http.check_status.side_effect = RuntimeError("bug")
    result = _checker(http).check_single_link(_link("https://example.com/x"))

    assert result.status is LinkStatus.ERROR
    assert result.error == "bug"


def test_batch_results_match_input_order_and_length():
    codes = {"https://example.com/1": 200, "https://example.com/2": 404, "https://example.com/3": 503}
    http = Mock()
    http.check_status.side_effect = lambda url: HttpResponse(codes[url], "")
    links = [_link(u) for u in codes]

    results = _checker(http).check_links_in_batch(links)

    assert [r.url for r in results] == list(codes)
    assert [r.status for r in results] == [LinkStatus.OK, LinkStatus.BROKEN, LinkStatus.WARNING]


def test_batch_empty():
    assert _checker(Mock()).check_links_in_batch([]) == []


def test_is_checkable():
    assert is_checkable(_link("https://example.com/a"))
    assert not is_checkable(_link("mailto:a@example.com"))
    assert not is_checkable(_link("ftp://example.com/file"))
    assert not is_checkable(_link(PAGE + "#section", href="#section"))
    assert is_checkable(_link("https://example.com/other#section", href="/other#section"))
