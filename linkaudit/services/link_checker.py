import logging
import time
from typing import Callable, Optional, Sequence
from urllib.parse import urldefrag, urlsplit

from linkaudit.domain.link import ExtractedLink
from linkaudit.domain.link_check import LinkCheckResult, LinkStatus
from linkaudit.exceptions import HttpFetchError
from linkaudit.services.worker_pool import BatchWorkerPool
from linkaudit.utils.datetime_utils import utc_now_iso

logger = logging.getLogger(__name__)


def classify_status(status_code: int) -> LinkStatus:
    if status_code == 404:
        return LinkStatus.BROKEN
    if status_code >= 400:
        return LinkStatus.WARNING
    return LinkStatus.OK


def is_checkable(link: ExtractedLink) -> bool:
    """True if the link can be fetched at all.

    Excludes non-http(s) targets, mailto:/tel: references and anchors that
    only point somewhere else on the page they were found on.
    """
    href = (link.original_href or "").strip().lower()
    if href.startswith(("mailto:", "tel:")):
        return False
    try:
        parts = urlsplit(link.url)
    except ValueError:
        return False
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return False
    if parts.fragment and urldefrag(link.url)[0] == urldefrag(link.found_on)[0]:
        return False
    return True


class LinkChecker:
    """Verify links over HTTP and classify the outcome.

    404 -> broken, other >=400 -> warning, anything below -> ok (redirects are
    followed by the transport). Transport timeouts -> timeout; every other
    failure without a status -> error. Nothing here raises to the caller.
    """

    def __init__(
        self,
        http_service,
        worker_pool: Optional[BatchWorkerPool] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.http_service = http_service
        self.worker_pool = worker_pool or BatchWorkerPool()
        self._clock = clock

    def _elapsed_ms(self, start: float) -> int:
        return int((self._clock() - start) * 1000)

    def check_single_link(self, link: ExtractedLink) -> LinkCheckResult:
        start = self._clock()
        try:
            response = self.http_service.check_status(link.url)
        except HttpFetchError as e:
            status = LinkStatus.TIMEOUT if e.is_timeout else LinkStatus.ERROR
            logger.debug("Link %s failed (%s): %s", link.url, status.value, e.original)
            return LinkCheckResult(
                link=link,
                status=status,
                status_code=0,
                response_time_ms=self._elapsed_ms(start),
                error=str(e.original),
                error_code=e.error_code,
                checked_at=utc_now_iso(),
            )
        except Exception as e:
            logger.error("Unexpected error checking %s: %s", link.url, e, exc_info=True)
            return LinkCheckResult(
                link=link,
                status=LinkStatus.ERROR,
                status_code=0,
                response_time_ms=self._elapsed_ms(start),
                error=str(e),
                error_code=type(e).__name__,
                checked_at=utc_now_iso(),
            )

        status = classify_status(response.status_code)
        if status is not LinkStatus.OK:
            logger.info("Link %s -> %s (%s) on %s", link.url, response.status_code, status.value, link.found_on)
        return LinkCheckResult(
            link=link,
            status=status,
            status_code=response.status_code,
            response_time_ms=self._elapsed_ms(start),
            final_url=response.final_url or link.url,
            redirected=response.redirected,
            content_type=response.content_type,
            last_modified=response.last_modified,
            checked_at=utc_now_iso(),
        )

    def check_links_in_batch(
        self,
        links: Sequence[ExtractedLink],
        on_batch_start: Optional[Callable[[int, int], None]] = None,
    ) -> list[LinkCheckResult]:
        """Check `links` through the worker pool; output order matches input order."""
        if not links:
            return []
        logger.info("Checking %d links in batches of %d", len(links), self.worker_pool.max_workers)

        results = []
        for outcome in self.worker_pool.run(links, self.check_single_link, on_batch_start=on_batch_start):
            if outcome.success:
                results.append(outcome.result)
            else:
                results.append(
                    LinkCheckResult(
                        link=outcome.item,
                        status=LinkStatus.ERROR,
                        status_code=0,
                        error=str(outcome.error) or "unknown error",
                        error_code=type(outcome.error).__name__,
                        checked_at=utc_now_iso(),
                    )
                )
        return results
