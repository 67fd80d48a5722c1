import logging
import time
from enum import Enum
from typing import Callable, Optional, Sequence
from urllib.parse import urlsplit

from linkaudit.domain.page_scan import PageScanResult, PageStats
from linkaudit.domain.scan_report import Error404, ScanReport
from linkaudit.domain.scan_settings import ScanSettings
from linkaudit.exceptions import EmptyScanInputError, HttpFetchError
from linkaudit.services.http_service import HttpService, make_http_session
from linkaudit.services.link_checker import LinkChecker, is_checkable
from linkaudit.services.link_extractor import LinkExtractor
from linkaudit.services.sitemap_cleaner import SitemapCleaner
from linkaudit.services.sitemap_fetcher import SitemapFetcher
from linkaudit.services.worker_pool import BatchWorkerPool
from linkaudit.utils.datetime_utils import utc_now_iso

logger = logging.getLogger(__name__)


class ScanState(str, Enum):
    IDLE = "idle"
    FETCHING_PAGE = "fetching_page"
    EXTRACTING = "extracting"
    VERIFYING_BATCH = "verifying_batch"
    RECORDING = "recording"
    DONE = "done"
    ABORTED = "aborted"


class CrawlOrchestrator:
    """Drives a scan: one page at a time, link checks batched per page.

    This class owns the scan control-flow (page fetch, extraction, filtering,
    batched verification, aggregation). It does NOT construct dependencies;
    see `ScanOrchestratorFactory`.

    Page failures and link failures are recorded in the report; only an empty
    URL list aborts the scan.
    """

    def __init__(
        self,
        *,
        http_service,
        link_extractor: LinkExtractor,
        link_checker: LinkChecker,
        page_delay_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.http_service = http_service
        self.link_extractor = link_extractor
        self.link_checker = link_checker
        self.page_delay_seconds = page_delay_seconds
        self._sleep = sleep
        self._clock = clock
        self.state = ScanState.IDLE

    def _transition(self, state: ScanState) -> None:
        logger.debug("Scan state %s -> %s", self.state.value, state.value)
        self.state = state

    def scan_single_page(self, page_url: str) -> PageScanResult:
        """Fetch one page, extract its links and verify the checkable subset."""
        self._transition(ScanState.FETCHING_PAGE)
        try:
            response = self.http_service.fetch(page_url)
        except HttpFetchError as e:
            logger.warning("Fetch failed for page %s: %s", page_url, e)
            return PageScanResult.inaccessible(page_url, 0, str(e.original), scanned_at=utc_now_iso())

        if response.status_code != 200:
            logger.warning("Page %s returned status %s", page_url, response.status_code)
            return PageScanResult.inaccessible(
                page_url,
                response.status_code,
                f"Page returned status {response.status_code}",
                scanned_at=utc_now_iso(),
            )

        self._transition(ScanState.EXTRACTING)
        try:
            links = self.link_extractor.extract_links(response.text, page_url)
        except Exception as e:
            logger.error("Link extraction failed for %s: %s", page_url, e, exc_info=True)
            return PageScanResult.inaccessible(page_url, response.status_code, f"Link extraction failed: {e}", scanned_at=utc_now_iso())

        to_check = [link for link in links if is_checkable(link)]
        logger.info("Page %s: %d links found, %d to check", page_url, len(links), len(to_check))

        checked = self.link_checker.check_links_in_batch(
            to_check,
            on_batch_start=lambda index, size: self._transition(ScanState.VERIFYING_BATCH),
        )

        return PageScanResult(
            page_url=page_url,
            accessible=True,
            status_code=response.status_code,
            links=links,
            checked_links=checked,
            stats=PageStats.from_results(links, checked),
            scanned_at=utc_now_iso(),
        )

    def _record(self, report: ScanReport, page: PageScanResult) -> None:
        self._transition(ScanState.RECORDING)
        report.add_page(page)
        report.stats.pages_scanned += 1
        if page.accessible:
            report.stats.pages_successful += 1
        else:
            report.stats.pages_error += 1

        for result in page.checked_links:
            report.stats.record_link(result)
            if result.is_404:
                report.add_404(result)

    def scan_website(self, urls: Sequence[str]) -> ScanReport:
        """Scan every URL in order and return the finalized report.

        Raises EmptyScanInputError (state -> aborted) when `urls` is empty.
        """
        urls = list(urls or [])
        self._transition(ScanState.IDLE)
        if not urls:
            self._transition(ScanState.ABORTED)
            raise EmptyScanInputError("No URLs to scan")

        logger.info("Starting scan of %d pages", len(urls))
        started = self._clock()
        report = ScanReport(total_pages=len(urls))

        for index, url in enumerate(urls, start=1):
            logger.info("Progress: %d/%d (%.1f%%) %s", index, len(urls), index / len(urls) * 100, url)
            page = self.scan_single_page(url)
            self._record(report, page)
            if index < len(urls) and self.page_delay_seconds > 0:
                self._sleep(self.page_delay_seconds)

        report.finalize(self._clock() - started)
        self._transition(ScanState.DONE)
        logger.info(
            "Scan finished in %s: %d pages, %d links checked, %d 404s",
            report.duration,
            report.stats.pages_scanned,
            report.stats.links_checked,
            len(report.errors_404),
        )
        return report

    @staticmethod
    def generate_error_report(errors_404: Sequence[Error404]) -> dict:
        """Group 404s by the page they were found on and by target domain."""
        by_page: dict[str, list[dict]] = {}
        by_domain: dict[str, list[dict]] = {}
        for error in errors_404:
            by_page.setdefault(error.found_on, []).append(error.to_dict())
            try:
                domain = urlsplit(error.url).hostname
            except ValueError:
                domain = None
            if domain:
                by_domain.setdefault(domain, []).append(error.to_dict())

        internal = sum(1 for e in errors_404 if e.is_internal)
        return {
            "total_errors": len(errors_404),
            "internal_errors": internal,
            "external_errors": len(errors_404) - internal,
            "errors_by_page": by_page,
            "errors_by_domain": by_domain,
        }



class ScanOrchestratorFactory:
    """Factory that builds scan collaborators for a given `ScanSettings`.

    Each run gets components configured from one settings object, so the
    on-demand and scheduled profiles can use different timeouts and
    concurrency without touching globals.
    """

    def __init__(
        self,
        session_factory: Callable[..., object] = make_http_session,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session_factory = session_factory
        self.sleep = sleep

    def build_http_service(self, settings: ScanSettings) -> HttpService:
        session = self.session_factory(max_redirects=settings.max_redirects, retries=settings.retries)
        return HttpService(
            user_agent=settings.user_agent,
            http_client=session.get,
            timeout=settings.request_timeout,
            head_client=session.head,
        )

    def build_sitemap_fetcher(self, settings: ScanSettings, http_service: Optional[HttpService] = None) -> SitemapFetcher:
        return SitemapFetcher(http_service or self.build_http_service(settings), max_depth=settings.sitemap_max_depth)

    def build_cleaner(self, settings: ScanSettings) -> SitemapCleaner:
        return SitemapCleaner.from_settings(settings)

    def build(self, settings: ScanSettings, http_service: Optional[HttpService] = None) -> CrawlOrchestrator:
        http_service = http_service or self.build_http_service(settings)
        pool = BatchWorkerPool(
            max_workers=settings.max_concurrent,
            pause_seconds=settings.batch_pause_seconds,
            sleep=self.sleep,
        )
        return CrawlOrchestrator(
            http_service=http_service,
            link_extractor=LinkExtractor.from_settings(settings),
            link_checker=LinkChecker(http_service, worker_pool=pool),
            page_delay_seconds=settings.page_delay_seconds,
            sleep=self.sleep,
        )
