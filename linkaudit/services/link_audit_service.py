import logging
import time
from typing import Callable, Optional

from linkaudit.domain.scan_report import ScanReport
from linkaudit.domain.scan_settings import ScanSettings
from linkaudit.exceptions import EmptyScanInputError, SitemapFetchError
from linkaudit.services.scan_orchestrator import ScanOrchestratorFactory
from linkaudit.utils.datetime_utils import utc_now_iso

logger = logging.getLogger(__name__)

CRON_MODE = "cron-daily"


def detect_error_stage(error: BaseException) -> str:
    if isinstance(error, (SitemapFetchError, EmptyScanInputError)):
        return "sitemap-fetch"
    message = str(error).lower()
    if "sitemap" in message or "xml" in message:
        return "sitemap-fetch"
    if "scan" in message or "link" in message:
        return "link-scanning"
    if "slack" in message or "notification" in message:
        return "notification"
    if "timeout" in message:
        return "infrastructure"
    return "unknown"


def _percent(part: float, whole: float, digits: int = 1) -> str:
    if not whole:
        return f"{0:.{digits}f}%"
    return f"{(part / whole) * 100:.{digits}f}%"


def build_health(report: ScanReport) -> dict:
    stats = report.stats
    errors = len(report.errors_404)
    return {
        "status": "healthy" if errors == 0 else "issues-detected",
        "error_rate": _percent(errors, stats.links_checked, digits=2),
        "critical_issues": errors,
        "minor_issues": stats.warnings,
    }


class LinkAuditService:
    """Full pipeline: sitemap -> cleaning -> page scan -> 404 notification.

    `run` serves on-demand requests, `run_scheduled` the daily job. Both
    return plain dicts ready to be serialized as JSON. A run that fails
    (sitemap unreachable, nothing to scan) comes back with `success: False`
    instead of raising.
    """

    def __init__(
        self,
        settings: ScanSettings,
        orchestrator_factory: Optional[ScanOrchestratorFactory] = None,
        notifier=None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.orchestrator_factory = orchestrator_factory or ScanOrchestratorFactory()
        self.notifier = notifier
        self._clock = clock
        self.last_result: Optional[dict] = None

    def _collect(self, settings: ScanSettings):
        """Fetch, clean and cap the sitemap for `settings`."""
        http_service = self.orchestrator_factory.build_http_service(settings)
        fetcher = self.orchestrator_factory.build_sitemap_fetcher(settings, http_service)
        cleaner = self.orchestrator_factory.build_cleaner(settings)

        raw_urls = fetcher.fetch_sitemap(settings.sitemap_url)
        if not raw_urls:
            raise EmptyScanInputError("No URLs found in sitemap")

        clean_urls = cleaner.process(raw_urls)
        cleaning_report = cleaner.generate_report(raw_urls, clean_urls)
        logger.info("Sitemap cleaned: %d -> %d URLs", len(raw_urls), len(clean_urls))

        urls_to_scan = clean_urls if settings.max_pages is None else clean_urls[: settings.max_pages]
        if len(urls_to_scan) < len(clean_urls):
            logger.info("Scan limited to %d pages (of %d)", len(urls_to_scan), len(clean_urls))
        return http_service, raw_urls, clean_urls, urls_to_scan, cleaning_report

    def _notify(self, report: ScanReport) -> bool:
        if self.notifier is None:
            return False
        stats = report.stats.to_dict()
        stats["duration"] = report.duration
        return self.notifier.notify_errors_404(report.errors_404, stats)

    def _failure(self, error: BaseException, context: dict) -> dict:
        logger.exception("Link audit failed: %s", error)
        if self.notifier is not None:
            try:
                self.notifier.notify_technical_error(error, context)
            except Exception:
                logger.exception("Technical error notification failed")
        return {"success": False, "error": str(error), "timestamp": utc_now_iso()}

    def validate_sitemap(self, sitemap_url: Optional[str] = None) -> dict:
        settings = self.settings.with_overrides(sitemap_url=sitemap_url)
        fetcher = self.orchestrator_factory.build_sitemap_fetcher(settings)
        result = fetcher.validate_sitemap(settings.sitemap_url)
        result["sitemap_url"] = settings.sitemap_url
        return result

    def run(self, sitemap_url: Optional[str] = None, notify: bool = True, max_pages: Optional[int] = None) -> dict:
        settings = self.settings.with_overrides(sitemap_url=sitemap_url, max_pages=max_pages)
        logger.info("Starting link audit of %s (notify=%s, max_pages=%s)", settings.sitemap_url, notify, settings.max_pages)

        try:
            http_service, raw_urls, clean_urls, urls_to_scan, cleaning_report = self._collect(settings)
            orchestrator = self.orchestrator_factory.build(settings, http_service)
            report = orchestrator.scan_website(urls_to_scan)
        except Exception as e:
            return self._failure(e, {"sitemap_url": settings.sitemap_url, "stage": detect_error_stage(e)})

        sent = False
        if notify and report.errors_404:
            sent = self._notify(report)
        elif not report.errors_404:
            logger.info("No 404 errors found; no notification")
        else:
            logger.info("Notifications disabled for this run")

        logger.info("Link audit finished: %d 404 errors", len(report.errors_404))
        self.last_result = {
            "success": True,
            "timestamp": utc_now_iso(),
            "scan": {
                "sitemap_url": settings.sitemap_url,
                "original_urls": len(raw_urls),
                "cleaned_urls": len(clean_urls),
                "scanned_urls": len(urls_to_scan),
                "cleaning_report": cleaning_report.to_dict(),
            },
            "results": {
                "duration": report.duration,
                "total_links_checked": report.total_links,
                "errors_404_count": len(report.errors_404),
                "errors_404": [e.to_dict() for e in report.errors_404],
                "stats": report.stats.to_dict(),
            },
            "notification": {
                "enabled": notify,
                "sent": sent,
                "errors_404_count": len(report.errors_404),
            },
        }
        return self.last_result

    def run_scheduled(self) -> dict:
        """Bounded daily run using the cron profile; notifies only on 404s."""
        started = self._clock()
        settings = self.settings.for_cron()
        logger.info("Scheduled link audit starting (max_pages=%s)", settings.max_pages)

        try:
            http_service, raw_urls, clean_urls, urls_to_scan, _ = self._collect(settings)
            orchestrator = self.orchestrator_factory.build(settings, http_service)
            report = orchestrator.scan_website(urls_to_scan)
        except Exception as e:
            elapsed_ms = int((self._clock() - started) * 1000)
            result = self._failure(
                e,
                {"stage": detect_error_stage(e), "execution_time_ms": elapsed_ms, "environment": CRON_MODE},
            )
            result["mode"] = CRON_MODE
            result["execution_time_ms"] = elapsed_ms
            return result

        errors = report.errors_404
        notification = {"sent": False, "reason": "no-errors-404"}
        if errors:
            if self.notifier is None or not self.notifier.enabled:
                logger.warning("404 errors found but no notification sink configured")
                notification = {"sent": False, "reason": "no-slack-config", "errors_count": len(errors)}
            else:
                sent = self._notify(report)
                notification = {
                    "sent": sent,
                    "reason": "errors-404-found" if sent else "slack-error",
                    "errors_count": len(errors),
                }

        stats = report.stats
        result = {
            "success": True,
            "mode": CRON_MODE,
            "timestamp": utc_now_iso(),
            "execution_time_ms": int((self._clock() - started) * 1000),
            "sitemap": {
                "original": len(raw_urls),
                "cleaned": len(clean_urls),
                "scanned": len(urls_to_scan),
                "skipped": len(clean_urls) - len(urls_to_scan),
            },
            "scan": {
                "duration": report.duration,
                "pages_scanned": stats.pages_scanned,
                "pages_successful": stats.pages_successful,
                "pages_error": stats.pages_error,
                "links_total": stats.links_checked,
                "links_internal": stats.links_internal,
                "links_external": stats.links_external,
            },
            "results": {
                "errors_404": len(errors),
                "errors_other": stats.errors_other,
                "warnings": stats.warnings,
                "timeouts": stats.timeouts,
            },
            "notification": notification,
            "health": build_health(report),
        }
        logger.info(
            "Scheduled link audit done in %dms: %d pages, %d links, %d 404s, notified=%s",
            result["execution_time_ms"],
            stats.pages_scanned,
            stats.links_checked,
            len(errors),
            notification["sent"],
        )
        self.last_result = result
        return result
