"""Dependency injection container for the application."""
from dependency_injector import containers, providers
import requests

from linkaudit import config as env
from linkaudit.domain.scan_settings import DEFAULT_SITEMAP_URL, DEFAULT_USER_AGENT, ScanSettings
from linkaudit.services.http_service import make_http_session
from linkaudit.services.link_audit_service import LinkAuditService
from linkaudit.services.notifier import DEFAULT_CHANNEL, SlackNotifier
from linkaudit.services.scan_orchestrator import ScanOrchestratorFactory
from linkaudit.services.scheduler_service import SchedulerService


# Environment variables used by the container (read via `linkaudit.config` helpers).
#
# SITEMAP_URL (str, default: DEFAULT_SITEMAP_URL)
#   Sitemap scanned when a request does not name one.
#
# SITE_URL (str | optional)
#   Origin whose hostname marks a link as internal. Falls back to the page's own host.
#
# USER_AGENT (str, default: "LinkAudit/1.0 (Internal SEO Tool)")
#
# REQUEST_TIMEOUT (float seconds, default: 10)
#   Per-request timeout for page fetches and link checks.
#
# MAX_CONCURRENT_CHECKS (int, default: 10)
#   Link checks in flight per batch.
#
# MAX_REDIRECTS (int, default: 5)
#
# HTTP_RETRIES (int, default: 0)
#   Connection retries mounted on the requests adapter.
#
# BATCH_PAUSE_SECONDS (float seconds, default: 1.0)
#   Pause between link-check batches.
#
# PAGE_DELAY_SECONDS (float seconds, default: 0.5)
#   Pause between pages.
#
# INCLUDE_RESOURCES (bool, default: false)
#   Also extract stylesheets, scripts, iframes, images and media.
#
# SLACK_WEBHOOK_URL (str | optional)
#   Incoming webhook; notifications are skipped when unset.
#
# SLACK_CHANNEL (str, default: "#tech-alerts")
#
# CRON_SECRET (str | optional)
#   Bearer token for /api/cron. Read at request time by `linkaudit.api.auth`.
#
# LINKAUDIT_SCHEDULE (str | optional)
#   Crontab string for the in-process daily run, e.g. "0 8 * * *".
#
# PORT (int, default: 8000)
ENV = {
    "SITEMAP_URL": env.get_str_env("SITEMAP_URL", DEFAULT_SITEMAP_URL),
    "SITE_URL": env.get_optional_str_env("SITE_URL"),
    "USER_AGENT": env.get_str_env("USER_AGENT", DEFAULT_USER_AGENT),
    "REQUEST_TIMEOUT": env.get_float_env("REQUEST_TIMEOUT", 10.0),
    "MAX_CONCURRENT_CHECKS": env.get_int_env("MAX_CONCURRENT_CHECKS", 10),
    "MAX_REDIRECTS": env.get_int_env("MAX_REDIRECTS", 5),
    "HTTP_RETRIES": env.get_int_env("HTTP_RETRIES", 0),
    "BATCH_PAUSE_SECONDS": env.get_float_env("BATCH_PAUSE_SECONDS", 1.0),
    "PAGE_DELAY_SECONDS": env.get_float_env("PAGE_DELAY_SECONDS", 0.5),
    "INCLUDE_RESOURCES": env.get_bool_env("INCLUDE_RESOURCES", False),
    "SLACK_WEBHOOK_URL": env.get_optional_str_env("SLACK_WEBHOOK_URL"),
    "SLACK_CHANNEL": env.get_str_env("SLACK_CHANNEL", DEFAULT_CHANNEL),
    "CRON_SECRET": env.get_optional_str_env("CRON_SECRET"),
    "LINKAUDIT_SCHEDULE": env.get_optional_str_env("LINKAUDIT_SCHEDULE"),
    "PORT": env.get_int_env("PORT", 8000),
}


class Container(containers.DeclarativeContainer):
    """Dependency injection container for the LinkAudit application."""

    # Configuration
    config = providers.Configuration(default=ENV)

    scan_settings = providers.Singleton(
        ScanSettings,
        sitemap_url=config.SITEMAP_URL.as_(str),
        site_url=config.SITE_URL,
        user_agent=config.USER_AGENT.as_(str),
        request_timeout=config.REQUEST_TIMEOUT.as_(float),
        max_concurrent=config.MAX_CONCURRENT_CHECKS.as_(int),
        max_redirects=config.MAX_REDIRECTS.as_(int),
        retries=config.HTTP_RETRIES.as_(int),
        batch_pause_seconds=config.BATCH_PAUSE_SECONDS.as_(float),
        page_delay_seconds=config.PAGE_DELAY_SECONDS.as_(float),
        include_resources=config.INCLUDE_RESOURCES.as_(bool),
    )

    orchestrator_factory = providers.Singleton(
        ScanOrchestratorFactory,
        session_factory=providers.Object(make_http_session),
    )

    notifier = providers.Singleton(
        SlackNotifier,
        webhook_url=config.SLACK_WEBHOOK_URL,
        channel=config.SLACK_CHANNEL.as_(str),
        site_url=config.SITE_URL,
        http_client=providers.Object(requests.post),
    )

    link_audit_service = providers.Singleton(
        LinkAuditService,
        settings=scan_settings,
        orchestrator_factory=orchestrator_factory,
        notifier=notifier,
    )

    # Scheduler - Singleton instance
    scheduler_service = providers.Singleton(
        SchedulerService,
        run_callback=link_audit_service.provided.run_scheduled,
        schedule=config.LINKAUDIT_SCHEDULE,
    )
