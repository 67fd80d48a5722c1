import logging
from collections import OrderedDict
from typing import Callable, Optional, Sequence
from urllib.parse import urlsplit

import requests

from linkaudit.domain.scan_report import Error404
from linkaudit.exceptions import NotificationError
from linkaudit.utils.datetime_utils import utc_now_iso

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL = "#tech-alerts"
DEFAULT_USERNAME = "LinkAudit"
DEFAULT_ICON = ":broken_link:"

MAX_INTERNAL_EXAMPLES = 5
MAX_EXTERNAL_DOMAINS = 3
MAX_PER_DOMAIN = 3


def truncate_url(url: str, max_length: int = 60) -> str:
    if len(url) <= max_length:
        return url
    try:
        parts = urlsplit(url)
    except ValueError:
        return url[: max_length - 3] + "..."
    host = parts.hostname or ""
    keep = max(max_length - len(host) - 3, 0)
    return host + parts.path[:keep] + "..."


def get_page_title(url: str) -> str:
    """Last non-empty path segment, "home" for the root."""
    try:
        segments = [s for s in urlsplit(url).path.split("/") if s]
    except ValueError:
        return "unknown page"
    return segments[-1] if segments else "home"


def group_by_domain(errors: Sequence[Error404]) -> "OrderedDict[str, list[Error404]]":
    grouped: "OrderedDict[str, list[Error404]]" = OrderedDict()
    for error in errors:
        try:
            domain = urlsplit(error.url).hostname
        except ValueError:
            continue
        if domain:
            grouped.setdefault(domain, []).append(error)
    return grouped


def _section(text: str) -> dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _context(text: str) -> dict:
    return {"type": "context", "elements": [{"type": "plain_text", "text": text}]}


class SlackNotifier:
    """Post scan results to a Slack incoming webhook.

    Only 404s are reported; an empty list never produces a message.
    Delivery failures are logged and reported as False, except for
    `send_test_message` where the caller explicitly wants to know.
    """

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        channel: str = DEFAULT_CHANNEL,
        username: str = DEFAULT_USERNAME,
        icon_emoji: str = DEFAULT_ICON,
        site_url: Optional[str] = None,
        http_client: Callable = requests.post,
        timeout: float = 10,
    ):
        self.webhook_url = webhook_url
        self.channel = channel
        self.username = username
        self.icon_emoji = icon_emoji
        self.site_url = site_url
        self.http_client = http_client
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    def _post(self, message: dict) -> None:
        payload = {"channel": self.channel, "username": self.username, "icon_emoji": self.icon_emoji}
        payload.update(message)
        resp = self.http_client(self.webhook_url, json=payload, timeout=self.timeout)
        status = getattr(resp, "status_code", 200)
        if status >= 400:
            raise NotificationError(f"Slack webhook returned status {status}")

    def notify_errors_404(self, errors: Sequence[Error404], stats: dict) -> bool:
        if not self.enabled:
            logger.warning("SLACK_WEBHOOK_URL not configured; skipping notification")
            return False
        if not errors:
            logger.info("No 404 errors to report")
            return False

        logger.info("Sending Slack notification for %d 404 errors", len(errors))
        try:
            self._post(self.build_message(errors, stats))
        except (requests.exceptions.RequestException, NotificationError) as e:
            logger.error("Slack notification failed: %s", e)
            return False
        logger.info("Slack notification sent")
        return True

    def build_message(self, errors: Sequence[Error404], stats: dict) -> dict:
        internal = [e for e in errors if e.is_internal]
        external = [e for e in errors if not e.is_internal]

        blocks = [
            {"type": "header", "text": {"type": "plain_text", "text": "Link audit report"}},
            _section(
                f"*{len(errors)} 404 errors detected*\n"
                f"Pages scanned: {stats.get('pages_scanned', 0)}\n"
                f"Links checked: {stats.get('links_checked', 0)}\n"
                f"Duration: {stats.get('duration') or 'N/A'}"
            ),
            {"type": "divider"},
        ]

        if internal:
            blocks.append(_section(f"*Internal errors: {len(internal)}*"))
            for error in internal[:MAX_INTERNAL_EXAMPLES]:
                blocks.append(
                    _section(
                        f"• <{error.url}|{truncate_url(error.url)}>\n"
                        f"  Found on: <{error.found_on}|{get_page_title(error.found_on)}>\n"
                        f"  Text: \"{error.link_text or 'N/A'}\"\n"
                        f"  Line: {error.position.line or 'N/A'}"
                    )
                )
            if len(internal) > MAX_INTERNAL_EXAMPLES:
                blocks.append(_context(f"... and {len(internal) - MAX_INTERNAL_EXAMPLES} more internal errors"))

        if external:
            blocks.append({"type": "divider"})
            blocks.append(_section(f"*External errors: {len(external)}*"))
            for domain, domain_errors in list(group_by_domain(external).items())[:MAX_EXTERNAL_DOMAINS]:
                lines = "\n".join(f"• <{e.url}|{truncate_url(e.url)}>" for e in domain_errors[:MAX_PER_DOMAIN])
                blocks.append(_section(f"*{domain}* ({len(domain_errors)})\n{lines}"))

        blocks.append({"type": "divider"})
        if self.site_url:
            blocks.append(
                {
                    "type": "actions",
                    "elements": [
                        {"type": "button", "text": {"type": "plain_text", "text": "Open site"}, "url": self.site_url}
                    ],
                }
            )
        blocks.append(_context(f"Automated scan • {utc_now_iso()}"))

        return {"text": f"*{len(errors)} broken links detected*", "blocks": blocks}

    def notify_technical_error(self, error: BaseException, context: Optional[dict] = None) -> bool:
        """Report a scan that could not complete. Never raises."""
        if not self.enabled:
            return False
        context = context or {}
        details = "\n".join(f"{k}: {v}" for k, v in context.items())
        message = {
            "text": "Link audit failed",
            "blocks": [
                {"type": "header", "text": {"type": "plain_text", "text": "Link audit failed"}},
                _section(f"*{type(error).__name__}*: {error}" + (f"\n{details}" if details else "")),
                _context(f"Reported at {utc_now_iso()}"),
            ],
        }
        try:
            self._post(message)
        except Exception:
            logger.exception("Could not deliver technical error notification")
            return False
        return True

    def send_test_message(self) -> bool:
        if not self.enabled:
            raise NotificationError("SLACK_WEBHOOK_URL not configured")
        message = {
            "text": "LinkAudit connection test",
            "blocks": [
                _section("*Connection test succeeded*\n\nLinkAudit is configured and can send notifications."),
            ],
        }
        try:
            self._post(message)
        except requests.exceptions.RequestException as e:
            raise NotificationError(f"Slack test failed: {e}") from e
        return True
