"""
Tests for run.py main() and the dependency injection container.
"""
from unittest.mock import Mock, patch

from run import main
from linkaudit.container import Container
from linkaudit.domain.scan_settings import ScanSettings
from linkaudit.services.link_audit_service import LinkAuditService
from linkaudit.services.notifier import SlackNotifier


def test_container_builds_settings_from_config():
    container = Container()
    container.config.SITEMAP_URL.from_value("https://example.com/s.xml")
    container.config.MAX_CONCURRENT_CHECKS.from_value(3)
    container.config.INCLUDE_RESOURCES.from_value(True)

    settings = container.scan_settings()

    assert isinstance(settings, ScanSettings)
    assert settings.sitemap_url == "https://example.com/s.xml"
    assert settings.max_concurrent == 3
    assert settings.include_resources is True


def test_container_creates_services():
    container = Container()
    container.config.SLACK_WEBHOOK_URL.from_value("https://hooks.slack.test/x")

    service = container.link_audit_service()
    notifier = container.notifier()

    assert isinstance(service, LinkAuditService)
    assert isinstance(notifier, SlackNotifier)
    assert service.notifier is notifier
    assert notifier.enabled is True
    assert container.scheduler_service() is not None


def test_main_accepts_injected_container():
    """main() can accept an injected container for testing."""
    container = Container()
    scheduler = Mock()
    container.scheduler_service.override(scheduler)

    with patch('run.uvicorn.run') as mock_uvicorn:
        main(container=container)

        assert mock_uvicorn.called
        scheduler.start.assert_called_once()
        scheduler.shutdown.assert_called_once_with(wait=False)
