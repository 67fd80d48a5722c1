from unittest.mock import Mock

from linkaudit.api.routers.systems import create_systems_router


def _get_endpoint(router, path: str, method: str):
    for route in router.routes:
        if getattr(route, "path", None) != path:
            continue
        methods = getattr(route, "methods", set())
        if method.upper() in methods:
            return route.endpoint
    raise AssertionError(f"No route found for {method} {path}")


def test_health_reports_scheduler_state():
    router = create_systems_router({}, Mock(running=True))
    assert _get_endpoint(router, "/systems/health", "GET")() == {"status": "ok", "scheduler_running": True}

    router = create_systems_router({})
    assert _get_endpoint(router, "/systems/health", "GET")()["scheduler_running"] is False


def test_config_masks_secrets():
    env = {
        "SITEMAP_URL": "https://example.com/s.xml",
        "MAX_CONCURRENT_CHECKS": 10,
        "SLACK_WEBHOOK_URL": "https://hooks.slack.test/secret",
        "CRON_SECRET": None,
        "SITE_URL": None,
    }
    body = _get_endpoint(create_systems_router(env), "/systems/config", "GET")()

    assert body["environment"] == {
        "SITEMAP_URL": "https://example.com/s.xml",
        "MAX_CONCURRENT_CHECKS": "10",
        "SLACK_WEBHOOK_URL": "***",
        "CRON_SECRET": None,
        "SITE_URL": None,
    }
