from unittest.mock import Mock

from fastapi.responses import JSONResponse

from linkaudit.api.auth import require_cron_secret
from linkaudit.api.routers.cron import create_cron_router


def _get_route(router, path: str, method: str):
    for route in router.routes:
        if getattr(route, "path", None) != path:
            continue
        if method.upper() in getattr(route, "methods", set()):
            return route
    raise AssertionError(f"No route found for {method} {path}")


def test_cron_route_requires_secret():
    route = _get_route(create_cron_router(Mock()), "/api/cron", "GET")
    assert any(dep.call is require_cron_secret for dep in route.dependant.dependencies)


def test_cron_runs_scheduled_profile():
    service = Mock(run_scheduled=Mock(return_value={"success": True, "mode": "cron-daily"}))
    endpoint = _get_route(create_cron_router(service), "/api/cron", "GET").endpoint

    assert endpoint(_auth=True) == {"success": True, "mode": "cron-daily"}
    service.run_scheduled.assert_called_once_with()
    service.run.assert_not_called()


def test_cron_failure_is_500():
    service = Mock(run_scheduled=Mock(return_value={"success": False, "error": "x"}))
    endpoint = _get_route(create_cron_router(service), "/api/cron", "GET").endpoint

    resp = endpoint(_auth=True)
    assert isinstance(resp, JSONResponse)
    assert resp.status_code == 500
