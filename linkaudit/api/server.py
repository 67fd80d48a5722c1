from fastapi import FastAPI

from linkaudit.api.routers import create_checks_router, create_cron_router, create_systems_router


def create_app(container) -> FastAPI:
    """Build the FastAPI app from providers in `container`."""
    app = FastAPI(title="LinkAudit", version="1.0.0")

    audit_service = container.link_audit_service()
    notifier = container.notifier()
    scheduler_service = container.scheduler_service()

    app.include_router(create_checks_router(audit_service, notifier))
    app.include_router(create_cron_router(audit_service))
    app.include_router(create_systems_router(container.config(), scheduler_service))
    return app
