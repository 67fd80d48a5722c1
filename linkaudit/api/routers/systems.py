from fastapi import APIRouter


def create_systems_router(container_env: dict, scheduler_service=None):
    """Create systems router with access to container environment config."""
    router = APIRouter(prefix="/systems", tags=["System"])

    # Never echoed back by /systems/config.
    secret_keys = {"SLACK_WEBHOOK_URL", "CRON_SECRET"}

    @router.get("/health")
    def health():
        return {
            "status": "ok",
            "scheduler_running": bool(scheduler_service is not None and scheduler_service.running),
        }

    @router.get("/config")
    def get_config():
        """Return current environment configuration values."""
        return {
            "environment": {
                key: ("***" if value else None) if key in secret_keys
                else (str(value) if value is not None else None)
                for key, value in container_env.items()
            }
        }

    return router
