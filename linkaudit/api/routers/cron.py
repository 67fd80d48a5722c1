from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from linkaudit.api.auth import require_cron_secret
from linkaudit.services.link_audit_service import LinkAuditService


def create_cron_router(audit_service: LinkAuditService):
    router = APIRouter(prefix="/api", tags=["Cron"])

    @router.get("/cron")
    def cron(_auth: bool = Depends(require_cron_secret)):
        """Scheduled trigger: bounded scan, notification only when 404s are found."""
        result = audit_service.run_scheduled()
        if not result.get("success"):
            return JSONResponse(status_code=500, content=result)
        return result

    return router
