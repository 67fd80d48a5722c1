from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from linkaudit.config import parse_flag
from linkaudit.exceptions import NotificationError
from linkaudit.services.link_audit_service import LinkAuditService


class CheckLinksRequest(BaseModel):
    sitemap: Optional[str] = None
    notify: Optional[str] = None
    max_pages: Optional[int] = None


def create_checks_router(audit_service: LinkAuditService, notifier):
    router = APIRouter(prefix="/api", tags=["Checks"])

    def _check_links(sitemap: Optional[str], notify: Optional[str], max_pages: Optional[int]):
        if max_pages is not None and max_pages < 0:
            raise HTTPException(status_code=400, detail="maxPages must be >= 0")
        result = audit_service.run(
            sitemap_url=sitemap or None,
            notify=parse_flag(notify, default=True),
            max_pages=max_pages,
        )
        if not result.get("success"):
            return JSONResponse(status_code=500, content=result)
        return result

    @router.get("/check-links")
    def check_links(
        sitemap: Optional[str] = None,
        notify: Optional[str] = None,
        max_pages: Optional[int] = Query(None, alias="maxPages"),
    ):
        return _check_links(sitemap, notify, max_pages)

    @router.post("/check-links")
    def check_links_post(
        req: Optional[CheckLinksRequest] = None,
        sitemap: Optional[str] = None,
        notify: Optional[str] = None,
        max_pages: Optional[int] = Query(None, alias="maxPages"),
    ):
        # body fields win over query parameters
        if req is not None:
            sitemap = req.sitemap or sitemap
            notify = req.notify if req.notify is not None else notify
            max_pages = req.max_pages if req.max_pages is not None else max_pages
        return _check_links(sitemap, notify, max_pages)

    @router.get("/last-scan")
    def last_scan():
        if audit_service.last_result is None:
            raise HTTPException(status_code=404, detail="no scan has run yet")
        return audit_service.last_result

    @router.get("/validate-sitemap")
    def validate_sitemap(sitemap: Optional[str] = None):
        return audit_service.validate_sitemap(sitemap or None)

    @router.get("/test-notification")
    def test_notification():
        try:
            notifier.send_test_message()
        except NotificationError as e:
            return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
        return {"success": True, "message": "Test notification sent"}

    return router
