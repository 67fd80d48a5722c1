import os
import logging
import secrets
from fastapi import HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

logger = logging.getLogger(__name__)

# Bearer token auth for the scheduled trigger endpoint.
# No CRON_SECRET must fail-closed (deny by default).
security = HTTPBearer(auto_error=False)


def require_cron_secret(creds: HTTPAuthorizationCredentials = Security(security)):
    token = creds.credentials if creds is not None else None
    secret = os.getenv("CRON_SECRET")
    if not secret:
        logger.error("CRON_SECRET not set - cron endpoint is disabled")
        raise HTTPException(status_code=503, detail="CRON_SECRET not configured")
    if not secrets.compare_digest(token or "", secret):
        logger.warning("Rejected cron request with invalid token")
        raise HTTPException(status_code=401, detail="Unauthorized - invalid cron token")
    return True
