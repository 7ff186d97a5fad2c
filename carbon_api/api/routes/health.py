"""Health & Version — unauthenticated liveness and API version endpoints.

Invariants:
    - GET /health always returns 200 if the process is up
    - timestamps are ISO-8601 UTC; uptime is seconds since the app was built
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request, status

logger = logging.getLogger(__name__)
router = APIRouter(tags=["System"])


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "ok",
        "timestamp": _utc_timestamp(),
        "uptime": round(time.monotonic() - request.app.state.started_at, 3),
        "environment": request.app.state.settings.environment,
    }


@router.get("/api/version")
async def api_version(request: Request):
    return {
        "version": request.app.state.settings.api_version,
        "status": "active",
        "timestamp": _utc_timestamp(),
    }
