"""Health and status endpoint for the Stock Watch API."""

import time
from datetime import UTC, datetime

from fastapi import APIRouter, Request

from .. import __version__
from ..config.logging import get_logger
from ..ormdb.database import check_database_health
from .models.responses import StatusResponse

logger = get_logger(__name__)
router = APIRouter()

# Track application start time for uptime calculation
_app_start_time = time.time()


@router.get("/status", response_model=StatusResponse, summary="API Status")
def api_status(request: Request) -> StatusResponse:
    """
    Report API identity and health.

    The API is "healthy" when the database answers and "degraded" otherwise;
    the endpoint itself always succeeds.
    """
    db_health = check_database_health()
    status = "healthy" if db_health["status"] == "healthy" else "degraded"

    logger.debug("Status check completed", status=status)
    return StatusResponse.create(
        data={
            "api": "Stock Portfolio API",
            "version": __version__,
            "status": status,
            "timestamp": datetime.now(UTC).isoformat(),
            "uptimeSeconds": round(time.time() - _app_start_time, 3),
            "services": {"database": db_health},
        },
        request_id=getattr(request.state, "request_id", None),
    )
