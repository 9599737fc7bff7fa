"""
TravelStory Backend — Health Check Route
=========================================

What:  GET /health for Docker health checks and load balancer probes.
How:   Runs SELECT 1 against the database of the serving app.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from travelstory import __version__
from travelstory.context import ServiceContext
from travelstory.dependencies import get_context
from travelstory.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(context: ServiceContext = Depends(get_context)):
    db_status = "connected"
    overall = "healthy"

    try:
        await context.database.ping()
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall != "healthy":
        return JSONResponse(status_code=503, content=body.model_dump(mode="json", by_alias=True))
    return body
