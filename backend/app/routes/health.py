"""
Twinshot Backend — Health Check and Index Routes
==================================================

What:  GET /health for monitoring and load balancer health checks, and GET / as a
       minimal API index.
How:   Pings the database with SELECT 1 through the app's Database handle.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app import __version__
from app.schemas.common import HealthResponse, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Process start, for uptime reporting
_start_time = time.time()


@router.get("/", response_model=MessageResponse, summary="API index")
async def index() -> MessageResponse:
    return MessageResponse(message=f"Twinshot API v{__version__} is running")


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    """
    Ping the database and report aggregate status.

    Returns 200 with status "healthy", or 503 with status "unhealthy" when
    the database cannot answer SELECT 1.
    """
    connected = await request.app.state.database.ping()
    if not connected:
        logger.warning("Health check: database unreachable")

    body = HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        database="connected" if connected else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    return JSONResponse(status_code=200 if connected else 503, content=body.model_dump())
