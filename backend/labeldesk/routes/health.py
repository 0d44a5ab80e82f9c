"""
LabelDesk Backend: Health Check Route
=======================================

What:  GET /health for container and load balancer probes.
How:   Runs SELECT 1 through the LabelDatabase on app.state.

Status levels:
    healthy:   database reachable
    unhealthy: database unreachable (still HTTP 200; the body says why)
"""

import time

from fastapi import APIRouter, Request

from labeldesk import __version__
from labeldesk.schemas.label import HealthResponse

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request) -> HealthResponse:
    database = request.app.state.database
    connected = await database.health_check()

    return HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        database="connected" if connected else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
