"""
Wayfinder API — Health Check Route
===================================

What:  Liveness/readiness probe for Docker and load balancers.
How:   Reports whether the POI and route collections are present and
       whether GraphHopper answers its own /health endpoint.

Status levels:
    healthy   routing engine reachable
    degraded  routing engine unreachable (POI and saved-route endpoints
              still work; /routes/compute will return 502)

Missing collection files do not degrade the status: they read as empty.
"""

import logging
import time

from fastapi import APIRouter, Request

from wayfinder import __version__
from wayfinder.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(request: Request) -> HealthResponse:
    state = request.app.state

    engine_ok = await state.routing_engine.health_check()
    if not engine_ok:
        logger.warning("Health check: GraphHopper unreachable at %s", state.routing_engine.base_url)

    return HealthResponse(
        status="healthy" if engine_ok else "degraded",
        version=__version__,
        pois="available" if state.poi_store.exists() else "missing",
        routes="available" if state.route_store.exists() else "missing",
        routing_engine="available" if engine_ok else "unavailable",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
