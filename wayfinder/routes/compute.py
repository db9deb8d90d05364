"""
Wayfinder API — Route Compute Handler
======================================

POST /routes/compute
    {"locations": [{"poiId": "p1"}, {"lat": 52.5, "lon": 13.4}],
     "vehicle": "car", "format": "geojson"}
→ 200 {distanceMeters, durationMillis, geometry, poiSequence}

400 for malformed input, 502 when GraphHopper fails or answers with an
unexpected shape.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from wayfinder.dependencies import get_route_compute_service, json_object_body
from wayfinder.schemas.common import ErrorResponse
from wayfinder.schemas.route import ComputedRoute
from wayfinder.services.route_compute_service import RouteComputeService

router = APIRouter(tags=["Routing"])


@router.post(
    "/routes/compute",
    response_model=ComputedRoute,
    responses={
        400: {"model": ErrorResponse},
        502: {"description": "GraphHopper failure", "model": ErrorResponse},
    },
    summary="Compute a route through POIs and/or coordinates",
)
async def compute_route(
    payload: Dict[str, Any] = Depends(json_object_body),
    service: RouteComputeService = Depends(get_route_compute_service),
) -> ComputedRoute:
    return await service.compute(payload)
