"""
Wayfinder API — POI Route Handlers
===================================

GET /pois        filtered, paginated listing ({query, count, results})
GET /pois/{id}   single POI

Geo parameters arrive as raw strings so a non-numeric lat/lon is reported
as the API's own invalid_request, not a framework validation error.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from wayfinder.dependencies import get_poi_service
from wayfinder.schemas.common import ErrorResponse
from wayfinder.schemas.poi import Poi, PoiListResponse
from wayfinder.services.pagination import DEFAULT_LIMIT
from wayfinder.services.poi_service import PoiService

router = APIRouter(tags=["POIs"])


@router.get(
    "/pois",
    response_model=PoiListResponse,
    responses={400: {"model": ErrorResponse}},
    summary="List and filter points of interest",
)
async def list_pois(
    response: Response,
    q: Optional[str] = Query(default=None, description="Substring of name, category or description"),
    category: Optional[str] = Query(default=None, description="Exact category (case-insensitive)"),
    lat: Optional[str] = Query(default=None, description="Latitude of the search center"),
    lon: Optional[str] = Query(default=None, description="Longitude of the search center"),
    radius: Optional[str] = Query(default=None, description="Search radius in meters (>= 1)"),
    limit: int = Query(default=DEFAULT_LIMIT, description="Page size, 1..500"),
    offset: int = Query(default=0, description="Items to skip, >= 0"),
    service: PoiService = Depends(get_poi_service),
) -> PoiListResponse:
    result = await service.list_pois(
        q=q,
        category=category,
        lat=lat,
        lon=lon,
        radius=radius,
        limit=limit,
        offset=offset,
    )
    response.headers["X-Total-Count"] = str(result.count)
    return result


@router.get(
    "/pois/{poi_id}",
    response_model=Poi,
    responses={404: {"model": ErrorResponse}},
    summary="Get a single point of interest",
)
async def get_poi(
    poi_id: str,
    service: PoiService = Depends(get_poi_service),
) -> Poi:
    return await service.get_poi(poi_id)
