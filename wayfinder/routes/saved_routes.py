"""
Wayfinder API — Persisted Route Handlers
=========================================

What:  CRUD endpoints for named, shareable routes.

    POST   /routes        create       201 Route
    GET    /routes        list         200 {count, results}
    GET    /routes/{id}   fetch        200 Route
    PUT    /routes/{id}   replace      200 Route
    PATCH  /routes/{id}   partial      200 Route
    DELETE /routes/{id}   delete       204

Bodies are decoded by json_object_body and validated by RouteService, so a
bad body and a bad field both come back as invalid_request (400). PUT and
PATCH look the id up first: an unknown id is 404 even with a broken body.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from wayfinder.dependencies import get_route_service, json_object_body
from wayfinder.schemas.common import ErrorResponse
from wayfinder.schemas.route import Route, RouteListResponse
from wayfinder.services.pagination import DEFAULT_LIMIT
from wayfinder.services.route_service import RouteService

router = APIRouter(prefix="/routes", tags=["Routes"])

NOT_FOUND = {404: {"description": "Route not found", "model": ErrorResponse}}
BAD_REQUEST = {400: {"description": "Invalid request", "model": ErrorResponse}}


@router.post(
    "",
    status_code=201,
    response_model=Route,
    responses=BAD_REQUEST,
    summary="Persist a route",
)
async def create_route(
    payload: Dict[str, Any] = Depends(json_object_body),
    service: RouteService = Depends(get_route_service),
) -> Route:
    return await service.create_route(payload)


@router.get(
    "",
    response_model=RouteListResponse,
    responses=BAD_REQUEST,
    summary="List persisted routes",
)
async def list_routes(
    response: Response,
    public: Optional[str] = Query(default=None, description="true/1 or false/0"),
    owner_id: Optional[str] = Query(default=None, alias="ownerId"),
    limit: int = Query(default=DEFAULT_LIMIT, description="Page size, 1..500"),
    offset: int = Query(default=0, description="Items to skip, >= 0"),
    service: RouteService = Depends(get_route_service),
) -> RouteListResponse:
    result = await service.list_routes(
        public=public, owner_id=owner_id, limit=limit, offset=offset
    )
    response.headers["X-Total-Count"] = str(result.count)
    return result


@router.get(
    "/{route_id}",
    response_model=Route,
    responses=NOT_FOUND,
    summary="Get a persisted route",
)
async def get_route(
    route_id: str,
    service: RouteService = Depends(get_route_service),
) -> Route:
    return await service.get_route(route_id)


@router.put(
    "/{route_id}",
    response_model=Route,
    responses={**BAD_REQUEST, **NOT_FOUND},
    summary="Replace a persisted route",
    description=(
        "Full replacement: name, public and geometry are required. vehicle, "
        "poiSequence and encodedPolyline reset to null/[] when omitted. "
        "id, ownerId and createdAt are preserved."
    ),
)
async def replace_route(
    route_id: str,
    request: Request,
    service: RouteService = Depends(get_route_service),
) -> Route:
    # An unknown id is a 404 whatever the body holds
    await service.ensure_exists(route_id)
    payload = await json_object_body(request)
    return await service.replace_route(route_id, payload)


@router.patch(
    "/{route_id}",
    response_model=Route,
    responses={**BAD_REQUEST, **NOT_FOUND},
    summary="Partially update a persisted route",
)
async def patch_route(
    route_id: str,
    request: Request,
    service: RouteService = Depends(get_route_service),
) -> Route:
    await service.ensure_exists(route_id)
    payload = await json_object_body(request)
    return await service.patch_route(route_id, payload)


@router.delete(
    "/{route_id}",
    status_code=204,
    response_class=Response,
    responses=NOT_FOUND,
    summary="Delete a persisted route",
)
async def delete_route(
    route_id: str,
    service: RouteService = Depends(get_route_service),
) -> Response:
    await service.delete_route(route_id)
    return Response(status_code=204)
