"""
Wayfinder API — Route Persistence Service
==========================================

What:  CRUD over persisted routes, with filtering and pagination on list.
Who:   Called by the /routes handlers.

Lifecycle of a route:
    nonexistent ──create──▶ active ──(replace | patch)*──▶ active
                                   └──────delete────────▶ gone (id never reissued)

Write semantics:
    create   name/public/geometry required; id + both timestamps generated
    replace  same requirements; vehicle/poiSequence/encodedPolyline take the
             body's value or reset to null/[]; id, ownerId, createdAt kept
    patch    only fields present in the body are validated and applied
    delete   hard delete

Every write refreshes updatedAt. A validation failure aborts the write
before anything is persisted.

Stored records that no longer validate as a Route (hand edits, older
clients) are skipped by list with a warning; reading or updating one
directly is a server_error.
"""

import logging
import secrets
from typing import Any, Dict, Optional, Set

from pydantic import ValidationError as PydanticValidationError

from wayfinder.exceptions import NotFoundError, StorageError
from wayfinder.schemas.common import parse_payload
from wayfinder.schemas.route import (
    Route,
    RouteCreate,
    RouteListResponse,
    RoutePatch,
    RouteReplace,
)
from wayfinder.services.pagination import (
    DEFAULT_LIMIT,
    check_page,
    normalize_bool,
    page,
)
from wayfinder.services.route_repository import RouteRepository
from wayfinder.storage import Record
from wayfinder.utils.datetime_utils import utc_now_iso

logger = logging.getLogger(__name__)

ROUTE_ID_PREFIX = "route_"


def new_route_id(taken: Set[str]) -> str:
    """route_ + 16 hex chars from 8 random bytes, avoiding ids in `taken`."""
    while True:
        route_id = ROUTE_ID_PREFIX + secrets.token_hex(8)
        if route_id not in taken:
            return route_id


def _touch(record: Record) -> str:
    # Never move updatedAt backwards, even if the wall clock does
    now = utc_now_iso()
    previous = max(str(record.get("updatedAt") or ""), str(record.get("createdAt") or ""))
    return max(now, previous)


def _readable(record: Record) -> Optional[Route]:
    try:
        return Route.model_validate(record)
    except PydanticValidationError as e:
        logger.warning(
            "Unreadable stored route %r: %d validation error(s)",
            record.get("id"),
            e.error_count(),
        )
        return None


def _as_route(record: Record) -> Route:
    route = _readable(record)
    if route is None:
        raise StorageError(
            message="Stored route is unreadable.",
            context={"id": record.get("id")},
        )
    return route


class RouteService:
    """
    Business logic for persisted routes.

    Args:
        repository: RouteRepository over the route collection.
    """

    def __init__(self, repository: RouteRepository):
        self.repository = repository

    async def list_routes(
        self,
        public: Any = None,
        owner_id: Optional[str] = None,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> RouteListResponse:
        """
        Filter by exact `public` / `ownerId` equality (AND), then page.

        `public` accepts booleans or "true"/"1"/"false"/"0"; an empty or
        blank `owner_id` means no owner filter.
        """
        public_flag = normalize_bool("public", public)
        check_page(limit, offset)
        owner = owner_id.strip() if owner_id is not None else None

        records = await self.repository.all()
        if public_flag is not None:
            records = [r for r in records if bool(r.get("public", False)) is public_flag]
        if owner:
            records = [r for r in records if str(r.get("ownerId") or "") == owner]

        routes = [route for route in map(_readable, records) if route is not None]
        return RouteListResponse(
            count=len(routes),
            results=page(routes, limit, offset),
        )

    async def ensure_exists(self, route_id: str) -> None:
        """Raise NotFoundError unless `route_id` is stored."""
        if await self.repository.find(route_id) is None:
            raise NotFoundError(resource="Route", resource_id=route_id)

    async def create_route(self, payload: Dict[str, Any]) -> Route:
        body = parse_payload(RouteCreate, payload)
        now = utc_now_iso()

        def build(taken: Set[str]) -> Record:
            return Route(
                id=new_route_id(taken),
                name=body.name,
                public=body.public,
                vehicle=body.vehicle,
                owner_id=body.owner_id,
                poi_sequence=body.poi_sequence,
                geometry=body.geometry,
                encoded_polyline=body.encoded_polyline,
                created_at=now,
                updated_at=now,
            ).model_dump(by_alias=True)

        record = await self.repository.insert(build)
        logger.info("Route created: %s (%r)", record["id"], record["name"])
        return Route.model_validate(record)

    async def get_route(self, route_id: str) -> Route:
        record = await self.repository.find(route_id)
        if record is None:
            raise NotFoundError(resource="Route", resource_id=route_id)
        return _as_route(record)

    async def replace_route(self, route_id: str, payload: Dict[str, Any]) -> Route:
        def replace(existing: Record) -> Record:
            body = parse_payload(RouteReplace, payload)
            existing.update(body.model_dump(by_alias=True))
            existing["updatedAt"] = _touch(existing)
            _as_route(existing)
            return existing

        record = await self.repository.update(route_id, replace)
        if record is None:
            raise NotFoundError(resource="Route", resource_id=route_id)
        logger.info("Route replaced: %s", route_id)
        return Route.model_validate(record)

    async def patch_route(self, route_id: str, payload: Dict[str, Any]) -> Route:
        def patch(existing: Record) -> Record:
            body = parse_payload(RoutePatch, payload)
            present = {RoutePatch.model_fields[name].alias for name in body.model_fields_set}
            changes = body.model_dump(by_alias=True)
            existing.update({key: value for key, value in changes.items() if key in present})
            existing["updatedAt"] = _touch(existing)
            # A stored record broken in a field the patch leaves alone is not rewritten
            _as_route(existing)
            return existing

        record = await self.repository.update(route_id, patch)
        if record is None:
            raise NotFoundError(resource="Route", resource_id=route_id)
        logger.info("Route patched: %s", route_id)
        return Route.model_validate(record)

    async def delete_route(self, route_id: str) -> None:
        if not await self.repository.delete(route_id):
            raise NotFoundError(resource="Route", resource_id=route_id)
        logger.info("Route deleted: %s", route_id)
