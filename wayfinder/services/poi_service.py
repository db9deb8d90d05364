"""
Wayfinder API — POI Query Service
==================================

What:  Read-only access to the POI collection: filtered listing and lookup.
How:   The collection is loaded fresh per call (no caching) and scanned
       linearly; filters compose with AND in a fixed order:

           text (q) → category → geo radius → count → offset/limit

    q         case-insensitive substring of name OR category OR description
    category  case-insensitive exact match
    geo       haversine distance to (lat, lon) <= radius meters; lat, lon and
              radius must be given together. POIs without a usable
              location never match.
"""

import logging
from typing import Any, Dict, List, Optional

from wayfinder.exceptions import NotFoundError, ValidationError
from wayfinder.schemas.poi import Poi, PoiListResponse, PoiQuery
from wayfinder.services.pagination import DEFAULT_LIMIT, check_page, page
from wayfinder.storage import CollectionStore, Record
from wayfinder.utils.geo import as_number, haversine_m, poi_latlon

logger = logging.getLogger(__name__)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _text(poi: Record, key: str) -> str:
    value = poi.get(key)
    return "" if value is None else str(value).lower()


class PoiService:
    """
    Args:
        store: The POI collection (read-only; never locked or written).
    """

    def __init__(self, store: CollectionStore):
        self.store = store

    async def load(self) -> List[Record]:
        records = await self.store.read_all()
        return [p for p in records if isinstance(p, dict) and p.get("id") is not None]

    async def pois_by_id(self) -> Dict[str, Record]:
        return {str(p["id"]): p for p in await self.load()}

    async def list_pois(
        self,
        q: Optional[str] = None,
        category: Optional[str] = None,
        lat: Any = None,
        lon: Any = None,
        radius: Any = None,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> PoiListResponse:
        """
        List POIs matching every given filter.

        Raises:
            ValidationError: bad limit/offset, partial geo filter, non-numeric
                lat/lon, or radius below 1 meter.
        """
        q = _blank_to_none(q)
        category = _blank_to_none(category)
        check_page(limit, offset)

        geo = self._parse_geo(lat, lon, radius)
        pois = await self.load()

        if q is not None:
            needle = q.lower()
            pois = [
                p for p in pois
                if needle in _text(p, "name")
                or needle in _text(p, "category")
                or needle in _text(p, "description")
            ]

        if category is not None:
            wanted = category.lower()
            pois = [p for p in pois if _text(p, "category") == wanted]

        if geo is not None:
            center_lat, center_lon, radius_m = geo
            pois = [p for p in pois if self._within(p, center_lat, center_lon, radius_m)]

        return PoiListResponse(
            query=PoiQuery(
                q=q,
                category=category,
                lat=geo[0] if geo else None,
                lon=geo[1] if geo else None,
                radius=geo[2] if geo else None,
                limit=limit,
                offset=offset,
            ),
            count=len(pois),
            results=[Poi.model_validate(p) for p in page(pois, limit, offset)],
        )

    async def get_poi(self, poi_id: str) -> Poi:
        for poi in await self.load():
            if str(poi["id"]) == poi_id:
                return Poi.model_validate(poi)
        raise NotFoundError(resource="POI", resource_id=poi_id)

    @staticmethod
    def _parse_geo(lat: Any, lon: Any, radius: Any):
        if lat is None and lon is None and radius is None:
            return None
        if lat is None or lon is None or radius is None:
            raise ValidationError(
                message="Missing lat/lon/radius parameters.",
                context={"lat": lat, "lon": lon, "radius": radius},
            )

        lat_f = as_number(lat)
        lon_f = as_number(lon)
        if lat_f is None or lon_f is None:
            raise ValidationError(
                message="lat/lon must be numeric.",
                context={"lat": lat, "lon": lon},
            )

        radius_f = as_number(radius)
        radius_m = int(radius_f) if radius_f is not None else 0
        if radius_m < 1:
            raise ValidationError(
                message="radius must be >= 1 (meters).",
                context={"radius": radius},
            )
        return lat_f, lon_f, radius_m

    @staticmethod
    def _within(poi: Record, lat: float, lon: float, radius_m: int) -> bool:
        point = poi_latlon(poi)
        if point is None:
            return False
        return haversine_m(lat, lon, point[0], point[1]) <= radius_m
