"""
Wayfinder API — Route Compute Service
======================================

What:  Turns an ordered list of locations into a route from GraphHopper.
Who:   Called by POST /routes/compute.

Flow:
    ┌────────────┐    ┌──────────────────┐    ┌─────────────┐    ┌────────────┐
    │  Validate  │───▶│ Resolve poiId →  │───▶│ GraphHopper │───▶│ Normalize  │
    │  body      │    │ (lat, lon)       │    │ GET /route  │    │ output     │
    └────────────┘    └──────────────────┘    └─────────────┘    └────────────┘

    A location is either {"poiId": ...} (resolved against the POI
    collection) or {"lat": ..., "lon": ...}. Only POI-backed locations appear
    in the output poiSequence, in the order supplied.

    The geometry must come back in the requested encoding. A GeoJSON request
    answered with a polyline (or vice versa) is a graphhopper_error; there
    is no fallback to the other encoding.
"""

import logging
from typing import Any, Dict, List, Tuple

from wayfinder.exceptions import RoutingEngineError, ValidationError
from wayfinder.schemas.common import LineString, PoiRef, parse_payload
from wayfinder.schemas.route import ComputedRoute, ComputeRequest
from wayfinder.services.graphhopper_client import GraphHopperClient
from wayfinder.services.poi_service import PoiService
from wayfinder.utils.geo import as_number, poi_latlon

logger = logging.getLogger(__name__)

FORMAT_GEOJSON = "geojson"
FORMAT_POLYLINE = "encodedpolyline"
SUPPORTED_FORMATS = (FORMAT_GEOJSON, FORMAT_POLYLINE)

MIN_LOCATIONS = 2


class RouteComputeService:
    """
    Args:
        poi_service: Source of POI coordinates for poiId locations.
        engine:      GraphHopper client.
    """

    def __init__(self, poi_service: PoiService, engine: GraphHopperClient):
        self.poi_service = poi_service
        self.engine = engine

    async def compute(self, payload: Dict[str, Any]) -> ComputedRoute:
        """
        Raises:
            ValidationError: fewer than 2 locations, unknown format, a
                location that is neither a known poiId nor numeric lat/lon.
            RoutingEngineError: any GraphHopper failure or unexpected shape.
        """
        body = parse_payload(ComputeRequest, payload)

        if len(body.locations) < MIN_LOCATIONS:
            raise ValidationError(
                message=f"locations must be an array with at least {MIN_LOCATIONS} items.",
                context={"minItems": MIN_LOCATIONS},
            )
        if body.format not in SUPPORTED_FORMATS:
            raise ValidationError(
                message="format must be geojson or encodedpolyline.",
                context={"format": body.format},
            )

        points, poi_sequence = await self._resolve(body.locations)

        path = await self.engine.route(
            points,
            profile=body.vehicle,
            points_encoded=body.format == FORMAT_POLYLINE,
        )

        computed = ComputedRoute(
            distance_meters=float(as_number(path.get("distance")) or 0.0),
            duration_millis=int(as_number(path.get("time")) or 0),
            geometry=self._geometry(path.get("points"), body.format),
            poi_sequence=poi_sequence,
        )
        logger.info(
            "Route computed: %d points, profile=%s, %.0fm",
            len(points),
            body.vehicle,
            computed.distance_meters,
        )
        return computed

    async def _resolve(
        self, locations: List[Any]
    ) -> Tuple[List[Tuple[float, float]], List[PoiRef]]:
        pois_by_id = await self.poi_service.pois_by_id()
        points: List[Tuple[float, float]] = []
        poi_sequence: List[PoiRef] = []

        for i, location in enumerate(locations):
            if not isinstance(location, dict):
                raise ValidationError(
                    message="Each location must be an object.",
                    context={"index": i},
                )

            if location.get("poiId") is not None:
                poi_id = str(location["poiId"])
                poi = pois_by_id.get(poi_id)
                point = poi_latlon(poi)
                if point is None:
                    raise ValidationError(
                        message="Unknown poiId or POI missing coordinates.",
                        context={"index": i, "poiId": poi_id},
                    )
                points.append(point)
                name = poi.get("name")
                poi_sequence.append(PoiRef(poi_id=poi_id, name=None if name is None else str(name)))
                continue

            lat = as_number(location.get("lat"))
            lon = as_number(location.get("lon"))
            if lat is None or lon is None:
                raise ValidationError(
                    message="Each location must have either poiId or lat/lon.",
                    context={"index": i, "location": location},
                )
            points.append((lat, lon))

        return points, poi_sequence

    @staticmethod
    def _geometry(points: Any, fmt: str):
        if fmt == FORMAT_GEOJSON:
            if isinstance(points, dict) and "type" in points and "coordinates" in points:
                try:
                    return LineString.model_validate(
                        {"type": "LineString", "coordinates": points["coordinates"]}
                    )
                except ValueError:
                    pass
            raise RoutingEngineError(
                message="GraphHopper did not return GeoJSON points.",
                upstream_status=200,
                context={"path.points": points},
            )

        if not isinstance(points, str) or not points:
            raise RoutingEngineError(
                message="GraphHopper did not return encoded polyline.",
                upstream_status=200,
                context={"path.points": points},
            )
        return points
