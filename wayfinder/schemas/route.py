"""
Wayfinder API — Route Schemas
==============================

What:  Persisted route resource, its write bodies, and the compute endpoint I/O.

Write semantics encoded here:
    RouteCreate   POST   name, public, geometry required; the rest optional
    RouteReplace  PUT    same requirements; omitted optionals reset to null/[]
                         (ownerId is not part of the body and is preserved)
    RoutePatch    PATCH  every field optional; a field that IS present is
                         validated like on create (null is not a valid name,
                         public, geometry or poiSequence)
"""

from typing import Any, List, Optional, Union

from pydantic import Field, StrictBool, StrictStr, field_validator

from wayfinder.schemas.common import CamelModel, LineString, PoiRef


def _required_name(v: str) -> str:
    name = v.strip()
    if not name:
        raise ValueError("name cannot be empty")
    return name


# ══════════════════════════════════════════════════════════════════════════
# Resource
# ══════════════════════════════════════════════════════════════════════════


class Route(CamelModel):
    """A persisted, shareable route."""

    id: str = Field(description="route_<16 hex chars>, immutable")
    name: str
    public: bool
    vehicle: Optional[str] = None
    owner_id: Optional[str] = None
    poi_sequence: List[PoiRef] = Field(default_factory=list)
    geometry: LineString
    encoded_polyline: Optional[str] = None
    created_at: str = Field(description="ISO 8601 UTC, set once")
    updated_at: str = Field(description="ISO 8601 UTC, refreshed on every mutation")

    @field_validator("poi_sequence", mode="before")
    @classmethod
    def object_entries_only(cls, v: Any) -> Any:
        # Older records may hold anything here; keep the object entries
        if not isinstance(v, list):
            return []
        return [entry for entry in v if isinstance(entry, (dict, PoiRef))]


class RouteListResponse(CamelModel):
    count: int = Field(description="Total matches before limit/offset slicing")
    results: List[Route]


# ══════════════════════════════════════════════════════════════════════════
# Write bodies
# ══════════════════════════════════════════════════════════════════════════


class RouteReplace(CamelModel):
    name: StrictStr
    public: StrictBool
    geometry: LineString
    vehicle: Optional[StrictStr] = None
    poi_sequence: List[PoiRef] = Field(default_factory=list)
    encoded_polyline: Optional[StrictStr] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _required_name(v)

    @field_validator("poi_sequence", mode="before")
    @classmethod
    def null_sequence_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class RouteCreate(RouteReplace):
    owner_id: Optional[StrictStr] = None


class RoutePatch(CamelModel):
    name: Optional[StrictStr] = None
    public: Optional[StrictBool] = None
    geometry: Optional[LineString] = None
    vehicle: Optional[StrictStr] = None
    poi_sequence: Optional[List[PoiRef]] = None
    encoded_polyline: Optional[StrictStr] = None

    # Validators only run for fields actually present in the body
    @field_validator("name", "public", "geometry", "poi_sequence", mode="before")
    @classmethod
    def not_null_when_given(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("may be omitted but not null")
        return v

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _required_name(v)


# ══════════════════════════════════════════════════════════════════════════
# Compute
# ══════════════════════════════════════════════════════════════════════════


class ComputeRequest(CamelModel):
    """
    Body of POST /routes/compute.

    `locations` is kept loosely typed: each entry is inspected by the
    compute service so errors can carry the offending index.
    """

    locations: List[Any] = Field(default_factory=list)
    vehicle: str = "car"
    format: str = "geojson"

    @field_validator("locations", mode="before")
    @classmethod
    def non_list_is_empty(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []

    @field_validator("vehicle", mode="before")
    @classmethod
    def default_vehicle(cls, v: Any) -> Any:
        return "car" if v is None else str(v)

    @field_validator("format", mode="before")
    @classmethod
    def default_format(cls, v: Any) -> Any:
        return "geojson" if v is None else str(v)


class ComputedRoute(CamelModel):
    distance_meters: float
    duration_millis: int
    geometry: Union[LineString, str]
    poi_sequence: List[PoiRef]
