"""
Wayfinder API — POI Schemas
============================

POIs are reference data seeded by an external loader. The models are
permissive (unknown members are passed through untouched) because this
service only reads them.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wayfinder.utils.geo import as_number


class PoiLocation(BaseModel):
    lat: Optional[float] = None
    lon: Optional[float] = None

    model_config = ConfigDict(extra="allow")

    # Unusable coordinates surface as null rather than failing the listing
    @field_validator("lat", "lon", mode="before")
    @classmethod
    def numeric_or_null(cls, v: Any) -> Optional[float]:
        return as_number(v)


class Poi(BaseModel):
    """A point of interest as stored in the POI collection."""

    id: str
    name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    location: Optional[PoiLocation] = None

    model_config = ConfigDict(extra="allow")

    @field_validator("id", "name", "category", "description", mode="before")
    @classmethod
    def as_string(cls, v: Any) -> Any:
        return v if v is None else str(v)

    @field_validator("location", mode="before")
    @classmethod
    def location_object_or_null(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else None


class PoiQuery(BaseModel):
    """Normalized echo of the filter a listing was produced with."""

    q: Optional[str] = None
    category: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    radius: Optional[int] = Field(default=None, description="Search radius in meters")
    limit: int
    offset: int


class PoiListResponse(BaseModel):
    query: PoiQuery
    count: int = Field(description="Total matches before limit/offset slicing")
    results: List[Poi]
