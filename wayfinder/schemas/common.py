"""
Wayfinder API — Shared Schema Building Blocks
==============================================

What:  Base model with camelCase wire names, the GeoJSON LineString model,
       the error/health envelopes, and the pydantic → ValidationError bridge.
Why:   Request bodies are validated once, by schema, instead of field by field
       inside each handler. Every failure becomes one `invalid_request` error
       that names the first failing field and lists all of them.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from wayfinder.exceptions import ValidationError
from wayfinder.utils.geo import as_number

ModelT = TypeVar("ModelT", bound=BaseModel)


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire (poiSequence, ownerId, ...)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _numeric(value: Any) -> float:
    number = as_number(value)
    if number is None:
        raise ValueError("coordinate values must be numeric")
    return number


Coordinate = Annotated[float, BeforeValidator(_numeric)]


class LineString(BaseModel):
    """
    GeoJSON LineString: at least two positions, each [lon, lat, ...].

    Extra members (bbox, crs) are dropped; only type and coordinates persist.
    """

    type: Literal["LineString"]
    coordinates: List[List[Coordinate]] = Field(min_length=2)

    @field_validator("coordinates")
    @classmethod
    def positions_have_lon_lat(cls, v: List[List[float]]) -> List[List[float]]:
        for position in v:
            if len(position) < 2:
                raise ValueError("each position must be [lon, lat]")
        return v


class PoiRef(CamelModel):
    """
    One entry of a route's POI sequence.

    `poiId` is optional: stored routes written by older clients may carry
    entries without one, and reads must not fail on them.
    """

    poi_id: Optional[str] = None
    name: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class ErrorResponse(BaseModel):
    """
    Uniform error envelope returned by every endpoint.

    Example:
        {"code": "not_found", "message": "Route not found", "details": {"id": "route_x"}}
    """

    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error context")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy or degraded")
    version: str
    pois: str = Field(description="POI collection: available or missing")
    routes: str = Field(description="Route collection: available or missing")
    routing_engine: str = Field(description="GraphHopper: available or unavailable")
    uptime_seconds: float


class TeamMember(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None

    model_config = ConfigDict(extra="allow")

    @field_validator("id", "name", "role", mode="before")
    @classmethod
    def as_string(cls, v: Any) -> Any:
        return v if v is None else str(v)


class AboutResponse(BaseModel):
    team: List[TeamMember] = Field(description="People behind this deployment")


# ══════════════════════════════════════════════════════════════════════════
# Pydantic → invalid_request
# ══════════════════════════════════════════════════════════════════════════


def summarize_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Reduce pydantic/FastAPI error dicts to JSON-safe {loc, msg, type}."""
    return [
        {
            "loc": [str(part) for part in err.get("loc", ())],
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in errors
    ]


def parse_payload(model: Type[ModelT], payload: Any) -> ModelT:
    """
    Validate a decoded JSON body against `model`.

    Raises:
        ValidationError: listing every failing field; `details.field` is
            the first one (dotted path, wire names).
    """
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        errors = summarize_errors(exc.errors())
        first = errors[0] if errors else {"loc": [], "msg": "invalid"}
        field = ".".join(first["loc"]) or None
        message = f"{field}: {first['msg']}" if field else first["msg"]
        raise ValidationError(message=message, field=field, context={"errors": errors})
