"""
Wayfinder API — FastAPI Dependencies
=====================================

What:  Request-scoped accessors injected into route handlers with Depends().
Why:   Services are built once per application by create_app() and kept on
       app.state, so handlers never reach for module globals and tests can
       build isolated apps.
"""

import json
from typing import Any, Dict

from fastapi import Request

from wayfinder.exceptions import ValidationError
from wayfinder.services.poi_service import PoiService
from wayfinder.services.route_compute_service import RouteComputeService
from wayfinder.services.route_service import RouteService

UTF8_BOM = b"\xef\xbb\xbf"


async def json_object_body(request: Request) -> Dict[str, Any]:
    """
    Decode the request body as a JSON object.

    A leading UTF-8 BOM is tolerated (some Windows clients send one).
    Anything that is not a JSON object is an invalid_request.
    """
    raw = await request.body()
    if raw.startswith(UTF8_BOM):
        raw = raw[len(UTF8_BOM):]
    try:
        payload = json.loads(raw)
    except ValueError:
        raise ValidationError(message="Invalid JSON body.")
    if not isinstance(payload, dict):
        raise ValidationError(message="Invalid JSON body.")
    return payload


def get_poi_service(request: Request) -> PoiService:
    return request.app.state.poi_service


def get_route_service(request: Request) -> RouteService:
    return request.app.state.route_service


def get_route_compute_service(request: Request) -> RouteComputeService:
    return request.app.state.route_compute_service
