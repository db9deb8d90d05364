import math
from typing import Any, Optional, Tuple

EARTH_RADIUS_M = 6371000.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two lat/lon points."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    # Rounding can push `a` a hair above 1 for antipodal points
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


def as_number(value: Any) -> Optional[float]:
    """
    Coerce a JSON/query value to float.

    Accepts ints, floats and numeric strings; rejects booleans, NaN/inf
    and everything else by returning None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def poi_latlon(poi: Any) -> Optional[Tuple[float, float]]:
    """(lat, lon) of a POI record, or None when its location is unusable."""
    if not isinstance(poi, dict):
        return None
    location = poi.get("location")
    if not isinstance(location, dict):
        return None
    lat = as_number(location.get("lat"))
    lon = as_number(location.get("lon"))
    if lat is None or lon is None:
        return None
    return lat, lon
