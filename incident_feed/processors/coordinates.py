"""
Coordinate extraction for incident payloads.

Incidents arrive either with a GeoJSON point (``location.coordinates =
[lng, lat]``) or with legacy flat/nested latitude/longitude fields. Both are
normalized to a validated Coordinates pair.
"""

import math
from typing import Any, Optional, Sequence

from ..models import Coordinates

# Legacy field paths, tried in order; first non-null wins
LAT_PATHS = (("latitude",), ("lat",), ("location", "latitude"), ("location", "lat"))
LNG_PATHS = (("longitude",), ("lng",), ("location", "longitude"), ("location", "lng"))


def safe_float(value: Any) -> Optional[float]:
    """Coerce numbers and numeric strings to a finite float."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def is_valid_coordinate(lat: Optional[float], lng: Optional[float]) -> bool:
    if lat is None or lng is None:
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def _lookup(payload: dict, path: Sequence[str]) -> Any:
    value: Any = payload
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def _first_non_null(payload: dict, paths) -> Any:
    for path in paths:
        value = _lookup(payload, path)
        if value is not None:
            return value
    return None


def _geojson_pair(payload: dict) -> Optional[tuple]:
    location = payload.get("location")
    if not isinstance(location, dict):
        return None
    coords = location.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    lng, lat = coords[0], coords[1]
    if lng is None or lat is None:
        return None
    return lat, lng


def extract_coordinates(payload: Any) -> Optional[Coordinates]:
    """
    Return the payload's coordinates, or None when missing or invalid.

    Never raises: callers drop incidents that come back as None.
    """
    if not isinstance(payload, dict):
        return None

    pair = _geojson_pair(payload)
    if pair is None:
        pair = (_first_non_null(payload, LAT_PATHS), _first_non_null(payload, LNG_PATHS))

    lat = safe_float(pair[0])
    lng = safe_float(pair[1])
    if not is_valid_coordinate(lat, lng):
        return None
    return Coordinates(lat=lat, lng=lng)
