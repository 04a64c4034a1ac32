"""Great-circle distance between viewer and incidents."""

import math
from typing import Optional

from ..models import Coordinates, ViewerLocation

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: Coordinates, b: Coordinates) -> float:
    """Haversine distance in kilometres."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.lng - a.lng)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    h = min(1.0, h)  # rounding near antipodes
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def distance_between(viewer: Optional[ViewerLocation], coords: Coordinates) -> Optional[float]:
    if viewer is None:
        return None
    return haversine_km(viewer.coordinates, coords)
