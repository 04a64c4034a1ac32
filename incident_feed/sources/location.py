"""
Viewer location providers.

The viewer location is resolved once per session. Resolution is wrapped
in a timeout and falls back to a default location instead of blocking.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional
import logging

import httpx

from ..errors import LocationUnavailable, location_unavailable
from ..models import ViewerLocation
from ..processors.coordinates import is_valid_coordinate, safe_float

logger = logging.getLogger(__name__)

IP_LOCATION_URL = "http://ip-api.com/json/"


class LocationProvider(ABC):
    """Source of the viewer's position."""

    @abstractmethod
    async def locate(self) -> ViewerLocation:
        """Return the viewer location or raise LocationUnavailable."""


class StaticLocationProvider(LocationProvider):
    """A fixed, configured position."""

    def __init__(self, lat: float, lng: float):
        if not is_valid_coordinate(lat, lng):
            raise ValueError(f"Invalid viewer location: ({lat}, {lng})")
        self.location = ViewerLocation(lat=lat, lng=lng)

    async def locate(self) -> ViewerLocation:
        return self.location


class UnavailableLocationProvider(LocationProvider):
    """Always fails, so the session uses the default location."""

    def __init__(self, reason: str = "No location source configured"):
        self.reason = reason

    async def locate(self) -> ViewerLocation:
        raise location_unavailable(self.reason)


class IpLocationProvider(LocationProvider):
    """Approximate position from an IP geolocation service (ip-api JSON shape)."""

    def __init__(self, url: str = IP_LOCATION_URL, client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self._client = client

    async def locate(self) -> ViewerLocation:
        try:
            if self._client is not None:
                response = await self._client.get(self.url)
            else:
                async with httpx.AsyncClient(timeout=10.0) as client:
                    response = await client.get(self.url)
            response.raise_for_status()
            data = response.json()
        except Exception as e:
            raise location_unavailable(f"IP lookup failed: {e}", original=e) from e

        if not isinstance(data, dict) or data.get("status", "success") != "success":
            raise location_unavailable(f"IP lookup returned no position: {data!r}"[:200])

        lat = safe_float(data.get("lat", data.get("latitude")))
        lng = safe_float(data.get("lon", data.get("lng", data.get("longitude"))))
        if not is_valid_coordinate(lat, lng):
            raise location_unavailable("IP lookup returned invalid coordinates")
        return ViewerLocation(lat=lat, lng=lng)


async def resolve_viewer_location(
    provider: LocationProvider,
    timeout: float,
    default: ViewerLocation,
) -> ViewerLocation:
    """
    Resolve the viewer location, falling back to ``default`` on failure or timeout.

    The fallback is always flagged ``is_default=True``.
    """
    fallback = ViewerLocation(lat=default.lat, lng=default.lng, is_default=True)
    try:
        return await asyncio.wait_for(provider.locate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Location request timed out after {timeout}s, using default location")
    except LocationUnavailable as e:
        logger.warning(f"Location unavailable ({e.message}), using default location")
    except Exception as e:
        logger.warning(f"Location lookup failed ({e}), using default location")
    return fallback
