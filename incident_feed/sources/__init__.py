"""Incident and viewer-location sources."""

from .location import (
    LocationProvider,
    StaticLocationProvider,
    IpLocationProvider,
    UnavailableLocationProvider,
    resolve_viewer_location,
)
from .nearby import NearbyIncidentsClient, parse_nearby_response
from .push import PushChannel, SocketIOPushChannel

__all__ = [
    "LocationProvider",
    "StaticLocationProvider",
    "IpLocationProvider",
    "UnavailableLocationProvider",
    "resolve_viewer_location",
    "NearbyIncidentsClient",
    "parse_nearby_response",
    "PushChannel",
    "SocketIOPushChannel",
]
