"""
Configuration for the live incident feed.
"""

import os
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any
from urllib.parse import urlsplit

from dotenv import load_dotenv

from .models import Severity, ViewerLocation
from .processors.coordinates import is_valid_coordinate

# Load .env early so os.getenv works everywhere
load_dotenv()

DEFAULT_API_URL = "http://localhost:5000/api/v1"
NEARBY_PATH = "/officer/nearby-complaints"
PUSH_EVENT = "newComplaint"

# Fallback viewer location when the real one cannot be resolved (Ahmedabad)
DEFAULT_LOCATION = ViewerLocation(lat=23.0225, lng=72.5714, is_default=True)

REFRESH_INTERVAL_SECONDS = 5 * 60
LOCATION_TIMEOUT_SECONDS = 5.0
HTTP_TIMEOUT_SECONDS = 15.0
VISIBLE_LIMIT = 10

# Radius (km) the backend searches per severity
SEVERITY_RADIUS_KM = {
    Severity.LOW: 10.0,
    Severity.MEDIUM: 20.0,
    Severity.HIGH: 100.0,
}

EMPTY_FEED_MESSAGE = "No recent reports"
DEFAULT_LOCATION_BANNER = "Showing default location"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = _env_str(name)
    if raw is None:
        return default
    return raw.lower() in _TRUE_VALUES


def socket_url_for(api_base_url: str) -> str:
    """Socket server origin: the API URL without its path."""
    parts = urlsplit(api_base_url)
    if not parts.scheme or not parts.netloc:
        return api_base_url
    return f"{parts.scheme}://{parts.netloc}"


@dataclass
class FeedConfig:
    """Settings for one feed session and the server hosting it."""
    api_base_url: str = DEFAULT_API_URL
    socket_url: Optional[str] = None
    api_token: Optional[str] = None
    push_event: str = PUSH_EVENT

    refresh_interval_seconds: float = REFRESH_INTERVAL_SECONDS
    location_timeout_seconds: float = LOCATION_TIMEOUT_SECONDS
    http_timeout_seconds: float = HTTP_TIMEOUT_SECONDS

    visible_limit: int = VISIBLE_LIMIT
    max_distance_km: Optional[float] = None  # None shows everything
    severity_radius_filter: bool = False

    default_location: ViewerLocation = DEFAULT_LOCATION
    viewer_location: Optional[ViewerLocation] = None
    locate_by_ip: bool = False

    host: str = "0.0.0.0"
    port: int = 8000
    autostart: bool = True

    severity_radius_km: Dict[Severity, float] = field(default_factory=lambda: dict(SEVERITY_RADIUS_KM))

    def __post_init__(self):
        self.api_base_url = self.api_base_url.rstrip("/")
        if not self.socket_url:
            self.socket_url = socket_url_for(self.api_base_url)
        if self.visible_limit < 1:
            raise ValueError("visible_limit must be at least 1")
        if self.refresh_interval_seconds <= 0:
            raise ValueError("refresh_interval_seconds must be positive")
        if self.location_timeout_seconds <= 0:
            raise ValueError("location_timeout_seconds must be positive")
        for name in ("default_location", "viewer_location"):
            location = getattr(self, name)
            if location is not None and not is_valid_coordinate(location.lat, location.lng):
                raise ValueError(f"{name} out of range: ({location.lat}, {location.lng})")

    @property
    def nearby_url(self) -> str:
        return f"{self.api_base_url}{NEARBY_PATH}"

    @classmethod
    def from_env(cls, **overrides) -> "FeedConfig":
        """Build configuration from environment variables, then apply overrides."""
        default_location = ViewerLocation(
            lat=_env_float("FEED_DEFAULT_LAT", DEFAULT_LOCATION.lat),
            lng=_env_float("FEED_DEFAULT_LNG", DEFAULT_LOCATION.lng),
            is_default=True,
        )

        viewer_lat = _env_float("FEED_VIEWER_LAT", None)
        viewer_lng = _env_float("FEED_VIEWER_LNG", None)
        viewer_location = None
        if viewer_lat is not None and viewer_lng is not None:
            viewer_location = ViewerLocation(lat=viewer_lat, lng=viewer_lng)

        values: Dict[str, Any] = {
            "api_base_url": _env_str("RESCUE_API_URL", DEFAULT_API_URL),
            "socket_url": _env_str("RESCUE_SOCKET_URL"),
            "api_token": _env_str("RESCUE_API_TOKEN"),
            "push_event": _env_str("FEED_PUSH_EVENT", PUSH_EVENT),
            "refresh_interval_seconds": _env_float("FEED_REFRESH_INTERVAL_SECONDS", REFRESH_INTERVAL_SECONDS),
            "location_timeout_seconds": _env_float("FEED_LOCATION_TIMEOUT_SECONDS", LOCATION_TIMEOUT_SECONDS),
            "http_timeout_seconds": _env_float("FEED_HTTP_TIMEOUT_SECONDS", HTTP_TIMEOUT_SECONDS),
            "visible_limit": _env_int("FEED_VISIBLE_LIMIT", VISIBLE_LIMIT),
            "max_distance_km": _env_float("FEED_MAX_DISTANCE_KM", None),
            "severity_radius_filter": _env_bool("FEED_SEVERITY_RADIUS_FILTER", False),
            "default_location": default_location,
            "viewer_location": viewer_location,
            "locate_by_ip": _env_bool("FEED_LOCATE_BY_IP", False),
            "host": _env_str("HOST", "0.0.0.0"),
            "port": _env_int("PORT", 8000),
            "autostart": _env_bool("FEED_AUTOSTART", True),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Printable view with the token masked."""
        data = asdict(self)
        if data.get("api_token"):
            data["api_token"] = "***"
        data["severity_radius_km"] = {k.value: v for k, v in self.severity_radius_km.items()}
        return data
