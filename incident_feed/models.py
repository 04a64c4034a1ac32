"""
Core records for the live incident feed.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any


class Category(str, Enum):
    """Complaint category, used for display icon/colour selection."""
    RAIL = "rail"
    ROAD = "road"
    FIRE = "fire"
    CYBER = "cyber"
    POLICE = "police"
    COURT = "court"

    @classmethod
    def parse(cls, value: Any) -> Optional["Category"]:
        """Return the matching category, or None for unknown values."""
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.MEDIUM


class Status(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value: Any) -> "Status":
        if isinstance(value, str):
            normalized = value.strip().lower().replace("_", "-")
            try:
                return cls(normalized)
            except ValueError:
                pass
        return cls.PENDING


class Source(str, Enum):
    """Where an incident payload came from."""
    INITIAL_FETCH = "initial-fetch"
    PUSH = "push"
    REFRESH = "refresh"


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(frozen=True)
class ViewerLocation:
    """Viewer position for one session. is_default marks the fallback location."""
    lat: float
    lng: float
    is_default: bool = False

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(lat=self.lat, lng=self.lng)


@dataclass
class Reporter:
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Any) -> Optional["Reporter"]:
        """Build from a populated complaint author (user_id) object."""
        if not isinstance(data, dict):
            return None
        reporter = cls(
            name=data.get("name"),
            email=data.get("email"),
            avatar_url=data.get("profileImage") or data.get("avatarUrl"),
        )
        if not (reporter.name or reporter.email or reporter.avatar_url):
            return None
        return reporter


@dataclass
class IncidentRecord:
    """Canonical, render-ready incident produced by the reconciler."""
    # Identity
    id: str
    coordinates: Coordinates

    # Classification
    category: Optional[Category] = None
    severity: Severity = Severity.MEDIUM
    status: Status = Status.PENDING

    # Details
    title: str = ""
    description: str = ""
    address: str = ""
    reported_at: Optional[datetime] = None
    reporter: Optional[Reporter] = None

    # Ingestion
    distance_km: Optional[float] = None
    source: Source = Source.INITIAL_FETCH
    ingested_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dictionary, excluding None values."""
        data = asdict(self)
        data["category"] = self.category.value if self.category else None
        data["severity"] = self.severity.value
        data["status"] = self.status.value
        data["source"] = self.source.value
        data["reported_at"] = self.reported_at.isoformat() if self.reported_at else None
        data["ingested_at"] = self.ingested_at.isoformat()
        if data["reporter"]:
            data["reporter"] = {k: v for k, v in data["reporter"].items() if v is not None}
        return {k: v for k, v in data.items() if v is not None}
