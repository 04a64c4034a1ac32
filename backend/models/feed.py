"""
Feed models for the live incident API.
"""

from datetime import datetime
from typing import Optional, List, Dict

from pydantic import BaseModel, Field

from incident_feed.display import category_style, severity_style, status_style
from incident_feed.models import IncidentRecord, ViewerLocation
from incident_feed.session import FeedSnapshot


class CoordinatesOut(BaseModel):
    lat: float
    lng: float


class ReporterOut(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None


class IncidentStyle(BaseModel):
    """Display attributes for one incident card/marker."""
    category_label: str
    icon: str
    color: str
    severity_label: str
    severity_color: str
    status_label: str
    status_color: str


class IncidentOut(BaseModel):
    """Reconciled incident as shown in the feed."""
    id: str
    coordinates: CoordinatesOut
    category: Optional[str] = None
    severity: str
    status: str
    title: str = ""
    description: str = ""
    address: str = ""
    reported_at: Optional[datetime] = None
    reporter: Optional[ReporterOut] = None
    distance_km: Optional[float] = None
    source: str
    ingested_at: datetime
    style: IncidentStyle

    @classmethod
    def from_record(cls, record: IncidentRecord) -> "IncidentOut":
        category = category_style(record.category)
        severity = severity_style(record.severity)
        status = status_style(record.status)
        reporter = None
        if record.reporter is not None:
            reporter = ReporterOut(
                name=record.reporter.name,
                email=record.reporter.email,
                avatar_url=record.reporter.avatar_url,
            )
        return cls(
            id=record.id,
            coordinates=CoordinatesOut(lat=record.coordinates.lat, lng=record.coordinates.lng),
            category=record.category.value if record.category else None,
            severity=record.severity.value,
            status=record.status.value,
            title=record.title,
            description=record.description,
            address=record.address,
            reported_at=record.reported_at,
            reporter=reporter,
            distance_km=record.distance_km,
            source=record.source.value,
            ingested_at=record.ingested_at,
            style=IncidentStyle(
                category_label=category.label,
                icon=category.icon,
                color=category.color,
                severity_label=severity.label,
                severity_color=severity.color,
                status_label=status.label,
                status_color=status.color,
            ),
        )


class ViewerLocationOut(BaseModel):
    lat: float
    lng: float
    is_default: bool = False

    @classmethod
    def from_location(cls, location: Optional[ViewerLocation]) -> Optional["ViewerLocationOut"]:
        if location is None:
            return None
        return cls(lat=location.lat, lng=location.lng, is_default=location.is_default)


class FeedResponse(BaseModel):
    """Visible feed, most recent first."""
    incidents: List[IncidentOut] = Field(default_factory=list)
    total: int = 0
    viewer_location: Optional[ViewerLocationOut] = None
    degraded_location: bool = False
    banner: Optional[str] = None
    empty_message: Optional[str] = None
    generated_at: datetime

    @classmethod
    def from_snapshot(cls, snapshot: FeedSnapshot) -> "FeedResponse":
        return cls(
            incidents=[IncidentOut.from_record(r) for r in snapshot.incidents],
            total=len(snapshot.incidents),
            viewer_location=ViewerLocationOut.from_location(snapshot.viewer_location),
            degraded_location=snapshot.degraded_location,
            banner=snapshot.banner,
            empty_message=snapshot.empty_message,
            generated_at=snapshot.generated_at,
        )


class FeedStatus(BaseModel):
    """Session state for diagnostics."""
    mounted: bool
    ready: bool
    readiness: Dict[str, bool]
    pending: int
    registered: int
    visible: int
    viewer_location: Optional[ViewerLocationOut] = None
    stats: Dict[str, int] = Field(default_factory=dict)
    last_fetch_error: Optional[str] = None
    scheduler_running: bool = False
    refresh_runs: int = 0
    ws_clients: int = 0
