"""
Pydantic models for the live incident feed API.
"""

from .feed import (
    CoordinatesOut,
    ReporterOut,
    IncidentStyle,
    IncidentOut,
    ViewerLocationOut,
    FeedResponse,
    FeedStatus,
)

__all__ = [
    "CoordinatesOut",
    "ReporterOut",
    "IncidentStyle",
    "IncidentOut",
    "ViewerLocationOut",
    "FeedResponse",
    "FeedStatus",
]
