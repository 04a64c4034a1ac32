"""
Rescue Live Incident Feed

Reconciles nearby-complaint fetches, the newComplaint push stream and
periodic refreshes into one deduplicated, distance-annotated feed.
"""

from .config import FeedConfig
from .models import IncidentRecord, Source, ViewerLocation
from .reconciler import IncidentReconciler
from .session import FeedSession, FeedSnapshot, build_session

__version__ = "1.0.0"
__all__ = [
    "FeedConfig",
    "IncidentRecord",
    "Source",
    "ViewerLocation",
    "IncidentReconciler",
    "FeedSession",
    "FeedSnapshot",
    "build_session",
]
