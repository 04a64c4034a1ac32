"""Data processing modules."""

from .coordinates import extract_coordinates, is_valid_coordinate
from .distance import haversine_km, distance_between
from .normalizer import Normalizer
from .pending_queue import PendingQueue
from .readiness import ReadinessFlag, ReadinessGate
from .registry import DedupRegistry

__all__ = [
    "extract_coordinates",
    "is_valid_coordinate",
    "haversine_km",
    "distance_between",
    "Normalizer",
    "PendingQueue",
    "ReadinessFlag",
    "ReadinessGate",
    "DedupRegistry",
]
