"""
Incident reconciler.

Merges the initial nearby fetch, the push stream and periodic refreshes
into one deduplicated, distance-annotated list of IncidentRecords.
Ingestion is synchronous, so the registry check and register cannot
interleave with another event on the same loop.
"""

from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional
import logging

from .config import SEVERITY_RADIUS_KM, VISIBLE_LIMIT
from .errors import render_failed
from .models import IncidentRecord, Severity, Source, ViewerLocation
from .processors.coordinates import extract_coordinates
from .processors.distance import distance_between
from .processors.normalizer import Normalizer
from .processors.pending_queue import PendingQueue
from .processors.readiness import ReadinessFlag, ReadinessGate
from .processors.registry import DedupRegistry
from .sinks import RenderSink

logger = logging.getLogger(__name__)


class IncidentReconciler:
    """
    Owns the dedup registry, pending queue and visible list of one session.

    Usage:
        reconciler = IncidentReconciler(sink)
        reconciler.ingest(payload, Source.PUSH)      # queued until ready
        reconciler.set_viewer_location(location)
        reconciler.mark_ready(ReadinessFlag.MAP_INITIALIZED)
        reconciler.mark_ready(ReadinessFlag.LISTENER_ATTACHED)  # drains queue
        reconciler.visible                            # most recent first
    """

    def __init__(
        self,
        sink: RenderSink,
        visible_limit: int = VISIBLE_LIMIT,
        max_distance_km: Optional[float] = None,
        severity_radius_filter: bool = False,
        severity_radius_km: Optional[Dict[Severity, float]] = None,
    ):
        if visible_limit < 1:
            raise ValueError("visible_limit must be at least 1")

        self.sink = sink
        self.visible_limit = visible_limit
        self.max_distance_km = max_distance_km
        self.severity_radius_filter = severity_radius_filter
        self.severity_radius_km = severity_radius_km or dict(SEVERITY_RADIUS_KM)

        self.registry = DedupRegistry()
        self.pending = PendingQueue()
        self.gate = ReadinessGate()
        self.normalizer = Normalizer()

        self.viewer_location: Optional[ViewerLocation] = None
        self._visible: List[IncidentRecord] = []
        self._markers: "OrderedDict[str, Any]" = OrderedDict()
        self._closed = False

        self.stats = {
            "ingested": 0,
            "duplicates": 0,
            "dropped_invalid": 0,
            "dropped_distance": 0,
            "queued": 0,
            "replayed": 0,
            "evicted": 0,
            "render_failures": 0,
        }

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def visible(self) -> List[IncidentRecord]:
        """Materialized records, most recent first."""
        return list(self._visible)

    @property
    def markers(self) -> Dict[str, Any]:
        return dict(self._markers)

    @property
    def pending_count(self) -> int:
        return len(self.pending)

    @property
    def is_ready(self) -> bool:
        return self.gate.is_ready

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    def set_viewer_location(self, location: ViewerLocation):
        """Set the viewer location once; later values are ignored."""
        if self._closed:
            return
        if self.viewer_location is not None:
            logger.debug("Viewer location already resolved, ignoring update")
            return
        self.viewer_location = location
        logger.info(
            f"Viewer location set to ({location.lat:.4f}, {location.lng:.4f})"
            f"{' [default]' if location.is_default else ''}"
        )
        self.mark_ready(ReadinessFlag.LOCATION_KNOWN)

    def mark_ready(self, flag: ReadinessFlag):
        if self._closed:
            return
        if self.gate.mark(flag):
            logger.info("Feed ready, replaying pending push events")
            self._drain_pending()

    def mark_not_ready(self, flag: ReadinessFlag):
        if self._closed:
            return
        was_ready = self.gate.is_ready
        self.gate.unmark(flag)
        if was_ready:
            logger.info(f"Feed no longer ready ({flag.value} lost), queueing push events")

    def _drain_pending(self):
        payloads = self.pending.drain_all()
        if not payloads:
            return
        logger.info(f"Replaying {len(payloads)} queued push events")
        for payload in payloads:
            self.stats["replayed"] += 1
            self._process(payload, Source.PUSH)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def ingest(self, payload: Any, source: Source) -> Optional[IncidentRecord]:
        """
        Ingest one raw complaint payload.

        Returns the newly created record, or None when the payload was
        queued, duplicated, dropped, or the reconciler is closed.
        """
        if self._closed:
            logger.debug(f"Ignoring {source.value} payload after teardown")
            return None

        if source is Source.PUSH and not self.gate.is_ready:
            self.pending.enqueue(payload)
            self.stats["queued"] += 1
            missing = ", ".join(sorted(f.value for f in self.gate.missing()))
            logger.debug(f"Feed not ready ({missing}), queued push event")
            return None

        return self._process(payload, source)

    def ingest_many(self, payloads: Iterable[Any], source: Source) -> List[IncidentRecord]:
        created = []
        for payload in payloads:
            record = self.ingest(payload, source)
            if record is not None:
                created.append(record)
        return created

    def _process(self, payload: Any, source: Source) -> Optional[IncidentRecord]:
        incident_id = self.normalizer.incident_id(payload)
        if incident_id is None:
            self.stats["dropped_invalid"] += 1
            logger.warning(f"Dropping {source.value} incident without an id")
            return None

        if self.registry.is_known(incident_id, self._markers):
            self.stats["duplicates"] += 1
            logger.debug(f"Incident {incident_id} already materialized ({source.value})")
            return None

        coordinates = extract_coordinates(payload)
        if coordinates is None:
            self.stats["dropped_invalid"] += 1
            logger.warning(f"Dropping incident {incident_id}: missing or invalid coordinates")
            return None

        distance_km = distance_between(self.viewer_location, coordinates)

        record = self.normalizer.build_record(payload, incident_id, coordinates, distance_km, source)

        if not self._within_range(record):
            self.stats["dropped_distance"] += 1
            logger.debug(f"Incident {incident_id} outside range ({distance_km:.1f} km)")
            return None

        self.registry.register(incident_id)
        self.stats["ingested"] += 1

        self._visible.insert(0, record)
        self._evict_overflow()

        self._render(record)
        return record

    def _within_range(self, record: IncidentRecord) -> bool:
        if record.distance_km is None:
            return True
        if self.max_distance_km is not None and record.distance_km > self.max_distance_km:
            return False
        if self.severity_radius_filter:
            radius = self.severity_radius_km.get(record.severity)
            if radius is not None and record.distance_km > radius:
                return False
        return True

    def _evict_overflow(self):
        while len(self._visible) > self.visible_limit:
            evicted = self._visible.pop()
            self.stats["evicted"] += 1
            if self._markers.pop(evicted.id, None) is None:
                continue
            try:
                self.sink.remove(evicted.id)
            except Exception as e:
                logger.warning(f"Failed to remove marker for incident {evicted.id}: {e}")

    def _render(self, record: IncidentRecord):
        try:
            handle = self.sink.place(record)
        except Exception as e:
            self.stats["render_failures"] += 1
            logger.warning(str(render_failed(record.id, e)))
            return
        self._markers[record.id] = handle if handle is not None else record

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self):
        """Discard all session state. Later calls become no-ops."""
        if self._closed:
            return
        self._closed = True
        self.pending.clear()
        self.registry.clear()
        self.gate.reset()
        self._visible.clear()
        self._markers.clear()
        logger.info("Reconciler closed")
