"""
Dedup registry for materialized incidents.
"""

from collections.abc import Mapping
from typing import Any, Iterable, Set, Union
import logging

logger = logging.getLogger(__name__)


class DedupRegistry:
    """Ids already materialized in this session. Only shrinks on clear()."""

    def __init__(self):
        self._ids: Set[str] = set()

    def has_id(self, incident_id: str) -> bool:
        return incident_id in self._ids

    def register(self, incident_id: str):
        self._ids.add(incident_id)

    @staticmethod
    def ids_of(markers: Union[Mapping, Iterable[Any], None]) -> Set[str]:
        """
        Collect incident ids referenced by live markers.

        Accepts a mapping keyed by incident id, or an iterable of marker
        objects/dicts exposing ``incident_id`` or ``id``.
        """
        if not markers:
            return set()
        if isinstance(markers, Mapping):
            return {str(k) for k in markers.keys()}

        ids = set()
        for marker in markers:
            if isinstance(marker, dict):
                value = marker.get("incident_id", marker.get("id"))
            else:
                value = getattr(marker, "incident_id", None) or getattr(marker, "id", None)
            if value is not None:
                ids.add(str(value))
        return ids

    def is_known(self, incident_id: str, markers: Union[Mapping, Iterable[Any], None] = None) -> bool:
        """True if the id is registered or a live marker already references it."""
        if self.has_id(incident_id):
            return True
        if isinstance(markers, Mapping):
            return incident_id in markers
        return incident_id in self.ids_of(markers)

    def clear(self):
        logger.debug(f"Clearing dedup registry ({len(self._ids)} ids)")
        self._ids.clear()

    def __contains__(self, incident_id: object) -> bool:
        return incident_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)
