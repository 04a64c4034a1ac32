"""
Normalization of raw complaint payloads into incident records.
"""

from datetime import datetime, timezone
from typing import Any, Optional
import logging

from ..models import (
    Category,
    Coordinates,
    IncidentRecord,
    Reporter,
    Severity,
    Source,
    Status,
)

logger = logging.getLogger(__name__)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse ISO strings (``Z`` suffix allowed) or epoch milliseconds."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class Normalizer:
    """Turn complaint payloads into IncidentRecords."""

    def incident_id(self, payload: Any) -> Optional[str]:
        """Stable complaint id (``_id``, falling back to ``id``)."""
        if not isinstance(payload, dict):
            return None
        value = payload.get("_id")
        if value is None:
            value = payload.get("id")
        if isinstance(value, dict):
            # Extended JSON ObjectId: {"$oid": "..."}
            value = value.get("$oid")
        if value is None or isinstance(value, bool):
            return None
        text = str(value).strip()
        return text or None

    def build_record(
        self,
        payload: dict,
        incident_id: str,
        coordinates: Coordinates,
        distance_km: Optional[float],
        source: Source,
    ) -> IncidentRecord:
        category = Category.parse(payload.get("category"))
        if category is None and payload.get("category"):
            logger.debug(f"Unknown category {payload.get('category')!r} for incident {incident_id}")

        return IncidentRecord(
            id=incident_id,
            coordinates=coordinates,
            category=category,
            severity=Severity.parse(payload.get("severity")),
            status=Status.parse(payload.get("status")),
            title=_text(payload.get("title")),
            description=_text(payload.get("description")),
            address=_text(payload.get("address")),
            reported_at=parse_timestamp(payload.get("createdAt")),
            reporter=Reporter.from_payload(payload.get("user_id")),
            distance_km=distance_km,
            source=source,
        )
