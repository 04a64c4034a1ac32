"""
REST client for the nearby-complaints endpoint.
"""

from typing import Any, Dict, List, Optional
import logging

import httpx

from ..errors import classify_http_error
from ..models import ViewerLocation

logger = logging.getLogger(__name__)

SEVERITY_BUCKETS = ("low_severity", "medium_severity", "high_severity")


def _complaint_list(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def parse_nearby_response(body: Any) -> List[Dict[str, Any]]:
    """
    Extract complaint objects from a nearby-complaints response.

    Handles a bare array, ``{"data": [...]}``, ``{"complaints": [...]}``
    and the severity-bucketed shape
    ``{"data": {"low_severity": {"complaints": [...]}, ...}}``.
    """
    if isinstance(body, list):
        return _complaint_list(body)

    if not isinstance(body, dict):
        return []

    if "complaints" in body:
        return _complaint_list(body["complaints"])

    data = body.get("data")
    if isinstance(data, list):
        return _complaint_list(data)

    if isinstance(data, dict):
        if "complaints" in data:
            return _complaint_list(data["complaints"])
        complaints = []
        for bucket in SEVERITY_BUCKETS:
            group = data.get(bucket)
            if isinstance(group, dict):
                complaints.extend(_complaint_list(group.get("complaints")))
        return complaints

    return []


class NearbyIncidentsClient:
    """Fetches complaints near a location from the Rescue API."""

    def __init__(
        self,
        url: str,
        api_token: Optional[str] = None,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.api_token = api_token
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    async def fetch_nearby(self, location: ViewerLocation) -> List[Dict[str, Any]]:
        """
        Fetch complaints near the viewer.

        Raises FetchError (transient) on network, HTTP or decoding failures.
        """
        client = await self._get_client()
        try:
            response = await client.get(
                self.url,
                params={"latitude": location.lat, "longitude": location.lng},
                headers=self._headers(),
            )
            response.raise_for_status()
            body = response.json()
        except Exception as e:
            raise classify_http_error(e) from e

        complaints = parse_nearby_response(body)
        logger.info(f"Fetched {len(complaints)} nearby complaints")
        return complaints

    async def aclose(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
