"""
Feed session: one viewer's live incident feed, from mount to unmount.

Mounting attaches the push listener, resolves the viewer location (with a
timeout and a default fallback), initializes the sink, runs the initial
nearby fetch and starts the refresh scheduler. Unmounting tears all of it
down; fetches that resolve afterwards are ignored.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from .config import FeedConfig, EMPTY_FEED_MESSAGE, DEFAULT_LOCATION_BANNER
from .errors import FeedError
from .models import IncidentRecord, Source, ViewerLocation
from .processors.normalizer import parse_timestamp
from .processors.readiness import ReadinessFlag
from .reconciler import IncidentReconciler
from .scheduler import RefreshScheduler
from .sinks import RenderSink
from .sources.location import (
    IpLocationProvider,
    LocationProvider,
    StaticLocationProvider,
    UnavailableLocationProvider,
    resolve_viewer_location,
)
from .sources.nearby import NearbyIncidentsClient
from .sources.push import PushChannel, SocketIOPushChannel

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class FeedSnapshot:
    """Point-in-time view of a session, for rendering."""
    incidents: List[IncidentRecord]
    viewer_location: Optional[ViewerLocation]
    ready: bool
    readiness: Dict[str, bool]
    pending: int
    registered: int
    mounted: bool
    stats: Dict[str, int] = field(default_factory=dict)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def empty(self) -> bool:
        return not self.incidents

    @property
    def degraded_location(self) -> bool:
        return self.viewer_location is not None and self.viewer_location.is_default

    @property
    def banner(self) -> Optional[str]:
        return DEFAULT_LOCATION_BANNER if self.degraded_location else None

    @property
    def empty_message(self) -> Optional[str]:
        return EMPTY_FEED_MESSAGE if self.empty else None


def _oldest_first(payloads: List[Any]) -> List[Any]:
    """Order a fetch batch so the newest complaint ends up on top of the feed."""
    def key(payload):
        created = parse_timestamp(payload.get("createdAt")) if isinstance(payload, dict) else None
        return created or _EPOCH
    return sorted(payloads, key=key)


class FeedSession:
    """Owns the reconciler and every source feeding it for one viewer."""

    def __init__(
        self,
        config: FeedConfig,
        nearby_client: NearbyIncidentsClient,
        push_channel: Optional[PushChannel],
        location_provider: LocationProvider,
        sink: RenderSink,
    ):
        self.config = config
        self.nearby_client = nearby_client
        self.push_channel = push_channel
        self.location_provider = location_provider
        self.sink = sink

        self.reconciler = IncidentReconciler(
            sink,
            visible_limit=config.visible_limit,
            max_distance_km=config.max_distance_km,
            severity_radius_filter=config.severity_radius_filter,
            severity_radius_km=config.severity_radius_km,
        )
        self.scheduler = RefreshScheduler(config.refresh_interval_seconds, self.refresh)
        self.mounted = False
        self.last_fetch_error: Optional[FeedError] = None

    @property
    def viewer_location(self) -> Optional[ViewerLocation]:
        return self.reconciler.viewer_location

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def mount(self):
        """Bring the session up. Transient failures degrade, never abort."""
        if self.mounted:
            return
        self.mounted = True
        logger.info("Mounting feed session")

        await self._attach_push()
        if not self.mounted:
            return

        location = await resolve_viewer_location(
            self.location_provider,
            timeout=self.config.location_timeout_seconds,
            default=self.config.default_location,
        )
        if not self.mounted:
            return
        self.reconciler.set_viewer_location(location)

        self._open_sink()
        if not self.mounted:
            return

        await self._fetch_and_ingest(Source.INITIAL_FETCH)
        if not self.mounted:
            return

        await self.scheduler.start()

    async def unmount(self):
        """Tear the session down; in-flight work resolving later is a no-op."""
        if not self.mounted:
            return
        self.mounted = False
        logger.info("Unmounting feed session")

        await self.scheduler.stop()

        if self.push_channel is not None:
            try:
                await self.push_channel.detach()
            except Exception as e:
                logger.warning(f"Failed to detach push listener: {e}")

        self.reconciler.close()

        try:
            self.sink.close()
        except Exception as e:
            logger.warning(f"Failed to close sink: {e}")

        await self.nearby_client.aclose()

    async def refresh(self) -> List[IncidentRecord]:
        """Re-fetch nearby incidents and feed them through the reconciler."""
        return await self._fetch_and_ingest(Source.REFRESH)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _attach_push(self):
        if self.push_channel is None:
            logger.info("No push channel configured, relying on refresh")
            self.reconciler.mark_ready(ReadinessFlag.LISTENER_ATTACHED)
            return
        try:
            await self.push_channel.attach(self._on_push_event, self._on_push_state)
        except FeedError as e:
            logger.warning(f"Push listener unavailable: {e}")
        except Exception as e:
            logger.warning(f"Push listener failed to attach: {e}")

    def _on_push_event(self, payload: Any):
        if not self.mounted:
            return
        self.reconciler.ingest(payload, Source.PUSH)

    def _on_push_state(self, attached: bool):
        if not self.mounted:
            return
        if attached:
            self.reconciler.mark_ready(ReadinessFlag.LISTENER_ATTACHED)
        else:
            self.reconciler.mark_not_ready(ReadinessFlag.LISTENER_ATTACHED)

    def _open_sink(self):
        try:
            self.sink.open()
        except Exception as e:
            # Records still reach the visible list; marker placement failures are logged
            logger.error(f"Sink failed to open: {e}")
        self.reconciler.mark_ready(ReadinessFlag.MAP_INITIALIZED)

    async def _fetch_and_ingest(self, source: Source) -> List[IncidentRecord]:
        location = self.viewer_location
        if not self.mounted or location is None:
            return []

        try:
            payloads = await self.nearby_client.fetch_nearby(location)
        except FeedError as e:
            if not self.mounted:
                logger.debug(f"Ignoring {source.value} failure after unmount: {e}")
                return []
            self.last_fetch_error = e
            logger.warning(f"Nearby fetch ({source.value}) failed: {e}")
            return []

        if not self.mounted:
            logger.debug(f"Discarding {source.value} result that resolved after unmount")
            return []

        self.last_fetch_error = None
        created = self.reconciler.ingest_many(_oldest_first(payloads), source)
        logger.info(f"{source.value}: {len(payloads)} fetched, {len(created)} new")
        return created

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def snapshot(self) -> FeedSnapshot:
        reconciler = self.reconciler
        return FeedSnapshot(
            incidents=reconciler.visible,
            viewer_location=reconciler.viewer_location,
            ready=reconciler.is_ready,
            readiness=reconciler.gate.state(),
            pending=reconciler.pending_count,
            registered=len(reconciler.registry),
            mounted=self.mounted,
            stats=dict(reconciler.stats),
        )


def build_location_provider(config: FeedConfig) -> LocationProvider:
    if config.viewer_location is not None:
        return StaticLocationProvider(config.viewer_location.lat, config.viewer_location.lng)
    if config.locate_by_ip:
        return IpLocationProvider()
    return UnavailableLocationProvider()


def build_session(
    config: FeedConfig,
    sink: RenderSink,
    with_push: bool = True,
    location_provider: Optional[LocationProvider] = None,
) -> FeedSession:
    """Wire a session from configuration."""
    nearby = NearbyIncidentsClient(
        config.nearby_url,
        api_token=config.api_token,
        timeout=config.http_timeout_seconds,
    )
    push = None
    if with_push:
        push = SocketIOPushChannel(
            config.socket_url,
            event=config.push_event,
            api_token=config.api_token,
        )
    return FeedSession(
        config,
        nearby_client=nearby,
        push_channel=push,
        location_provider=location_provider or build_location_provider(config),
        sink=sink,
    )
