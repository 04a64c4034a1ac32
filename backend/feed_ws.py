"""
WebSocket manager for real-time incident feed broadcasting.

Acts as the session's render sink: every record the reconciler places or
evicts is queued and pushed to connected clients by a background loop.
New clients receive the full visible feed as an initial snapshot.
"""

import asyncio
import json
import logging
from typing import Any, Callable, Optional

from fastapi import WebSocket

from backend.models.feed import IncidentOut
from incident_feed.models import IncidentRecord
from incident_feed.sinks import RenderSink

logger = logging.getLogger(__name__)

MAX_QUEUED_MESSAGES = 1000


class FeedUpdateManager(RenderSink):
    """Broadcasts incident additions and removals to connected WebSocket clients."""

    def __init__(self):
        self._connections: set[WebSocket] = set()
        self._broadcast_task: asyncio.Task | None = None
        self._queue: asyncio.Queue | None = None
        self.snapshot_provider: Optional[Callable[[], Any]] = None
        self.is_open = False

    @property
    def client_count(self) -> int:
        return len(self._connections)

    # ------------------------------------------------------------------
    # RenderSink
    # ------------------------------------------------------------------

    def open(self):
        self.is_open = True

    def place(self, record: IncidentRecord) -> Any:
        if not self.is_open:
            raise RuntimeError("feed broadcaster is not open")
        incident = IncidentOut.from_record(record).model_dump(mode="json")
        self._enqueue({"type": "incident_added", "incident": incident})
        return record.id

    def remove(self, record_id: str):
        self._enqueue({"type": "incident_removed", "id": record_id})

    def close(self):
        self.is_open = False

    def _enqueue(self, message: dict):
        if self._queue is None:
            logger.debug(f"Broadcaster not started, skipping {message['type']} message")
            return
        try:
            self._queue.put_nowait(json.dumps(message))
        except asyncio.QueueFull:
            logger.warning(f"Feed broadcast queue full, dropping {message['type']} message")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self):
        """Start the background broadcast loop."""
        if self._broadcast_task:
            return
        self._queue = asyncio.Queue(maxsize=MAX_QUEUED_MESSAGES)
        self._broadcast_task = asyncio.create_task(self._broadcast_loop())
        logger.info("FeedUpdateManager started")

    async def stop(self):
        """Stop the broadcast loop and close all connections."""
        if self._broadcast_task:
            self._broadcast_task.cancel()
            try:
                await self._broadcast_task
            except asyncio.CancelledError:
                pass
            self._broadcast_task = None
        self._queue = None

        for ws in list(self._connections):
            try:
                await ws.close()
            except Exception as exc:
                logger.debug(f"Error closing WS client: {exc}")
        self._connections.clear()
        logger.info("FeedUpdateManager stopped")

    async def connect(self, ws: WebSocket):
        """Accept a new WebSocket connection and send the initial snapshot."""
        await ws.accept()
        self._connections.add(ws)
        logger.debug(f"WS client connected ({len(self._connections)} total)")

        if self.snapshot_provider is None:
            return
        try:
            snapshot = self.snapshot_provider()
            await ws.send_text(json.dumps({
                "type": "feed_snapshot",
                "feed": snapshot,
            }))
        except Exception as exc:
            logger.warning(f"Failed to send initial snapshot: {exc}")

    async def disconnect(self, ws: WebSocket):
        """Remove a disconnected client."""
        self._connections.discard(ws)
        logger.debug(f"WS client disconnected ({len(self._connections)} total)")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _broadcast_loop(self):
        """Forward queued feed changes to every connected client."""
        while True:
            try:
                message = await self._queue.get()
                if self._connections:
                    await self._send_to_all(message)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.error(f"Broadcast loop error: {exc}")

    async def _send_to_all(self, message: str):
        """Send a message to all connected clients, removing dead ones."""
        dead: list[WebSocket] = []
        for ws in list(self._connections):
            try:
                await ws.send_text(message)
            except Exception:
                dead.append(ws)
        for ws in dead:
            self._connections.discard(ws)


# Module-level singleton
feed_update_manager = FeedUpdateManager()
