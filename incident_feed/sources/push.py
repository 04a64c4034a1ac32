"""
Real-time push channel for new complaints.

The Rescue backend emits one ``newComplaint`` socket.io event per created
complaint, with the same payload shape as the nearby-complaints endpoint.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional
import logging

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError

from ..errors import ErrorCategory, FeedError

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], Any]
StateHandler = Callable[[bool], Any]


class PushChannel(ABC):
    """A persistent connection delivering complaint payloads."""

    def __init__(self):
        self.attached = False

    @abstractmethod
    async def attach(self, on_event: EventHandler, on_state: StateHandler):
        """
        Start delivering events to ``on_event``.

        ``on_state(True/False)`` reports the listener being attached or lost.
        """

    @abstractmethod
    async def detach(self):
        """Stop delivering events and release the connection."""


class SocketIOPushChannel(PushChannel):
    """socket.io listener for the ``newComplaint`` event."""

    def __init__(
        self,
        url: str,
        event: str = "newComplaint",
        api_token: Optional[str] = None,
        wait_timeout: float = 10.0,
        retry_delay: float = 5.0,
        client: Optional[socketio.AsyncClient] = None,
    ):
        super().__init__()
        self.url = url
        self.event = event
        self.api_token = api_token
        self.wait_timeout = wait_timeout
        self.retry_delay = retry_delay
        self.connect_attempts = 0
        self._client = client or socketio.AsyncClient(reconnection=True)
        self._on_event: Optional[EventHandler] = None
        self._on_state: Optional[StateHandler] = None
        self._connect_task: Optional[asyncio.Task] = None

    async def attach(self, on_event: EventHandler, on_state: StateHandler):
        """
        Register handlers and connect in the background.

        Returns immediately; the first connection is retried until it
        succeeds or the channel is detached, and ``on_state(True)`` fires
        once it is up.
        """
        self._on_event = on_event
        self._on_state = on_state

        self._client.on("connect", self._handle_connect)
        self._client.on("disconnect", self._handle_disconnect)
        self._client.on(self.event, self._handle_event)

        if self._connect_task is None:
            self._connect_task = asyncio.create_task(self._connect_loop())

    async def _connect_loop(self):
        auth = {"token": self.api_token} if self.api_token else None
        headers = {"Authorization": f"Bearer {self.api_token}"} if self.api_token else {}
        while True:
            self.connect_attempts += 1
            try:
                await self._client.connect(
                    self.url,
                    auth=auth,
                    headers=headers,
                    wait_timeout=self.wait_timeout,
                    retry=True,
                )
            except SocketConnectionError as e:
                error = FeedError(
                    category=ErrorCategory.TRANSIENT,
                    error_code="push_connect_failed",
                    message=f"Could not connect to {self.url}: {e}",
                    original=e,
                )
                logger.warning(f"{error}, retrying in {self.retry_delay:g}s")
                await asyncio.sleep(self.retry_delay)
                continue
            logger.info(f"Listening for '{self.event}' events on {self.url}")
            return

    async def detach(self):
        self._on_event = None
        self._on_state = None
        if self._connect_task is not None:
            self._connect_task.cancel()
            try:
                await self._connect_task
            except asyncio.CancelledError:
                pass
            self._connect_task = None
        if self._client.connected:
            await self._client.disconnect()
        self.attached = False
        logger.info("Push listener detached")

    async def _handle_connect(self):
        self.attached = True
        if self._on_state:
            self._on_state(True)

    async def _handle_disconnect(self, *args):
        self.attached = False
        logger.warning("Push channel disconnected, waiting for reconnect")
        if self._on_state:
            self._on_state(False)

    async def _handle_event(self, data: Any):
        if self._on_event is None:
            return
        try:
            self._on_event(data)
        except Exception as e:
            logger.error(f"Push event handler failed: {e}")
