"""Buffer for push events received before the feed is ready."""

from collections import deque
from typing import Any, Deque, List


class PendingQueue:
    """FIFO of raw payloads, drained all at once."""

    def __init__(self):
        self._items: Deque[Any] = deque()

    def enqueue(self, payload: Any):
        self._items.append(payload)

    def drain_all(self) -> List[Any]:
        """Empty the queue and return its payloads in arrival order."""
        items, self._items = self._items, deque()
        return list(items)

    def clear(self):
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
