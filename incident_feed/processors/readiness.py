"""
Readiness gate for live processing.

Push events are only processed once the map is initialized, the viewer
location is known and the socket listener is attached.
"""

from enum import Enum
from typing import Set


class ReadinessFlag(str, Enum):
    MAP_INITIALIZED = "map_initialized"
    LOCATION_KNOWN = "location_known"
    LISTENER_ATTACHED = "listener_attached"


class ReadinessGate:

    def __init__(self):
        self._flags: Set[ReadinessFlag] = set()

    @property
    def is_ready(self) -> bool:
        return len(self._flags) == len(ReadinessFlag)

    def mark(self, flag: ReadinessFlag) -> bool:
        """Set a flag. Returns True only when this call makes the gate ready."""
        was_ready = self.is_ready
        self._flags.add(flag)
        return not was_ready and self.is_ready

    def unmark(self, flag: ReadinessFlag):
        self._flags.discard(flag)

    def missing(self) -> Set[ReadinessFlag]:
        return set(ReadinessFlag) - self._flags

    def state(self) -> dict:
        return {flag.value: flag in self._flags for flag in ReadinessFlag}

    def reset(self):
        self._flags.clear()
