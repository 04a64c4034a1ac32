"""
Rendering sinks: consumers of reconciled incident records.

place() and remove() are called synchronously from the reconciler and must
not block. Exceptions they raise are caught and logged by the reconciler.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional
import logging

from .display import format_record
from .models import IncidentRecord

logger = logging.getLogger(__name__)


class RenderSink(ABC):
    """Base class for anything that displays incident records."""

    def open(self):
        """Prepare the sink (the map is initialized once this returns)."""

    @abstractmethod
    def place(self, record: IncidentRecord) -> Any:
        """Render a record. Returns an optional marker handle."""

    @abstractmethod
    def remove(self, record_id: str):
        """Remove a previously placed record."""

    def close(self):
        """Release rendering resources."""


class LoggingSink(RenderSink):
    """Writes each placed record as one line (CLI watch mode)."""

    def __init__(self, write: Optional[Callable[[str], Any]] = None):
        self.write = write or print
        self.is_open = False

    def open(self):
        self.is_open = True

    def place(self, record: IncidentRecord) -> Any:
        if not self.is_open:
            raise RuntimeError("sink is not open")
        self.write(f"+ {format_record(record)}")
        return record.id

    def remove(self, record_id: str):
        logger.debug(f"Incident {record_id} scrolled out of the feed")

    def close(self):
        self.is_open = False
