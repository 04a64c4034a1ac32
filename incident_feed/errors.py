"""
Feed Error Classification.

Classifies failures raised while feeding the reconciler so callers can
decide whether to fall back, drop a single incident, or carry on.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import httpx


class ErrorCategory(str, Enum):
    TRANSIENT = "transient"    # Fetch timeout, socket drop, location denied: use fallback
    MALFORMED = "malformed"    # Bad incident payload: drop that incident only
    DUPLICATE = "duplicate"    # Already materialized: no-op
    RENDER = "render"          # Marker placement failed: log, keep registry


@dataclass(eq=False)
class FeedError(Exception):
    """Classified feed error."""
    category: ErrorCategory
    error_code: str
    message: str
    status_code: Optional[int] = None
    original: Optional[Exception] = field(default=None, repr=False)

    def __str__(self):
        return f"[{self.category.value}] {self.error_code}: {self.message}"


class FetchError(FeedError):
    """Nearby-incidents request failed."""


class LocationUnavailable(FeedError):
    """Viewer location could not be determined."""


class RenderError(FeedError):
    """Rendering sink rejected a record."""


def location_unavailable(message: str, original: Optional[Exception] = None) -> LocationUnavailable:
    return LocationUnavailable(
        category=ErrorCategory.TRANSIENT,
        error_code="location_unavailable",
        message=message,
        original=original,
    )


def render_failed(record_id: str, original: Exception) -> RenderError:
    return RenderError(
        category=ErrorCategory.RENDER,
        error_code="render_failed",
        message=f"Could not render incident {record_id}: {original}",
        original=original,
    )


def classify_http_error(exc: Exception) -> FetchError:
    """Classify an httpx (or decoding) exception into a FetchError."""
    if isinstance(exc, FetchError):
        return exc

    if isinstance(exc, httpx.TimeoutException):
        return FetchError(
            category=ErrorCategory.TRANSIENT,
            error_code="timeout",
            message=str(exc) or "Request timed out",
            original=exc,
        )

    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status in (401, 403):
            code = "unauthorized"
        elif status == 429:
            code = "rate_limit"
        elif status >= 500:
            code = "server_error"
        else:
            code = "http_error"
        return FetchError(
            category=ErrorCategory.TRANSIENT,
            error_code=code,
            message=f"HTTP {status} from {exc.request.url}",
            status_code=status,
            original=exc,
        )

    if isinstance(exc, httpx.TransportError):
        return FetchError(
            category=ErrorCategory.TRANSIENT,
            error_code="network_error",
            message=str(exc) or exc.__class__.__name__,
            original=exc,
        )

    if isinstance(exc, ValueError):
        # response.json() raises a ValueError subclass on bad bodies
        return FetchError(
            category=ErrorCategory.TRANSIENT,
            error_code="invalid_response",
            message=str(exc),
            original=exc,
        )

    return FetchError(
        category=ErrorCategory.TRANSIENT,
        error_code="unknown",
        message=str(exc),
        original=exc,
    )
