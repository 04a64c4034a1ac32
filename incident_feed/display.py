"""
Display tables for incident records.

Colour/icon/label lookups are keyed by the enums, with an explicit default
for unknown categories.
"""

from datetime import datetime, timezone
from typing import NamedTuple, Optional

from .models import Category, IncidentRecord, Severity, Status


class CategoryStyle(NamedTuple):
    label: str
    icon: str
    color: str


class BadgeStyle(NamedTuple):
    label: str
    color: str


CATEGORY_STYLES = {
    Category.RAIL: CategoryStyle("Rail Incidents", "train", "#f59e0b"),
    Category.ROAD: CategoryStyle("Road Issues", "car", "#db2777"),
    Category.FIRE: CategoryStyle("Fire Emergency", "flame", "#ef4444"),
    Category.CYBER: CategoryStyle("Cyber Crime", "warning", "#8b5cf6"),
    Category.POLICE: CategoryStyle("Police", "shield", "#3b82f6"),
    Category.COURT: CategoryStyle("Court", "business", "#10b981"),
}
DEFAULT_CATEGORY_STYLE = CategoryStyle("Other", "alert-circle", "#6b7280")

SEVERITY_STYLES = {
    Severity.LOW: BadgeStyle("Low", "#10b981"),
    Severity.MEDIUM: BadgeStyle("Medium", "#f59e0b"),
    Severity.HIGH: BadgeStyle("High", "#ef4444"),
}

STATUS_STYLES = {
    Status.PENDING: BadgeStyle("PENDING", "#f59e0b"),
    Status.IN_PROGRESS: BadgeStyle("IN PROGRESS", "#3b82f6"),
    Status.RESOLVED: BadgeStyle("RESOLVED", "#10b981"),
    Status.REJECTED: BadgeStyle("REJECTED", "#ef4444"),
}


def category_style(category: Optional[Category]) -> CategoryStyle:
    if category is None:
        return DEFAULT_CATEGORY_STYLE
    return CATEGORY_STYLES.get(category, DEFAULT_CATEGORY_STYLE)


def severity_style(severity: Severity) -> BadgeStyle:
    return SEVERITY_STYLES[severity]


def status_style(status: Status) -> BadgeStyle:
    return STATUS_STYLES[status]


def relative_time(when: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Short "time ago" label; falls back to a month/day date after a week."""
    if when is None:
        return "unknown"
    now = now or datetime.now(timezone.utc)
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)

    seconds = max(0, int((now - when).total_seconds()))
    minutes, hours, days = seconds // 60, seconds // 3600, seconds // 86400

    if seconds < 60:
        return f"{seconds}s ago"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return f"{when.strftime('%b')} {when.day}"


def format_distance(distance_km: Optional[float]) -> str:
    if distance_km is None:
        return "N/A"
    return f"{distance_km:.2f} km"


def format_record(record: IncidentRecord, now: Optional[datetime] = None) -> str:
    """One-line rendering used by the CLI."""
    style = category_style(record.category)
    severity = severity_style(record.severity)
    status = status_style(record.status)
    title = record.title or "(untitled)"
    if len(title) > 40:
        title = title[:40] + "..."
    return (
        f"[{style.label}] {title} | {severity.label} | {status.label} | "
        f"{format_distance(record.distance_km)} | {relative_time(record.reported_at, now)}"
    )
