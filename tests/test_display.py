import unittest
from datetime import datetime, timedelta, timezone

from incident_feed.display import (
    DEFAULT_CATEGORY_STYLE,
    category_style,
    format_distance,
    format_record,
    relative_time,
    severity_style,
    status_style,
)
from incident_feed.models import Category, Coordinates, IncidentRecord, Severity, Status

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


class TestStyles(unittest.TestCase):
    def test_category_styles(self):
        self.assertEqual(category_style(Category.FIRE).label, "Fire Emergency")
        self.assertEqual(category_style(Category.RAIL).icon, "train")
        self.assertEqual(category_style(None), DEFAULT_CATEGORY_STYLE)

    def test_badges(self):
        self.assertEqual(severity_style(Severity.HIGH).color, "#ef4444")
        self.assertEqual(status_style(Status.IN_PROGRESS).label, "IN PROGRESS")


class TestRelativeTime(unittest.TestCase):
    def test_ranges(self):
        self.assertEqual(relative_time(NOW - timedelta(seconds=42), NOW), "42s ago")
        self.assertEqual(relative_time(NOW - timedelta(minutes=5), NOW), "5m ago")
        self.assertEqual(relative_time(NOW - timedelta(hours=3), NOW), "3h ago")
        self.assertEqual(relative_time(NOW - timedelta(days=2), NOW), "2d ago")
        self.assertEqual(relative_time(NOW - timedelta(days=30), NOW), "Apr 10")

    def test_future_and_missing(self):
        self.assertEqual(relative_time(NOW + timedelta(minutes=1), NOW), "0s ago")
        self.assertEqual(relative_time(None, NOW), "unknown")


class TestFormatting(unittest.TestCase):
    def test_format_distance(self):
        self.assertEqual(format_distance(None), "N/A")
        self.assertEqual(format_distance(1.234), "1.23 km")

    def test_format_record(self):
        record = IncidentRecord(
            id="A",
            coordinates=Coordinates(1.0, 2.0),
            category=Category.ROAD,
            severity=Severity.LOW,
            title="Signal not working at junction",
            reported_at=NOW - timedelta(minutes=5),
            distance_km=2.5,
        )
        line = format_record(record, NOW)
        self.assertIn("[Road Issues]", line)
        self.assertIn("Low", line)
        self.assertIn("PENDING", line)
        self.assertIn("2.50 km", line)
        self.assertIn("5m ago", line)

    def test_untitled_and_long_titles(self):
        untitled = IncidentRecord(id="A", coordinates=Coordinates(1.0, 2.0))
        self.assertIn("(untitled)", format_record(untitled, NOW))
        long_title = IncidentRecord(id="B", coordinates=Coordinates(1.0, 2.0), title="x" * 60)
        self.assertIn("x" * 40 + "...", format_record(long_title, NOW))


if __name__ == "__main__":
    unittest.main()
