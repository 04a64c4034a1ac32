import os
import unittest
from unittest import mock

from incident_feed.config import DEFAULT_LOCATION, FeedConfig, socket_url_for
from incident_feed.models import Severity, ViewerLocation

_FEED_VARS = [
    name for name in os.environ
    if name.startswith(("FEED_", "RESCUE_")) or name in ("HOST", "PORT")
]


class TestFeedConfig(unittest.TestCase):
    def setUp(self):
        patcher = mock.patch.dict(os.environ, {}, clear=False)
        patcher.start()
        self.addCleanup(patcher.stop)
        for name in _FEED_VARS:
            os.environ.pop(name, None)

    def test_defaults(self):
        config = FeedConfig.from_env()
        self.assertEqual(config.nearby_url, "http://localhost:5000/api/v1/officer/nearby-complaints")
        self.assertEqual(config.socket_url, "http://localhost:5000")
        self.assertEqual(config.push_event, "newComplaint")
        self.assertEqual(config.refresh_interval_seconds, 300)
        self.assertEqual(config.location_timeout_seconds, 5.0)
        self.assertEqual(config.visible_limit, 10)
        self.assertIsNone(config.max_distance_km)
        self.assertIsNone(config.viewer_location)
        self.assertEqual(config.default_location, DEFAULT_LOCATION)
        self.assertTrue(config.default_location.is_default)
        self.assertEqual(config.severity_radius_km[Severity.HIGH], 100.0)

    def test_environment_values(self):
        os.environ.update({
            "RESCUE_API_URL": "https://rescue.example.com/api/v1/",
            "RESCUE_API_TOKEN": "secret",
            "FEED_VISIBLE_LIMIT": "25",
            "FEED_MAX_DISTANCE_KM": "50",
            "FEED_SEVERITY_RADIUS_FILTER": "true",
            "FEED_VIEWER_LAT": "28.61",
            "FEED_VIEWER_LNG": "77.21",
            "FEED_AUTOSTART": "0",
        })
        config = FeedConfig.from_env()
        self.assertEqual(config.api_base_url, "https://rescue.example.com/api/v1")
        self.assertEqual(config.socket_url, "https://rescue.example.com")
        self.assertEqual(config.visible_limit, 25)
        self.assertEqual(config.max_distance_km, 50.0)
        self.assertTrue(config.severity_radius_filter)
        self.assertEqual(config.viewer_location, ViewerLocation(lat=28.61, lng=77.21))
        self.assertFalse(config.autostart)

    def test_half_viewer_location_is_ignored(self):
        os.environ["FEED_VIEWER_LAT"] = "28.61"
        self.assertIsNone(FeedConfig.from_env().viewer_location)

    def test_overrides_win_and_none_is_ignored(self):
        os.environ["FEED_VISIBLE_LIMIT"] = "25"
        config = FeedConfig.from_env(visible_limit=3, api_token=None)
        self.assertEqual(config.visible_limit, 3)
        self.assertIsNone(config.api_token)

    def test_bad_number_names_the_variable(self):
        os.environ["FEED_VISIBLE_LIMIT"] = "ten"
        with self.assertRaises(ValueError) as ctx:
            FeedConfig.from_env()
        self.assertIn("FEED_VISIBLE_LIMIT", str(ctx.exception))

    def test_validation(self):
        with self.assertRaises(ValueError):
            FeedConfig(visible_limit=0)
        with self.assertRaises(ValueError):
            FeedConfig(refresh_interval_seconds=0)
        with self.assertRaises(ValueError):
            FeedConfig(location_timeout_seconds=-1)

    def test_locations_are_range_checked(self):
        with self.assertRaises(ValueError) as ctx:
            FeedConfig(viewer_location=ViewerLocation(lat=95.0, lng=77.2))
        self.assertIn("viewer_location", str(ctx.exception))
        os.environ["FEED_DEFAULT_LAT"] = "23.0"
        os.environ["FEED_DEFAULT_LNG"] = "190"
        with self.assertRaises(ValueError) as ctx:
            FeedConfig.from_env()
        self.assertIn("default_location", str(ctx.exception))

    def test_explicit_socket_url_is_kept(self):
        config = FeedConfig(socket_url="http://push.example.com:9000")
        self.assertEqual(config.socket_url, "http://push.example.com:9000")

    def test_to_dict_masks_token(self):
        data = FeedConfig(api_token="secret").to_dict()
        self.assertEqual(data["api_token"], "***")
        self.assertEqual(data["severity_radius_km"]["low"], 10.0)

    def test_socket_url_for(self):
        self.assertEqual(socket_url_for("http://host:5000/api/v1"), "http://host:5000")
        self.assertEqual(socket_url_for("not a url"), "not a url")


if __name__ == "__main__":
    unittest.main()
