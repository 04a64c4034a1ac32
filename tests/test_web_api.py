import os
import unittest

# Set env vars before importing the app module
os.environ["FEED_AUTOSTART"] = "0"

from fastapi.testclient import TestClient  # noqa: E402

from fakes import VIEWER, FakeNearbyClient, complaint  # noqa: E402

from backend.feed_ws import feed_update_manager  # noqa: E402
from backend.main import app  # noqa: E402
from incident_feed.config import FeedConfig  # noqa: E402
from incident_feed.session import FeedSession  # noqa: E402
from incident_feed.sources.location import StaticLocationProvider  # noqa: E402


class TestWithoutSession(unittest.TestCase):
    def test_health_and_unavailable_feed(self):
        with TestClient(app) as client:
            resp = client.get("/health")
            self.assertEqual(resp.status_code, 200)
            self.assertEqual(resp.json(), {"status": "healthy", "feed": "disabled"})

            self.assertEqual(client.get("/api/feed").status_code, 503)
            self.assertEqual(client.get("/api/feed/status").status_code, 503)
            self.assertEqual(client.post("/api/feed/refresh").status_code, 503)


class TestFeedAPI(unittest.TestCase):
    def setUp(self):
        self.nearby = FakeNearbyClient([
            [complaint("A", createdAt="2024-05-01T10:00:00Z"), complaint("B", category="fire", severity="high")],
            [complaint("B"), complaint("C")],
        ])
        self.client = TestClient(app)
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

        self.session = FeedSession(
            FeedConfig(viewer_location=VIEWER),
            nearby_client=self.nearby,
            push_channel=None,
            location_provider=StaticLocationProvider(VIEWER.lat, VIEWER.lng),
            sink=feed_update_manager,
        )
        app.state.session = self.session
        self.client.portal.call(self.session.mount)

    def test_get_feed(self):
        resp = self.client.get("/api/feed")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()

        self.assertEqual(data["total"], 2)
        ids = [incident["id"] for incident in data["incidents"]]
        self.assertEqual(set(ids), {"A", "B"})
        fire = next(i for i in data["incidents"] if i["id"] == "B")
        self.assertEqual(fire["category"], "fire")
        self.assertEqual(fire["style"]["category_label"], "Fire Emergency")
        self.assertEqual(fire["style"]["severity_label"], "High")
        self.assertAlmostEqual(fire["distance_km"], 0.0, places=3)
        self.assertEqual(data["viewer_location"], {"lat": VIEWER.lat, "lng": VIEWER.lng, "is_default": False})
        self.assertFalse(data["degraded_location"])
        self.assertIsNone(data["empty_message"])

    def test_status(self):
        data = self.client.get("/api/feed/status").json()
        self.assertTrue(data["mounted"])
        self.assertTrue(data["ready"])
        self.assertEqual(data["registered"], 2)
        self.assertEqual(data["visible"], 2)
        self.assertTrue(data["scheduler_running"])
        self.assertIsNone(data["last_fetch_error"])

    def test_refresh(self):
        resp = self.client.post("/api/feed/refresh")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"success": True, "new_incidents": 1, "error": None})
        self.assertEqual(self.client.get("/api/feed").json()["incidents"][0]["id"], "C")

    def test_health_reports_ready(self):
        self.assertEqual(self.client.get("/health").json()["feed"], "ready")

    def test_websocket_snapshot_and_updates(self):
        with self.client.websocket_connect("/ws/feed") as ws:
            snapshot = ws.receive_json()
            self.assertEqual(snapshot["type"], "feed_snapshot")
            self.assertEqual(snapshot["feed"]["total"], 2)

            self.client.portal.call(self.session.refresh)

            update = ws.receive_json()
            self.assertEqual(update["type"], "incident_added")
            self.assertEqual(update["incident"]["id"], "C")
            self.assertEqual(update["incident"]["source"], "refresh")


if __name__ == "__main__":
    unittest.main()
