import math
import unittest

from incident_feed.models import Coordinates, ViewerLocation
from incident_feed.processors.coordinates import extract_coordinates, is_valid_coordinate, safe_float
from incident_feed.processors.distance import EARTH_RADIUS_KM, distance_between, haversine_km


class TestExtractCoordinates(unittest.TestCase):
    def test_geojson_point_is_lng_lat(self):
        coords = extract_coordinates({"location": {"type": "Point", "coordinates": [77.209, 28.6139]}})
        self.assertEqual(coords, Coordinates(lat=28.6139, lng=77.209))

    def test_legacy_flat_fields(self):
        coords = extract_coordinates({"latitude": 23.02, "longitude": 72.57})
        self.assertEqual(coords, Coordinates(lat=23.02, lng=72.57))

    def test_legacy_short_and_nested_fields(self):
        self.assertEqual(extract_coordinates({"lat": 1.5, "lng": 2.5}), Coordinates(1.5, 2.5))
        self.assertEqual(
            extract_coordinates({"location": {"latitude": 3.0, "longitude": 4.0}}),
            Coordinates(3.0, 4.0),
        )

    def test_numeric_strings_are_accepted(self):
        coords = extract_coordinates({"latitude": " 19.07 ", "longitude": "72.87"})
        self.assertEqual(coords, Coordinates(lat=19.07, lng=72.87))

    def test_geojson_wins_over_legacy_fields(self):
        payload = {
            "latitude": 10.0,
            "longitude": 10.0,
            "location": {"coordinates": [72.57, 23.02]},
        }
        self.assertEqual(extract_coordinates(payload), Coordinates(lat=23.02, lng=72.57))

    def test_null_geojson_element_falls_back_to_legacy(self):
        payload = {"location": {"coordinates": [None, 23.02]}, "latitude": 5.0, "longitude": 6.0}
        self.assertEqual(extract_coordinates(payload), Coordinates(lat=5.0, lng=6.0))

    def test_out_of_range_is_missing(self):
        self.assertIsNone(extract_coordinates({"latitude": 91, "longitude": 10}))
        self.assertIsNone(extract_coordinates({"latitude": 10, "longitude": -180.5}))
        self.assertIsNone(extract_coordinates({"location": {"coordinates": [200, 10]}}))

    def test_garbage_is_missing(self):
        self.assertIsNone(extract_coordinates({"latitude": "north", "longitude": 10}))
        self.assertIsNone(extract_coordinates({"latitude": float("nan"), "longitude": 10}))
        self.assertIsNone(extract_coordinates({"latitude": True, "longitude": 10}))
        self.assertIsNone(extract_coordinates({"location": {"coordinates": [1]}}))
        self.assertIsNone(extract_coordinates({}))
        self.assertIsNone(extract_coordinates(None))
        self.assertIsNone(extract_coordinates(["not", "a", "dict"]))

    def test_boundaries_are_valid(self):
        self.assertTrue(is_valid_coordinate(90.0, 180.0))
        self.assertTrue(is_valid_coordinate(-90.0, -180.0))
        self.assertFalse(is_valid_coordinate(None, 0.0))

    def test_safe_float(self):
        self.assertEqual(safe_float("1e2"), 100.0)
        self.assertIsNone(safe_float(""))
        self.assertIsNone(safe_float(float("inf")))


class TestDistance(unittest.TestCase):
    def test_same_point_is_zero(self):
        point = Coordinates(28.6139, 77.2090)
        self.assertAlmostEqual(haversine_km(point, point), 0.0)

    def test_connaught_place_to_north_delhi(self):
        distance = haversine_km(Coordinates(28.6139, 77.2090), Coordinates(28.7041, 77.1025))
        self.assertGreater(distance, 14.0)
        self.assertLess(distance, 15.0)

    def test_symmetric(self):
        a, b = Coordinates(23.0225, 72.5714), Coordinates(19.0760, 72.8777)
        self.assertAlmostEqual(haversine_km(a, b), haversine_km(b, a))

    def test_antipodal_points(self):
        distance = haversine_km(Coordinates(0.0, 0.0), Coordinates(0.0, 180.0))
        self.assertAlmostEqual(distance, math.pi * EARTH_RADIUS_KM, places=3)

    def test_unknown_viewer_gives_no_distance(self):
        self.assertIsNone(distance_between(None, Coordinates(1.0, 1.0)))
        viewer = ViewerLocation(lat=1.0, lng=1.0)
        self.assertAlmostEqual(distance_between(viewer, Coordinates(1.0, 1.0)), 0.0)


if __name__ == "__main__":
    unittest.main()
