import json
import tempfile
import unittest
from pathlib import Path

from fakes import complaint

from incident_feed.importers.json_importer import JSONImporter


class TestJSONImporter(unittest.TestCase):
    def setUp(self):
        self.importer = JSONImporter()
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.tmp_path = Path(self._tmp.name)

    def _write(self, name, data):
        path = self.tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_array_file(self):
        path = self._write("complaints.json", [complaint("A"), complaint("B")])
        self.assertEqual([c["_id"] for c in self.importer.import_file(path)], ["A", "B"])

    def test_nearby_response_file(self):
        body = {"data": {"high_severity": {"complaints": [complaint("H")]}}}
        path = self._write("nearby.json", body)
        self.assertEqual([c["_id"] for c in self.importer.import_file(path)], ["H"])

    def test_results_wrapper_and_single_complaint(self):
        self.assertEqual(len(self.importer.import_data({"results": [complaint("A")]})), 1)
        self.assertEqual(self.importer.import_data(complaint("A"))[0]["_id"], "A")

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            self.importer.import_file(self.tmp_path / "missing.json")

    def test_invalid_json(self):
        path = self.tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(ValueError):
            self.importer.import_file(path)


if __name__ == "__main__":
    unittest.main()
