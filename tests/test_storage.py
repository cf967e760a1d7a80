"""
Unit tests for local storage of saved classes.

Storage contract:
- Missing/invalid file -> empty list
- Duplicates (same id) are dropped on save and load, first one wins
- JSON schema: {"saved_classes": [ {...}, ... ]}
"""

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from hxgny.model import ClassRecord
from hxgny.storage import load_saved_classes, save_saved_classes


class TestStorage(unittest.TestCase):
    def test_load_missing_file_returns_empty(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "missing.json"
            self.assertEqual(load_saved_classes(p), [])

    def test_load_corrupt_file_returns_empty(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "saved_classes.json"
            p.write_text("[[[", encoding="utf-8")
            self.assertEqual(load_saved_classes(p), [])
            p.write_text("[1, 2]", encoding="utf-8")
            self.assertEqual(load_saved_classes(p), [])

    def test_save_and_load_roundtrip(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "nested" / "saved_classes.json"
            a = ClassRecord(id="a", title="Chess", room="R1")
            b = ClassRecord(id="b", title="Go")
            save_saved_classes([a, b, ClassRecord(id="a", title="Chess (dup)")], p)
            self.assertEqual(load_saved_classes(p), [a, b])

            data = json.loads(p.read_text(encoding="utf-8"))
            self.assertIn("saved_classes", data)
            self.assertEqual([x["id"] for x in data["saved_classes"]], ["a", "b"])

    def test_save_leaves_no_temp_files(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "saved_classes.json"
            save_saved_classes([ClassRecord(id="a", title="Chess")], p)
            save_saved_classes([ClassRecord(id="b", title="Go")], p)
            self.assertEqual([x.name for x in Path(d).iterdir()], ["saved_classes.json"])

    def test_failed_save_keeps_previous_file(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "saved_classes.json"
            kept = ClassRecord(id="a", title="Chess")
            save_saved_classes([kept], p)

            with mock.patch("hxgny.cache.os.replace", side_effect=OSError("disk full")):
                with self.assertRaises(OSError):
                    save_saved_classes([ClassRecord(id="b", title="Go")], p)

            self.assertEqual(load_saved_classes(p), [kept])
            self.assertEqual([x.name for x in Path(d).iterdir()], ["saved_classes.json"])

    def test_load_dedupes_and_skips_invalid(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "saved_classes.json"
            payload = {
                "saved_classes": [
                    {"id": "a", "title": "First"},
                    {"id": "a", "title": "Second"},
                    {"id": "b"},
                    "junk",
                ]
            }
            p.write_text(json.dumps(payload), encoding="utf-8")
            self.assertEqual([c.title for c in load_saved_classes(p)], ["First"])


if __name__ == "__main__":
    unittest.main()
