"""
Unit tests for the local cache store.

Cache contract:
- missing or corrupt slot -> None (cache miss), never an exception
- save_list overwrites the slot and stamps updated_at
- seeds are plain JSON lists, only used as a fallback by callers
"""

import json
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from hxgny.cache import CacheStore, SlotStore, page_slot
from hxgny.model import ClassRecord, OneColumnRecord


class TestSlotStore(unittest.TestCase):
    def test_put_get_roundtrip(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            store = SlotStore(Path(d) / "cache")
            self.assertIsNone(store.get("x"))
            store.put("x", {"updated_at": "2024-01-01T00:00:00+00:00", "items": [1]})
            self.assertEqual(store.get("x")["items"], [1])
            self.assertEqual(store.last_modified("x"), datetime(2024, 1, 1, tzinfo=timezone.utc))

    def test_put_leaves_no_temp_files(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            store = SlotStore(d)
            store.put("x", {"items": []})
            self.assertEqual(sorted(p.name for p in Path(d).iterdir()), ["x.json"])

    def test_corrupt_file_is_a_miss(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            (Path(d) / "x.json").write_text("{not json", encoding="utf-8")
            store = SlotStore(d)
            self.assertIsNone(store.get("x"))
            self.assertIsNone(store.last_modified("x"))


class TestCacheStore(unittest.TestCase):
    def test_save_and_load(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            cache = CacheStore(d)
            items = [ClassRecord(id="1", title="Chess"), ClassRecord(id="2", title="Go")]
            self.assertTrue(cache.save_list("classes", items))
            self.assertEqual(cache.load_list("classes", ClassRecord.from_dict), items)
            self.assertIsNotNone(cache.last_updated("classes"))

    def test_missing_slot(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            cache = CacheStore(d)
            self.assertIsNone(cache.load_list("classes", ClassRecord.from_dict))
            self.assertIsNone(cache.last_updated("classes"))

    def test_invalid_items_are_a_miss(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            payload = {"updated_at": "2024-01-01T00:00:00+00:00", "items": [{"id": "1"}]}
            (Path(d) / "classes.json").write_text(json.dumps(payload), encoding="utf-8")
            cache = CacheStore(d)
            self.assertIsNone(cache.load_list("classes", ClassRecord.from_dict))

    def test_unknown_fields_are_tolerated(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            payload = {"items": [{"id": "1", "text": "Hello", "color": "red"}], "version": 9}
            (Path(d) / "onecol_contact.json").write_text(json.dumps(payload), encoding="utf-8")
            cache = CacheStore(d)
            out = cache.load_list(page_slot("contact"), OneColumnRecord.from_dict)
            self.assertEqual(out, [OneColumnRecord(id="1", text="Hello")])

    def test_seed(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            seed_dir = Path(d) / "seed"
            seed_dir.mkdir()
            (seed_dir / "classes.json").write_text(json.dumps([{"id": "s", "title": "Seeded"}]), encoding="utf-8")
            cache = CacheStore(Path(d) / "cache", seed_dir=seed_dir)
            self.assertEqual([c.title for c in cache.load_seed("classes", ClassRecord.from_dict)], ["Seeded"])
            self.assertIsNone(cache.load_seed("notices", ClassRecord.from_dict))

    def test_no_seed_dir(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            self.assertIsNone(CacheStore(d).load_seed("classes", ClassRecord.from_dict))

    def test_write_failure_is_reported(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            blocker = Path(d) / "file"
            blocker.write_text("", encoding="utf-8")
            # cache root below a regular file cannot be created
            cache = CacheStore(blocker / "cache")
            self.assertFalse(cache.save_list("classes", [ClassRecord(id="1", title="Chess")]))


if __name__ == "__main__":
    unittest.main()
