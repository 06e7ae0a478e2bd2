"""Tests for the persistence backends (tt.core.storage)."""

import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

os.environ.setdefault("TASKTIMER_HOME", tempfile.mkdtemp(prefix="tasktimer_test_"))


def _record(task_id, name="A", time=0):
    return {"id": task_id, "name": name, "time": time,
            "isRunning": False, "startTime": None, "baseTime": 0}


class TestJsonFileStorage(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.path = Path(self.tmpdir) / "tasks.json"

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_missing_file_loads_none(self):
        from tt.core.storage import JsonFileStorage
        self.assertIsNone(JsonFileStorage(self.path).load())

    def test_save_and_load_roundtrip(self):
        from tt.core.storage import JsonFileStorage
        storage = JsonFileStorage(self.path)
        records = [_record("1", "Writing", 30), _record("2", "Reading")]
        storage.save(records)
        self.assertEqual(storage.load(), records)

    def test_saved_document_shape(self):
        from tt.core.storage import JsonFileStorage
        JsonFileStorage(self.path).save([_record("1")])
        with open(self.path, encoding="utf-8") as f:
            doc = json.load(f)
        self.assertEqual(doc["meta"]["schema_version"], 1)
        self.assertIn("saved_at", doc["meta"])
        self.assertEqual(doc["tasks"], [_record("1")])

    def test_save_leaves_no_temp_files(self):
        from tt.core.storage import JsonFileStorage
        storage = JsonFileStorage(self.path)
        storage.save([_record("1")])
        storage.save([_record("2")])
        self.assertEqual(os.listdir(self.tmpdir), ["tasks.json"])

    def test_save_creates_missing_directory(self):
        from tt.core.storage import JsonFileStorage
        nested = Path(self.tmpdir) / "a" / "b" / "tasks.json"
        JsonFileStorage(nested).save([])
        self.assertTrue(nested.exists())

    def test_corrupt_file_raises_storage_error(self):
        from tt.core.storage import JsonFileStorage, StorageError
        self.path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(StorageError):
            JsonFileStorage(self.path).load()

    def test_wrong_shape_raises_storage_error(self):
        from tt.core.storage import JsonFileStorage, StorageError
        for doc in ([1, 2, 3], {"tasks": {"id": "1"}}):
            self.path.write_text(json.dumps(doc), encoding="utf-8")
            with self.assertRaises(StorageError):
                JsonFileStorage(self.path).load()

    def test_missing_meta_still_loads(self):
        from tt.core.storage import JsonFileStorage
        self.path.write_text(json.dumps({"tasks": [_record("1")]}), encoding="utf-8")
        self.assertEqual(JsonFileStorage(self.path).load(), [_record("1")])

    def test_malformed_records_are_skipped(self):
        from tt.core.storage import JsonFileStorage
        doc = {"meta": {"schema_version": 1}, "tasks": [_record("1"), "junk", {"name": "no id"}]}
        self.path.write_text(json.dumps(doc), encoding="utf-8")
        self.assertEqual(JsonFileStorage(self.path).load(), [_record("1")])

    def test_failed_write_keeps_previous_file(self):
        from tt.core.storage import JsonFileStorage, StorageError
        storage = JsonFileStorage(self.path)
        storage.save([_record("1")])
        with patch("tt.core.storage.os.replace", side_effect=OSError("disk full")):
            with self.assertRaises(StorageError):
                storage.save([_record("2")])
        self.assertEqual(storage.load(), [_record("1")])
        self.assertEqual(os.listdir(self.tmpdir), ["tasks.json"])


class TestMemoryStorage(unittest.TestCase):

    def test_empty_loads_none(self):
        from tt.core.storage import MemoryStorage
        self.assertIsNone(MemoryStorage().load())

    def test_counts_and_copies(self):
        from tt.core.storage import MemoryStorage
        storage = MemoryStorage()
        records = [_record("1")]
        storage.save(records)
        records[0]["name"] = "changed"
        loaded = storage.load()
        loaded[0]["name"] = "changed again"
        self.assertEqual(storage.records, [_record("1")])
        self.assertEqual(storage.save_count, 1)
        self.assertEqual(storage.load_count, 1)

    def test_primed_failures(self):
        from tt.core.storage import MemoryStorage, StorageError
        storage = MemoryStorage([_record("1")])
        storage.fail_saves = 1
        storage.fail_loads = 1
        with self.assertRaises(StorageError):
            storage.save([])
        with self.assertRaises(StorageError):
            storage.load()
        storage.save([])
        self.assertEqual(storage.load(), [])
        self.assertEqual(storage.save_count, 1)


if __name__ == "__main__":
    unittest.main()
