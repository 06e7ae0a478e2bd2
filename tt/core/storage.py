"""Durable key-value persistence for the task collection.

The whole collection is stored as one array under a single ``tasks`` key,
and every save replaces it wholesale (last write wins).
"""

import json
import os
import tempfile
from tt.common.logger import log
from tt.util import now_iso


_SCHEMA_VERSION = 1


# Any failure to read or write the backing store. TaskStore catches these, nobody else should see one.
class StorageError(Exception):
    pass


class StorageBackend:
    """Interface TaskStore persists through.

    ``load()`` returns the stored list of task records, or None when nothing has
    been stored yet. ``save(records)`` replaces the stored list atomically.
    Both raise StorageError on failure.
    """

    def load(self):
        raise NotImplementedError

    def save(self, records):
        raise NotImplementedError


#region === JSON file backend ===

# Stores {"meta": {...}, "tasks": [...]} in a single JSON file.
class JsonFileStorage(StorageBackend):

    def __init__(self, path):
        self.path = path

    # Loads the tasks array, validating the document shape as it goes.
    def load(self):
        if not os.path.exists(self.path):
            log.info(f"No existing task file at '{self.path}', starting empty.")
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                state = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Could not read '{self.path}'") from e

        if not isinstance(state, dict):
            raise StorageError(f"Expected a JSON object in '{self.path}', got {type(state).__name__}")
        meta = state.get("meta")
        if not isinstance(meta, dict) or meta.get("schema_version") != _SCHEMA_VERSION:
            log.warning(f"Task file '{self.path}' has missing or unknown meta.schema_version, reading tasks anyway.")
        tasks = state.get("tasks", [])
        if not isinstance(tasks, list):
            raise StorageError(f"'tasks' in '{self.path}' is not a list")

        # Drop anything that clearly isn't a task record
        records = [r for r in tasks if isinstance(r, dict) and "id" in r]
        if len(records) != len(tasks):
            log.warning(f"Skipped {len(tasks) - len(records)} malformed task records in '{self.path}'")
        log.debug(f"Loaded {len(records)} tasks from '{self.path}'")
        return records

    # Writes to a temp file beside the target then swaps it in, so a crash never leaves half a file behind.
    def save(self, records):
        state = {
            "meta": {
                "schema_version": _SCHEMA_VERSION,
                "saved_at": now_iso(),
            },
            "tasks": list(records),
        }
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".tasks_", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(state, f, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                try: os.remove(tmp_path)
                except OSError: pass
            raise StorageError(f"Could not write '{self.path}'") from e
        log.debug(f"Saved {len(state['tasks'])} tasks to '{self.path}'")

#endregion === JSON file backend ===

#region === In-memory backend ===

# Keeps records in process. Counts reads/writes and can be primed to fail, which is what the tests lean on.
class MemoryStorage(StorageBackend):

    def __init__(self, records=None):
        self._records = None if records is None else json.loads(json.dumps(list(records)))
        self.load_count = 0
        self.save_count = 0
        self.fail_loads = 0
        self.fail_saves = 0

    def load(self):
        if self.fail_loads > 0:
            self.fail_loads -= 1
            raise StorageError("Simulated load failure")
        self.load_count += 1
        if self._records is None:
            return None
        # Hand out copies so callers can't reach into the "disk"
        return json.loads(json.dumps(self._records))

    def save(self, records):
        if self.fail_saves > 0:
            self.fail_saves -= 1
            raise StorageError("Simulated save failure")
        self._records = json.loads(json.dumps(list(records)))
        self.save_count += 1

    # What's currently "on disk", for assertions
    @property
    def records(self):
        return None if self._records is None else json.loads(json.dumps(self._records))

#endregion === In-memory backend ===
