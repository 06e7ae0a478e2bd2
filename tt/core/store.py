"""The task collection and the only thing allowed to write it to storage.

Every public method is one critical section: reload from storage, act, and
persist if anything changed. Storage failures are logged and swallowed here;
the in-memory collection stays authoritative until a later save succeeds.
"""

import threading
import uuid
from tt.common.logger import log
from tt.core.storage import StorageError
from tt.core.task import Task
from tt.util import now_ms


class TaskStore:

    def __init__(self, storage, clock=now_ms):
        self._storage = storage
        self._clock = clock
        self._lock = threading.RLock()
        self._tasks = []
        # Set when a persist failed, meaning memory is ahead of storage and must not be overwritten by a reload.
        self._dirty = False
        self._closed = False
        # Total from the most recent tick()
        self.last_total = 0
        self.last_running_count = 0
        self.load()

    #region === Persistence ===

    # Replaces the in-memory collection with what's in storage, unless memory holds unsaved changes.
    def load(self):
        with self._lock:
            if self._dirty:
                log.debug("Skipping reload, in-memory tasks have unsaved changes")
                return False
            try:
                records = self._storage.load()
            except StorageError:
                log.warning("Failed to load tasks from storage, keeping in-memory copy", exc_info=True)
                return False

            tasks = []
            for record in records or []:
                try:
                    tasks.append(Task.from_record(record))
                except (KeyError, TypeError, ValueError):
                    log.warning(f"Skipping unreadable task record {record!r}", exc_info=True)
            self._tasks = tasks
            return True

    # Writes the whole collection. Returns whether it made it to storage.
    def persist(self):
        with self._lock:
            records = [t.to_record() for t in self._tasks]
            try:
                self._storage.save(records)
            except StorageError:
                self._dirty = True
                log.warning(f"Failed to persist {len(records)} tasks, will retry on next change", exc_info=True)
                return False
            if self._dirty:
                log.info("Persist succeeded, storage reconciled with in-memory tasks")
            self._dirty = False
            return True

    @property
    def dirty(self):
        return self._dirty

    # Final flush on shutdown. Safe to call more than once.
    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
            for task in self._tasks:
                task.refresh(self._clock())
            self.persist()
            log.info(f"Closed task store with {len(self._tasks)} tasks")

    #endregion === Persistence ===

    #region === Commands ===

    def _find(self, task_id):
        return next((t for t in self._tasks if t.id == task_id), None)

    # Appends a new stopped task. Any string is accepted as a name; rejecting blanks is the UI's job.
    def add_task(self, name):
        with self._lock:
            self.load()
            task = Task(id=uuid.uuid4().hex, name=name)
            self._tasks.append(task)
            self.persist()
            log.info(f"Added task '{task.id}' named {name!r}")
            return task.copy()

    # start/pause/reset all share the same shape: find, transition, persist. Unknown ids are silently ignored.
    def _transition(self, task_id, action):
        with self._lock:
            self.load()
            task = self._find(task_id)
            if task is None:
                log.debug(f"Ignoring {action} for unknown task '{task_id}'")
                return False
            if action == "reset":
                task.reset()
            else:
                getattr(task, action)(self._clock())
            self.persist()
            return True

    def start_task(self, task_id):
        return self._transition(task_id, "start")

    def pause_task(self, task_id):
        return self._transition(task_id, "pause")

    def reset_task(self, task_id):
        return self._transition(task_id, "reset")

    def delete_task(self, task_id):
        with self._lock:
            self.load()
            before = len(self._tasks)
            self._tasks = [t for t in self._tasks if t.id != task_id]
            removed = len(self._tasks) != before
            self.persist()
            if removed:
                log.info(f"Deleted task '{task_id}'")
            return removed

    #endregion === Commands ===

    #region === Queries ===

    def get_task(self, task_id):
        with self._lock:
            task = self._find(task_id)
            return task.copy() if task is not None else None

    @property
    def tasks(self):
        with self._lock:
            return tuple(t.copy() for t in self._tasks)

    # Ordered copies of every task, with running tasks' elapsed brought up to `now`. The refreshed value is also
    # written back into memory so repeated calls never go backwards, but nothing is persisted.
    def list_tasks_with_live_times(self, now=None):
        with self._lock:
            self.load()
            now = self._clock() if now is None else now
            for task in self._tasks:
                task.refresh(now)
            return [t.copy() for t in self._tasks]

    def running_count(self):
        with self._lock:
            self.load()
            return sum(1 for t in self._tasks if t.running)

    def total_elapsed(self, now=None):
        with self._lock:
            self.load()
            now = self._clock() if now is None else now
            return sum(t.current_elapsed(now) for t in self._tasks)

    #endregion === Queries ===

    # Periodic maintenance. Refreshes running tasks and the total, and only writes when something is running.
    def tick(self, now=None):
        with self._lock:
            self.load()
            now = self._clock() if now is None else now
            total = 0
            running = 0
            for task in self._tasks:
                task.refresh(now)
                total += task.elapsed
                if task.running:
                    running += 1
            self.last_total = total
            self.last_running_count = running

            has_running = running > 0
            if has_running:
                self.persist()
            return has_running
