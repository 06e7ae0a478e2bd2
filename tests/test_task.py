"""Tests for the Task timer entity (tt.core.task)."""

import os
import tempfile
import unittest

os.environ.setdefault("TASKTIMER_HOME", tempfile.mkdtemp(prefix="tasktimer_test_"))

T0 = 1_700_000_000_000  # arbitrary wall-clock millis


def _secs(n):
    return n * 1000


class TestTaskTransitions(unittest.TestCase):

    def assertInvariant(self, task):
        self.assertEqual(task.running, task.start_time is not None)

    def test_new_task_is_stopped_at_zero(self):
        from tt.core.task import Task
        task = Task("1", "Writing")
        self.assertEqual(task.elapsed, 0)
        self.assertEqual(task.base_elapsed, 0)
        self.assertFalse(task.running)
        self.assertIsNone(task.start_time)

    def test_start_pause_freezes_elapsed(self):
        """start, 5s, pause → 5; another 5s later still 5."""
        from tt.core.task import Task
        task = Task("1", "Writing")
        task.start(T0)
        self.assertInvariant(task)
        self.assertEqual(task.current_elapsed(T0 + _secs(5)), 5)

        task.pause(T0 + _secs(5))
        self.assertInvariant(task)
        self.assertEqual(task.elapsed, 5)
        self.assertEqual(task.current_elapsed(T0 + _secs(10)), 5)

    def test_start_twice_is_idempotent(self):
        from tt.core.task import Task
        task = Task("1", "Writing")
        task.start(T0)
        before = task.to_record()
        task.start(T0 + _secs(7))
        self.assertEqual(task.to_record(), before)
        self.assertEqual(task.start_time, T0)

    def test_pause_when_stopped_is_noop(self):
        from tt.core.task import Task
        task = Task("1", "Writing", elapsed=42)
        task.pause(T0)
        self.assertEqual(task.elapsed, 42)
        self.assertFalse(task.running)

    def test_resume_continues_from_committed_time(self):
        from tt.core.task import Task
        task = Task("1", "Writing")
        task.start(T0)
        task.pause(T0 + _secs(5))
        task.start(T0 + _secs(20))
        self.assertEqual(task.base_elapsed, 5)
        self.assertEqual(task.current_elapsed(T0 + _secs(23)), 8)

    def test_reset_while_running(self):
        """start, 3s, reset → 0 and stopped."""
        from tt.core.task import Task
        task = Task("1", "Writing")
        task.start(T0)
        task.refresh(T0 + _secs(3))
        task.reset()
        self.assertInvariant(task)
        self.assertEqual(task.to_record()["time"], 0)
        self.assertEqual(task.base_elapsed, 0)
        self.assertFalse(task.running)
        self.assertIsNone(task.start_time)

    def test_reset_from_any_state(self):
        from tt.core.task import Task
        for running in (False, True):
            task = Task("1", "x", elapsed=99, running=running,
                        start_time=T0 if running else None, base_elapsed=50)
            task.reset()
            self.assertEqual(
                (task.elapsed, task.base_elapsed, task.running, task.start_time),
                (0, 0, False, None))


class TestTaskElapsed(unittest.TestCase):

    def test_sub_second_progress_is_floored(self):
        from tt.core.task import Task
        task = Task("1", "x")
        task.start(T0)
        self.assertEqual(task.current_elapsed(T0 + 999), 0)
        self.assertEqual(task.current_elapsed(T0 + 1000), 1)
        self.assertEqual(task.current_elapsed(T0 + 1999), 1)

    def test_monotonic_while_running(self):
        from tt.core.task import Task
        task = Task("1", "x", elapsed=10)
        task.start(T0)
        last = -1
        for offset in range(0, 20_000, 333):
            value = task.current_elapsed(T0 + offset)
            self.assertGreaterEqual(value, last)
            last = value

    def test_clock_going_backwards_clamps_to_base(self):
        from tt.core.task import Task
        task = Task("1", "x", elapsed=10)
        task.start(T0)
        self.assertEqual(task.current_elapsed(T0 - _secs(60)), 10)

    def test_current_elapsed_does_not_mutate(self):
        from tt.core.task import Task
        task = Task("1", "x")
        task.start(T0)
        before = task.to_record()
        task.current_elapsed(T0 + _secs(30))
        self.assertEqual(task.to_record(), before)

    def test_refresh_writes_back_without_ending_run(self):
        from tt.core.task import Task
        task = Task("1", "x")
        task.start(T0)
        task.refresh(T0 + _secs(12))
        self.assertEqual(task.elapsed, 12)
        self.assertTrue(task.running)
        self.assertEqual(task.start_time, T0)
        self.assertEqual(task.base_elapsed, 0)

    def test_refresh_on_paused_task_is_noop(self):
        from tt.core.task import Task
        task = Task("1", "x", elapsed=7)
        task.refresh(T0)
        self.assertEqual(task.elapsed, 7)

    def test_time_spent_unloaded_still_counts(self):
        """A run restored from storage hours later includes the gap."""
        from tt.core.task import Task
        task = Task.from_record({"id": "1", "name": "x", "time": 0, "isRunning": True,
                                 "startTime": T0, "baseTime": 100})
        self.assertEqual(task.current_elapsed(T0 + _secs(3600)), 3700)


class TestTaskRecords(unittest.TestCase):

    def test_record_shape(self):
        from tt.core.task import Task
        task = Task("abc", "Writing")
        task.start(T0)
        self.assertEqual(task.to_record(), {
            "id": "abc", "name": "Writing", "time": 0,
            "isRunning": True, "startTime": T0, "baseTime": 0,
        })

    def test_from_record_defaults(self):
        from tt.core.task import Task
        task = Task.from_record({"id": 5, "name": "Old"})
        self.assertEqual(task.id, "5")
        self.assertEqual((task.elapsed, task.running, task.start_time, task.base_elapsed),
                         (0, False, None, 0))

    def test_from_record_running_without_start_loads_paused(self):
        from tt.core.task import Task
        task = Task.from_record({"id": "1", "name": "x", "time": 30, "isRunning": True, "startTime": None})
        self.assertFalse(task.running)
        self.assertIsNone(task.start_time)
        self.assertEqual(task.elapsed, 30)

    def test_from_record_start_without_running_is_dropped(self):
        from tt.core.task import Task
        task = Task.from_record({"id": "1", "name": "x", "isRunning": False, "startTime": T0})
        self.assertFalse(task.running)
        self.assertIsNone(task.start_time)

    def test_from_record_negative_times_clamp_to_zero(self):
        from tt.core.task import Task
        task = Task.from_record({"id": "1", "name": "x", "time": -5, "baseTime": -2})
        self.assertEqual((task.elapsed, task.base_elapsed), (0, 0))
        self.assertEqual(task.current_elapsed(T0), 0)

    def test_from_record_missing_id_raises(self):
        from tt.core.task import Task
        with self.assertRaises(KeyError):
            Task.from_record({"name": "x"})

    def test_copy_is_detached(self):
        from tt.core.task import Task
        task = Task("1", "x")
        clone = task.copy()
        self.assertEqual(clone, task)
        clone.start(T0)
        self.assertFalse(task.running)


if __name__ == "__main__":
    unittest.main()
