from tt.common.logger import log
from tt.util import now_ms


def _non_negative(task_id, field, value):
    value = int(value)
    if value < 0:
        log.warning(f"Task '{task_id}' had negative {field}={value}, clamping to 0")
        return 0
    return value


# This object handles time tracking for a single task. Rather than counting up on every tick, it remembers the
# wall-clock millis the current run began at (start_time) plus the elapsed seconds frozen at that moment
# (base_elapsed), and derives live elapsed time from those two. Missed ticks, sleeps and restarts can't make it drift.
class Task:

    # Matches the persisted record shape: {id, name, time, isRunning, startTime, baseTime}
    def __init__(self, id, name, elapsed=0, running=False, start_time=None, base_elapsed=0):
        self.id = id
        self.name = name
        self.elapsed = _non_negative(id, "elapsed", elapsed)
        self.base_elapsed = _non_negative(id, "base_elapsed", base_elapsed)

        # running and start_time only ever change together
        if running and start_time is not None:
            self.running = True
            self.start_time = int(start_time)
        else:
            if running or start_time is not None:
                log.warning(f"Task '{id}' had inconsistent running={running}/start_time={start_time}, loading as paused")
            self.running = False
            self.start_time = None

    # Builds a Task from a persisted record, filling anything missing with fresh-task defaults.
    @classmethod
    def from_record(cls, record):
        return cls(
            id=str(record["id"]),
            name=record.get("name", ""),
            elapsed=record.get("time") or 0,
            running=bool(record.get("isRunning", False)),
            start_time=record.get("startTime"),
            base_elapsed=record.get("baseTime") or 0,
        )

    def to_record(self):
        return {
            "id": self.id,
            "name": self.name,
            "time": self.elapsed,
            "isRunning": self.running,
            "startTime": self.start_time,
            "baseTime": self.base_elapsed,
        }

    # Whole seconds since start_time, floored. A clock that jumped backwards counts as zero.
    def _run_seconds(self, now):
        return max(0, (now - self.start_time) // 1000)

    # Returns the elapsed seconds as of `now` without touching any state.
    def current_elapsed(self, now=None):
        if not self.running:
            return self.elapsed
        if now is None:
            now = now_ms()
        return self.base_elapsed + self._run_seconds(now)

    # Start and pause methods for the timer. Both are no-ops when already in the target state.
    def start(self, now=None):
        if not self.running:
            self.running = True
            self.start_time = now_ms() if now is None else int(now)
            self.base_elapsed = self.elapsed
            log.debug(f"Started task '{self.id}' at {self.start_time} from base {self.base_elapsed}s")
    def pause(self, now=None):
        if self.running:
            self.elapsed = self.current_elapsed(now)
            self.running = False
            self.start_time = None
            log.debug(f"Paused task '{self.id}' at {self.elapsed}s")
    # Hard reset to 0:00, discarding any run in progress.
    def reset(self):
        self.elapsed = 0
        self.base_elapsed = 0
        self.running = False
        self.start_time = None
        log.debug(f"Reset task '{self.id}' to 0")

    # Writes the live value into elapsed for display/persistence, without ending the run.
    def refresh(self, now=None):
        if self.running:
            self.elapsed = self.current_elapsed(now)

    # Detached copy, so TaskStore can hand tasks out without letting callers mutate its own.
    def copy(self):
        return Task.from_record(self.to_record())

    def __repr__(self):
        return (f"Task(id={self.id!r}, name={self.name!r}, elapsed={self.elapsed}, running={self.running}, "
                f"start_time={self.start_time}, base_elapsed={self.base_elapsed})")

    def __eq__(self, other):
        if not isinstance(other, Task):
            return NotImplemented
        return self.to_record() == other.to_record()
