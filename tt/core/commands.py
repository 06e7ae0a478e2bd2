"""Typed request/response surface in front of TaskStore.

Callers build a ``Request`` and hand it to ``CommandDispatcher``, which runs
requests one at a time on a single worker thread. ``submit()`` returns a
Future; ``dispatch()`` waits on it for callers that just want an answer.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from tt.common.logger import log
from tt.core.ticker import TickGate

DEFAULT_BADGE_COLOR = "#2ecc71"


class Command(str, Enum):
    ADD_TASK = "addTask"
    START_TIMER = "startTimer"
    PAUSE_TIMER = "pauseTimer"
    RESET_TIMER = "resetTimer"
    DELETE_TASK = "deleteTask"
    GET_TASKS = "getTasks"
    GET_TOTAL_TIME = "getTotalTime"
    UPDATE_BADGE = "updateBadge"
    TICK = "tick"


class ErrorKind(str, Enum):
    INVALID_REQUEST = "invalid_request"
    PERSISTENCE = "persistence"
    INTERNAL = "internal"


_MUTATING = {
    Command.ADD_TASK,
    Command.START_TIMER,
    Command.PAUSE_TIMER,
    Command.RESET_TIMER,
    Command.DELETE_TASK,
}
_NEEDS_TASK_ID = _MUTATING - {Command.ADD_TASK}


@dataclass(frozen=True)
class Request:
    command: Command
    task_id: str | None = None
    name: str | None = None
    # Wall-clock millis to evaluate at; None means "now" on the store's clock
    now: int | None = None

    # Builds a Request from a {"action": ..., "taskId": ..., "name": ...} message. Raises ValueError on junk.
    @classmethod
    def from_message(cls, message):
        if not isinstance(message, dict):
            raise ValueError(f"Expected a message dict, got {type(message).__name__}")
        try:
            command = Command(message.get("action"))
        except ValueError:
            raise ValueError(f"Unknown action {message.get('action')!r}") from None
        # Ticks only come from submit_tick(), which holds the tick gate for them
        if command is Command.TICK:
            raise ValueError("tick is not accepted as a message")
        task_id = message.get("taskId")
        return cls(
            command=command,
            task_id=None if task_id is None else str(task_id),
            name=message.get("name"),
        )


@dataclass(frozen=True)
class Badge:
    text: str
    color: str | None

    @property
    def active(self):
        return bool(self.text)


# Running-count indicator: blank when nothing runs, the count on a coloured background otherwise.
def badge_for(count, color=DEFAULT_BADGE_COLOR):
    if count > 0:
        return Badge(text=str(count), color=color)
    return Badge(text="", color=None)


@dataclass(frozen=True)
class Response:
    success: bool
    task: object = None
    tasks: list | None = None
    total_time: int | None = None
    badge: Badge | None = None
    error: ErrorKind | None = None

    # Renders the reply in the same plain-dict shape requests arrive in.
    def to_message(self):
        message = {"success": self.success}
        if self.task is not None:
            message["task"] = self.task.to_record()
        if self.tasks is not None:
            message["tasks"] = [t.to_record() for t in self.tasks]
        if self.total_time is not None:
            message["totalTime"] = self.total_time
        if self.badge is not None:
            message["badge"] = {"text": self.badge.text, "color": self.badge.color}
        if self.error is not None:
            message["error"] = self.error.value
        return message


class CommandDispatcher:

    def __init__(self, store, badge_color=DEFAULT_BADGE_COLOR, on_badge=None):
        self._store = store
        self._badge_color = badge_color
        self._on_badge = on_badge
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tasktimer-cmd")
        self._submit_lock = threading.Lock()
        self._tick_gate = TickGate()
        self._closed = False
        self.badge = badge_for(0, badge_color)

    @property
    def tick_gate(self):
        return self._tick_gate

    #region === Submission ===

    def submit(self, request):
        return self._submit(self.handle, request)

    def _submit(self, fn, request):
        with self._submit_lock:
            if self._closed:
                raise RuntimeError("CommandDispatcher has been shut down")
            return self._executor.submit(fn, request)

    def dispatch(self, request, timeout=None):
        return self.submit(request).result(timeout)

    # Same as dispatch(), but speaks plain message dicts in and out.
    def dispatch_message(self, message, timeout=None):
        try:
            request = Request.from_message(message)
        except ValueError as e:
            log.warning(f"Rejected message {message!r}: {e}")
            return Response(success=False, error=ErrorKind.INVALID_REQUEST).to_message()
        return self.dispatch(request, timeout).to_message()

    # Queues a tick unless one is already waiting or running. Returns None when the tick was coalesced away.
    def submit_tick(self, now=None):
        if not self._tick_gate.try_enter():
            log.debug("Tick already pending, dropping this one")
            return None
        try:
            return self._submit(self._handle_admitted_tick, Request(Command.TICK, now=now))
        except RuntimeError:
            self._tick_gate.leave()
            raise

    # Stops taking new work, drains what's queued, then gives the store its final flush.
    def shutdown(self):
        with self._submit_lock:
            if self._closed:
                return
            self._closed = True
        self._executor.shutdown(wait=True)
        self._store.close()
        log.info("Command dispatcher shut down")

    #endregion === Submission ===

    #region === Handling ===

    # Runs one request to completion. Never raises; anything unexpected comes back as an INTERNAL error.
    def handle(self, request):
        try:
            return self._handle(request)
        except Exception:
            log.exception(f"Unhandled error while handling {request!r}")
            return Response(success=False, error=ErrorKind.INTERNAL)

    # A tick that submit_tick() let through the gate. Only these release it.
    def _handle_admitted_tick(self, request):
        try:
            return self.handle(request)
        finally:
            self._tick_gate.leave()

    def _handle(self, request):
        command = request.command
        if command in _NEEDS_TASK_ID and request.task_id is None:
            log.warning(f"{command.value} requires a task id")
            return Response(success=False, error=ErrorKind.INVALID_REQUEST)

        if command is Command.ADD_TASK:
            if not isinstance(request.name, str):
                log.warning(f"addTask requires a string name, got {request.name!r}")
                return Response(success=False, error=ErrorKind.INVALID_REQUEST)
            task = self._store.add_task(request.name)
            return self._ack(task=task)
        if command is Command.START_TIMER:
            self._store.start_task(request.task_id)
            return self._ack()
        if command is Command.PAUSE_TIMER:
            self._store.pause_task(request.task_id)
            return self._ack()
        if command is Command.RESET_TIMER:
            self._store.reset_task(request.task_id)
            return self._ack()
        if command is Command.DELETE_TASK:
            self._store.delete_task(request.task_id)
            return self._ack()
        if command is Command.GET_TASKS:
            return Response(success=True, tasks=self._store.list_tasks_with_live_times(request.now))
        if command is Command.GET_TOTAL_TIME:
            return Response(success=True, total_time=self._store.total_elapsed(request.now))
        if command is Command.UPDATE_BADGE:
            return Response(success=True, badge=self.update_badge())
        if command is Command.TICK:
            has_running = self._store.tick(request.now)
            # Also catches another writer stopping the last running task
            if has_running or self._store.last_running_count != self._running_shown():
                self.update_badge(self._store.last_running_count)
            return Response(success=True, total_time=self._store.last_total)

        return Response(success=False, error=ErrorKind.INVALID_REQUEST)

    # Successful mutation: refresh the badge and flag it if the save didn't make it to storage.
    def _ack(self, task=None):
        badge = self.update_badge()
        error = ErrorKind.PERSISTENCE if self._store.dirty else None
        return Response(success=True, task=task, badge=badge, error=error)

    # Swaps the badge listener, e.g. once the window that shows the badge exists.
    def set_badge_listener(self, on_badge):
        self._on_badge = on_badge

    # Running count the current badge shows
    def _running_shown(self):
        return int(self.badge.text) if self.badge.text else 0

    def update_badge(self, count=None):
        if count is None:
            count = self._store.running_count()
        badge = badge_for(count, self._badge_color)
        self.badge = badge
        if self._on_badge is not None:
            try:
                self._on_badge(badge)
            except Exception:
                log.exception("Badge listener failed")
        return badge

    #endregion === Handling ===
