import threading
from tt.common.logger import log


class TickGate:
    """Admits at most one pending tick at a time.

    ``try_enter()`` returns True when the caller may queue a tick and False
    when one is already queued or running, in which case the tick is dropped
    (coalesced). The holder calls ``leave()`` once its tick has finished.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._pending = False
        self.coalesced = 0

    def try_enter(self):
        with self._lock:
            if self._pending:
                self.coalesced += 1
                return False
            self._pending = True
            return True

    def leave(self):
        with self._lock:
            self._pending = False

    @property
    def pending(self):
        with self._lock:
            return self._pending


class TickTimer:
    """Headless tick driver for when there's no Qt event loop around.

    Calls ``dispatcher.submit_tick()`` every ``interval`` seconds on a daemon
    thread until ``stop()``. Overlapping ticks are coalesced by the dispatcher,
    so a slow save never lets ticks pile up.
    """

    def __init__(self, dispatcher, interval=1.0):
        self._dispatcher = dispatcher
        self._interval = interval
        self._stop = threading.Event()
        self._thread = None

    def start(self):
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="tasktimer-tick", daemon=True)
        self._thread.start()
        log.debug(f"Started tick timer every {self._interval}s")

    def _run(self):
        while not self._stop.wait(self._interval):
            try:
                self._dispatcher.submit_tick()
            except RuntimeError:
                # Dispatcher is shutting down underneath us
                break

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self._interval + 1)
            self._thread = None
            log.debug("Stopped tick timer")

    @property
    def running(self):
        return self._thread is not None
