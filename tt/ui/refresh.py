from PySide6.QtCore import QObject, QTimer, Signal
from tt.common.logger import log
from tt.core.commands import Command, Request
from tt.core.ticker import TickGate


class RefreshLoop(QObject):
    """Polls the dispatcher for live task times on a QTimer.

    Each refresh submits getTasks and getTotalTime without waiting on them.
    The results come back on the command thread and are re-emitted as Qt
    signals, which Qt queues over to whichever thread owns the connected
    slot, so rendering never holds up command processing. At most one
    refresh is in flight; a timeout that lands while one is outstanding is
    skipped.
    """

    tasks_ready = Signal(object)
    total_ready = Signal(int)

    def __init__(self, dispatcher, interval_ms=1000, parent=None):
        super().__init__(parent)
        self._dispatcher = dispatcher
        self._in_flight = TickGate()
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self.refresh_now)

    def start(self):
        self._timer.start()
        self.refresh_now()

    def stop(self):
        self._timer.stop()

    @property
    def active(self):
        return self._timer.isActive()

    def refresh_now(self):
        if not self._in_flight.try_enter():
            return False
        try:
            tasks_future = self._dispatcher.submit(Request(Command.GET_TASKS))
            total_future = self._dispatcher.submit(Request(Command.GET_TOTAL_TIME))
        except RuntimeError:
            self._in_flight.leave()
            log.debug("Dispatcher is shut down, stopping refresh loop")
            self.stop()
            return False
        tasks_future.add_done_callback(self._on_tasks)
        # Commands run in order, so totals always land after tasks
        total_future.add_done_callback(self._on_total)
        return True

    def _on_tasks(self, future):
        if future.cancelled():
            return
        response = future.result()
        if response.success:
            self.tasks_ready.emit(response.tasks)

    def _on_total(self, future):
        try:
            if future.cancelled():
                return
            response = future.result()
            if response.success:
                self.total_ready.emit(response.total_time)
        finally:
            self._in_flight.leave()
