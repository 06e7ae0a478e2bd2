import sys
from PySide6.QtCore import Qt, QTimer, Signal
from PySide6.QtGui import QFont
from PySide6.QtWidgets import (
    QApplication,
    QLabel,
    QMainWindow,
    QMessageBox,
    QVBoxLayout,
    QWidget,
)
from tt.common.logger import log
from tt.core import config
from tt.core.commands import Command, CommandDispatcher, ErrorKind, Request
from tt.core.storage import JsonFileStorage
from tt.core.store import TaskStore
from tt.ui.refresh import RefreshLoop
from tt.ui.theme import THEMES, build_stylesheet
from tt.ui.widgets import BuildContext, build_footer, build_header, build_task_row
from tt.util import format_time

_WINDOW_TITLE = "Task Timer"


# ---------------------------------------------------------------------------
# Main window
# ---------------------------------------------------------------------------

# Main window of the task timer. Only ever talks to the store through the dispatcher; everything it shows comes back
# from getTasks/getTotalTime via the refresh loop.
class MainWindow(QMainWindow):

    # Emitted from the command thread, delivered on the GUI thread
    badge_changed = Signal(object)
    command_finished = Signal(object)

    def __init__(self, dispatcher, settings):
        super().__init__()
        self.setWindowTitle(_WINDOW_TITLE)
        self._dispatcher = dispatcher

        self.theme = settings["theme"] if settings["theme"] in THEMES else "Light"
        self.font_family = "Segoe UI" if sys.platform == "win32" else "Sans Serif"
        self.confirm_delete = settings["confirm_delete"]
        if settings["always_on_top"]:
            self.setWindowFlags(self.windowFlags() | Qt.WindowStaysOnTopHint)

        self._tasks = []
        self._widgets = {}          # task id -> widget dict
        self._row_signature = None  # (id, name, running) per row from the last rebuild

        # -- Build UI skeleton --
        central = QWidget()
        self.setCentralWidget(central)
        self._main_lay = QVBoxLayout(central)
        self._main_lay.setContentsMargins(8, 8, 8, 8)

        ctx = BuildContext.compute(THEMES[self.theme], self.font_family, [])
        header, hw = build_header(ctx)
        self._total_lbl = hw["total"]
        self._badge_lbl = hw["badge"]
        self._main_lay.addWidget(header)

        self._grid_widget = QWidget()
        self._grid = QVBoxLayout(self._grid_widget)
        self._grid.setContentsMargins(0, 0, 0, 0)
        self._grid.setSpacing(2)
        self._main_lay.addWidget(self._grid_widget)

        footer, fw = build_footer(ctx, on_add=self._on_add)
        self._add_input = fw["add_input"]
        self._add_btn = fw["add_btn"]
        self._main_lay.addWidget(footer)

        self.setStyleSheet(build_stylesheet(self.theme))
        self._rebuild_rows()

        # -- Wiring --
        self.badge_changed.connect(self._apply_badge)
        self.command_finished.connect(self._on_command_finished)
        self._dispatcher.set_badge_listener(self.badge_changed.emit)

        self._refresh = RefreshLoop(self._dispatcher, settings["refresh_interval_ms"], self)
        self._refresh.tasks_ready.connect(self._on_tasks)
        self._refresh.total_ready.connect(self._on_total)

        # -- Tick timer (1 s by default) --
        self._tick_timer = QTimer(self)
        self._tick_timer.timeout.connect(self._tick)
        self._tick_timer.start(settings["tick_interval_ms"])

        self._refresh.start()
        self._send(Request(Command.UPDATE_BADGE))

    # ------------------------------------------------------------------ #
    #  Commands                                                            #
    # ------------------------------------------------------------------ #

    # Fire-and-forget: the reply comes back through command_finished, which kicks a refresh.
    def _send(self, request):
        try:
            future = self._dispatcher.submit(request)
        except RuntimeError:
            log.warning(f"Dropped {request.command.value}, dispatcher is shut down")
            return
        future.add_done_callback(
            lambda f: self.command_finished.emit(None if f.cancelled() else f.result()))

    def _tick(self):
        try:
            self._dispatcher.submit_tick()
        except RuntimeError:
            self._tick_timer.stop()

    def _on_command_finished(self, response):
        if response is None:
            return
        if response.error is ErrorKind.PERSISTENCE:
            self.statusBar().showMessage("Could not save tasks, changes are kept in memory", 5000)
        elif not response.success:
            log.warning(f"Command failed: {response.error}")
        self._refresh.refresh_now()

    # ------------------------------------------------------------------ #
    #  Button handlers                                                     #
    # ------------------------------------------------------------------ #

    def _on_add(self):
        name = self._add_input.text().strip()
        # Blank names stop here, the store itself takes anything
        if not name:
            return
        self._add_input.clear()
        self._send(Request(Command.ADD_TASK, name=name))

    def _on_toggle(self, task_id, running):
        command = Command.PAUSE_TIMER if running else Command.START_TIMER
        self._send(Request(command, task_id=task_id))

    def _on_reset(self, task_id):
        self._send(Request(Command.RESET_TIMER, task_id=task_id))

    def _on_delete(self, task_id, name):
        if self.confirm_delete:
            if QMessageBox.question(
                    self, "Confirm Delete",
                    f"Delete \"{name}\"?"
            ) != QMessageBox.Yes:
                return
        self._send(Request(Command.DELETE_TASK, task_id=task_id))

    # ------------------------------------------------------------------ #
    #  Rendering                                                           #
    # ------------------------------------------------------------------ #

    def _on_tasks(self, tasks):
        self._tasks = tasks
        signature = [(t.id, t.name, t.running) for t in tasks]
        if signature != self._row_signature:
            self._rebuild_rows()
        else:
            for task in tasks:
                self._widgets[task.id]["time"].setText(format_time(task.elapsed))

    def _on_total(self, total):
        self._total_lbl.setText(format_time(total))

    def _apply_badge(self, badge):
        if badge.active:
            self._badge_lbl.setText(badge.text)
            self._badge_lbl.setStyleSheet(
                f"background-color: {badge.color}; color: #FFFFFF; border-radius: 8px; padding: 1px 6px;")
            f = self._badge_lbl.font()
            f.setBold(True)
            self._badge_lbl.setFont(f)
            self.setWindowTitle(f"({badge.text}) {_WINDOW_TITLE}")
        else:
            self._badge_lbl.setText("")
            self._badge_lbl.setStyleSheet("")
            self.setWindowTitle(_WINDOW_TITLE)

    def _rebuild_rows(self):
        """Tear down and recreate every task row."""
        self._widgets.clear()

        while self._grid.count():
            item = self._grid.takeAt(0)
            w = item.widget()
            if w:
                w.hide()
                w.deleteLater()

        if not self._tasks:
            lbl = QLabel("No tasks yet")
            lbl.setFont(QFont(self.font_family, 11))
            lbl.setAlignment(Qt.AlignCenter)
            lbl.setStyleSheet(f"color: {THEMES[self.theme]['muted_text']};")
            self._grid.addWidget(lbl)
        else:
            ctx = BuildContext.compute(THEMES[self.theme], self.font_family, self._tasks)
            for task in self._tasks:
                rc, wd = build_task_row(
                    ctx, task,
                    on_toggle=self._on_toggle,
                    on_reset=self._on_reset,
                    on_delete=self._on_delete,
                )
                self._widgets[task.id] = wd
                self._grid.addWidget(rc)

        self._row_signature = [(t.id, t.name, t.running) for t in self._tasks]
        QTimer.singleShot(0, self.adjustSize)

    # ------------------------------------------------------------------ #
    #  Window close                                                        #
    # ------------------------------------------------------------------ #

    def closeEvent(self, event):
        self._tick_timer.stop()
        self._refresh.stop()
        try:
            self._dispatcher.shutdown()
        except Exception as e:
            log.exception("Failed to shut down cleanly")
            QMessageBox.warning(self, "Save Error",
                                f"Failed to save tasks:\n{e}")
        event.accept()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    app = QApplication(sys.argv)
    settings = config.load_settings()
    store = TaskStore(JsonFileStorage(config.TASKS_PATH))
    dispatcher = CommandDispatcher(store, badge_color=settings["badge_color"])
    window = MainWindow(dispatcher, settings)
    window.show()
    sys.exit(app.exec())
