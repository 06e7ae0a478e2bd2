"""Row widget builders for the header, task rows, and footer.

Each builder returns a (container, widget_dict) tuple.  The container is
a QWidget that can be inserted into the grid; the widget_dict maps logical
names to sub-widgets for later updates.
"""

from dataclasses import dataclass

from PySide6.QtCore import Qt
from PySide6.QtGui import QFont, QFontMetrics
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QSizePolicy,
    QWidget,
)
from tt.util import format_time


@dataclass
class BuildContext:
    """Pre-computed values shared across all row builders in one rebuild pass."""
    theme: dict          # resolved theme dict (THEMES[name])
    font_family: str
    label_font: QFont
    time_font: QFont
    action_font: QFont
    min_name_w: int
    min_time_w: int

    @staticmethod
    def compute(theme, font_family, tasks):
        label_font = QFont(font_family, 12)
        time_font = QFont(font_family, 12)
        action_font = QFont(font_family, 10)

        bold_label = QFont(label_font)
        bold_label.setBold(True)
        fm_label = QFontMetrics(bold_label)
        if tasks:
            min_name_w = max(fm_label.horizontalAdvance(t.name) for t in tasks) + 8
        else:
            min_name_w = 80
        min_name_w = min(max(min_name_w, 80), 320)

        bold_time = QFont(time_font)
        bold_time.setBold(True)
        min_time_w = QFontMetrics(bold_time).horizontalAdvance("000:00:00 ")

        return BuildContext(
            theme=theme, font_family=font_family,
            label_font=label_font, time_font=time_font, action_font=action_font,
            min_name_w=min_name_w, min_time_w=min_time_w,
        )


def build_header(ctx):
    """Build the header with the total-time label and running-count badge.

    Returns (container, widget_dict) with keys: total, badge.
    """
    t = ctx.theme
    hc = QWidget()
    h_lay = QHBoxLayout(hc)
    h_lay.setContentsMargins(0, 0, 0, 0)

    title = QLabel("Total")
    title.setFont(ctx.label_font)
    title.setStyleSheet(f"color: {t['muted_text']};")
    h_lay.addWidget(title)

    total_lbl = QLabel(format_time(0))
    total_lbl.setFont(ctx.time_font)
    total_lbl.setMinimumWidth(ctx.min_time_w)
    h_lay.addWidget(total_lbl)

    h_lay.addStretch(1)

    badge_lbl = QLabel("")
    badge_lbl.setFont(ctx.action_font)
    badge_lbl.setAlignment(Qt.AlignCenter)
    badge_lbl.setMinimumWidth(22)
    badge_lbl.setToolTip("Running tasks")
    h_lay.addWidget(badge_lbl)

    return hc, {"total": total_lbl, "badge": badge_lbl}


def build_task_row(ctx, task, on_toggle, on_reset, on_delete):
    """Build one task row: bullet, name, time, Start/Pause, Reset, Delete.

    Returns (container, widget_dict).
    """
    t = ctx.theme
    fg = t["running_text"] if task.running else t["text"]

    rc = QWidget()
    rc.setObjectName("rowBg")
    rc.setStyleSheet(
        f"#rowBg {{ border-bottom: 1px solid {t['row_separator']}; }}")
    rc_lay = QHBoxLayout(rc)
    rc_lay.setContentsMargins(0, 2, 0, 2)
    rc_lay.setSpacing(6)

    # Col 0: bullet
    bullet = QLabel("•" if task.running else "")
    bullet.setFont(ctx.action_font)
    bullet.setFixedWidth(10)
    bullet.setStyleSheet(f"color: {fg};")
    rc_lay.addWidget(bullet)

    # Col 1: name
    name_lbl = QLabel(task.name)
    name_font = QFont(ctx.label_font)
    name_font.setBold(task.running)
    name_lbl.setFont(name_font)
    name_lbl.setFixedWidth(ctx.min_name_w)
    name_lbl.setStyleSheet(f"color: {fg};")
    rc_lay.addWidget(name_lbl)

    # Col 2: time
    time_lbl = QLabel(format_time(task.elapsed))
    time_font = QFont(ctx.time_font)
    time_font.setBold(task.running)
    time_lbl.setFont(time_font)
    time_lbl.setAlignment(Qt.AlignCenter)
    time_lbl.setFixedWidth(ctx.min_time_w)
    time_lbl.setStyleSheet(f"color: {fg};")
    rc_lay.addWidget(time_lbl)

    # Col 3: Start / Pause toggle
    toggle_btn = QPushButton("⏸ Pause" if task.running else "▶ Start")
    toggle_btn.setFont(ctx.action_font)
    toggle_btn.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)
    toggle_btn.clicked.connect(lambda _=False: on_toggle(task.id, task.running))
    rc_lay.addWidget(toggle_btn)

    # Col 4: Reset
    reset_btn = QPushButton("⟳ Reset")
    reset_btn.setFont(ctx.action_font)
    reset_btn.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)
    reset_btn.clicked.connect(lambda _=False: on_reset(task.id))
    rc_lay.addWidget(reset_btn)

    # Col 5: Delete
    delete_btn = QPushButton("X")
    delete_btn.setFont(ctx.action_font)
    delete_btn.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)
    delete_btn.setToolTip("Delete task")
    delete_btn.clicked.connect(lambda _=False: on_delete(task.id, task.name))
    rc_lay.addWidget(delete_btn)

    widget_dict = {
        "name": name_lbl, "time": time_lbl,
        "toggle": toggle_btn, "reset": reset_btn,
        "delete": delete_btn, "bullet": bullet,
        "container": rc,
    }
    return rc, widget_dict


def build_footer(ctx, on_add):
    """Build the footer bar with the name input and Add button.

    Returns (container, footer_widgets) with keys: add_input, add_btn.
    """
    footer_font = QFont(ctx.font_family, 10)

    add_input = QLineEdit()
    add_input.setFont(footer_font)
    add_input.setPlaceholderText("Task name...")
    add_input.returnPressed.connect(on_add)

    add_btn = QPushButton("Add Task")
    add_btn.setFont(footer_font)
    add_btn.clicked.connect(on_add)
    add_btn.setToolTip("Add a new task timer")

    footer = QWidget()
    footer.setObjectName("footer")
    footer.setStyleSheet("#footer { background: transparent; }")
    f_lay = QHBoxLayout(footer)
    f_lay.setContentsMargins(0, 0, 0, 0)
    f_lay.addWidget(add_input, 1)
    f_lay.addWidget(add_btn)

    return footer, {"add_input": add_input, "add_btn": add_btn}
