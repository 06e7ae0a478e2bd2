from .colors import THEMES


def build_stylesheet(theme_name):
    """Application-wide Qt stylesheet for the given theme (unknown names fall back to Light)."""
    t = THEMES.get(theme_name, THEMES["Light"])
    return (
        f"QMainWindow, QWidget {{ background-color: {t['bg']}; color: {t['text']}; }}"
        f"QLabel {{ background: transparent; }}"
        f"QPushButton {{ background-color: {t['button_bg']}; color: {t['button_text']};"
        f"  border: none; border-radius: 4px; padding: 4px 10px; }}"
        f"QPushButton:hover {{ background-color: {t['button_hover']}; }}"
        f"QLineEdit {{ background-color: {t['input_bg']}; color: {t['text']};"
        f"  border: 1px solid {t['separator']}; border-radius: 4px; padding: 3px; }}"
    )
