from .misc import format_time, now_iso, now_ms

__all__ = ["format_time", "now_iso", "now_ms"]
