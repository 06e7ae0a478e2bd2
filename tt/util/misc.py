import time
from datetime import datetime


# Simply returns the current local time as an ISO8601 string with timezone offset.
def now_iso():
    return datetime.now().astimezone().isoformat()

# Current wall-clock time as integer epoch milliseconds. This is the unit every `now` argument in tt.core uses.
def now_ms():
    return int(time.time() * 1000)

# Format elapsed seconds as HH:MM:SS. Negative values clamp to zero, and hours just keep growing past 99.
def format_time(seconds):
    seconds = max(0, int(seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"
