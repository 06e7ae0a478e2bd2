import logging
from logging.handlers import RotatingFileHandler
from tt.common.setup import PATHS

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(filename)s:%(lineno)d] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# Adds the handler built by make_handler() unless one tagged handler_name is already on the logger.
def _attach_once(logger, handler_name, make_handler, level, formatter):
    if any(h.get_name() == handler_name for h in logger.handlers):
        return
    handler = make_handler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.set_name(handler_name)
    logger.addHandler(handler)


def get_logger(name="tasktimer", level=logging.INFO, log_dir=None, max_bytes=2 * 1024 * 1024,
               backup_count=3, persistent=True, console=False) -> logging.Logger:
    """Configured logger writing to <logs>/<name>.log (rotating) and <logs>/latest.log (this run only)."""
    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(level)

    log_dir = log_dir or PATHS.logs
    log_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)

    handlers = {
        "latest": lambda: logging.FileHandler(log_dir / "latest.log", mode="w", encoding="utf-8", delay=True),
    }
    if persistent:
        handlers["persistent"] = lambda: RotatingFileHandler(
            log_dir / f"{name}.log", maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8", delay=True)
    if console:
        handlers["console"] = logging.StreamHandler

    for kind, make_handler in handlers.items():
        _attach_once(logger, f"{name}:{kind}", make_handler, level, formatter)
    return logger


log = get_logger(level=logging.DEBUG)
