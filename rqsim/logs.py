from __future__ import annotations
from logging.handlers import RotatingFileHandler
import logging
import time

TIME_FORMAT = "%H:%M:%S"

# Handlers added by setup_logging, replaced on each call
_handlers: list[logging.Handler] = []

def format_timestamp(ts: float | None = None) -> str:
    return time.strftime(TIME_FORMAT, time.localtime(time.time() if ts is None else ts))

def setup_logging(level: int = logging.INFO, log_file: str | None = None) -> None:
    # Time only formatter
    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(threadName)s | %(message)s",
        datefmt=TIME_FORMAT,
    )

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(fmt)

    root = logging.getLogger()
    for handler in _handlers:
        root.removeHandler(handler)
        handler.close()
    _handlers.clear()

    root.setLevel(level)
    root.addHandler(console)
    _handlers.append(console)

    if log_file:
        file = RotatingFileHandler(
            log_file, maxBytes=5 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        file.setLevel(level)
        file.setFormatter(fmt)
        root.addHandler(file)
        _handlers.append(file)
