from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(storage_root)s | %(trigger)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

LOG_STORAGE_ROOT: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("log_storage_root", default=None)
LOG_TRIGGER: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("log_trigger", default=None)


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.storage_root = LOG_STORAGE_ROOT.get() or "-"
        record.trigger = LOG_TRIGGER.get() or "-"
        return True


@contextmanager
def log_context(
    storage_root: Optional[Union[str, Path]] = None,
    trigger: Optional[str] = None,
) -> Iterator[None]:
    tokens = []
    if storage_root is not None:
        tokens.append((LOG_STORAGE_ROOT, LOG_STORAGE_ROOT.set(str(storage_root))))
    if trigger is not None:
        tokens.append((LOG_TRIGGER, LOG_TRIGGER.set(trigger)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def parse_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def configure_logging(
    log_file: str = "logs/yearsago.log",
    level: Union[int, str] = logging.INFO,
    enable_console: bool = False,
    force: bool = False,
) -> logging.Logger:
    root = logging.getLogger()
    if getattr(root, "_yearsago_logging_configured", False) and not force:
        return root

    if force:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
    context_filter = ContextFilter()

    handlers = []
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    if enable_console:
        handlers.append(logging.StreamHandler())

    # Filters go on handlers so records from child loggers get the context fields too.
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root.addHandler(handler)

    root.setLevel(parse_level(level))
    logging.captureWarnings(True)
    root._yearsago_logging_configured = True
    return root
