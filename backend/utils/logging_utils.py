"""
Console logging setup and timing helpers.

Log records may carry structured extras (duration, node counts, batch
step) which the formatter appends after the message.
"""

import logging
import time
import sys
from datetime import datetime
from typing import Optional, Any
from contextlib import contextmanager


class ColoredFormatter(logging.Formatter):
    """Formatter with per-level colors and a trailing block of extras."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        color = self.COLORS.get(record.levelname, '')
        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S.%f')[:-3]
        level_str = f"{color}{record.levelname:8}{self.RESET}"
        location = f"{record.module}.{record.funcName}" if record.funcName != '<module>' else record.module

        extras = []
        if hasattr(record, 'duration_ms'):
            extras.append(f"duration={record.duration_ms:.1f}ms")
        if hasattr(record, 'node_count'):
            extras.append(f"nodes={record.node_count}")
        if hasattr(record, 'failed_count'):
            extras.append(f"failed={record.failed_count}")
        if hasattr(record, 'step') and hasattr(record, 'total_steps'):
            extras.append(f"step={record.step}/{record.total_steps}")

        extra_str = f" [{', '.join(extras)}]" if extras else ""
        message = record.getMessage()
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            message = f"{message}\n{record.exc_text}"

        return f"{timestamp} | {level_str} | {location:30} | {message}{extra_str}"


def setup_logging(level: str = "INFO") -> None:
    """
    Route all loggers to a colored stdout handler.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColoredFormatter())
    handler.setLevel(getattr(logging, level.upper()))

    root.setLevel(getattr(logging, level.upper()))
    root.addHandler(handler)

    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('aiosqlite').setLevel(logging.WARNING)


class LogTimer:
    """
    Context manager that logs the start and end of an operation with its duration.

    Usage:
        with LogTimer(logger, "Reconciling batch") as timer:
            ...
            timer.set_node_count(len(batch))
    """

    def __init__(
        self,
        logger: logging.Logger,
        operation: str,
        level: int = logging.INFO,
    ):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.start_time = None
        self.node_count: Optional[int] = None
        self.extra_info = {}

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.log(self.level, f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration_ms = (time.perf_counter() - self.start_time) * 1000

        extra = {'duration_ms': duration_ms}
        if self.node_count is not None:
            extra['node_count'] = self.node_count
        extra.update(self.extra_info)

        if exc_type is not None:
            self.logger.error(f"Failed: {self.operation} - {exc_val}", extra=extra)
        else:
            self.logger.log(self.level, f"Completed: {self.operation}", extra=extra)

        return False

    def set_node_count(self, count: int) -> None:
        self.node_count = count

    def add_info(self, key: str, value: Any) -> None:
        """Attach an extra field (e.g. failed_count) to the completion record."""
        self.extra_info[key] = value


@contextmanager
def log_step(logger: logging.Logger, step: int, total: int, description: str):
    """Log one numbered step of a multi-step job, and its duration at debug level."""
    logger.info(
        f"[{step}/{total}] {description}",
        extra={'step': step, 'total_steps': total}
    )
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = (time.perf_counter() - start) * 1000
        logger.debug(
            f"[{step}/{total}] {description} - done",
            extra={'duration_ms': duration, 'step': step, 'total_steps': total}
        )
