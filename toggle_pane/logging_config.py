"""Logging for toggle-pane processes.

Logs go to {base}/logs/{process}.log, rotated at midnight, plus a size-capped
{process}-current.log. The toggle process writes to files only: tmux shows
anything a run-shell command prints.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler

LOG_FORMAT = "[%(asctime)s] [{process}] [%(levelname)s] %(name)s: %(message)s"


class FlushingStreamHandler(logging.StreamHandler):
    """StreamHandler that flushes after every emit, so `watch` output interleaves cleanly."""

    def emit(self, record):
        super().emit(record)
        self.flush()


def setup_process_logging(
    process_name: str,
    level: int = logging.INFO,
    console: bool = True,
    file: bool = True,
) -> logging.Logger:
    """Configure the root logger for one CLI subcommand.

    Replaces any handlers already installed, so calling it again with another
    base directory is safe. Needs config.init().
    An unwritable log directory leaves file logging off; it never fails a toggle.
    """
    from .config import log_dir

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    fmt = LOG_FORMAT.format(process=process_name)

    if console:
        console_handler = FlushingStreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(fmt=fmt, datefmt="%H:%M:%S"))
        root.addHandler(console_handler)

    if not file:
        return root

    directory = log_dir()
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print(f"toggle-pane: cannot create log dir {directory}: {e}", file=sys.stderr)
        return root

    file_fmt = logging.Formatter(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")

    daily_handler = TimedRotatingFileHandler(
        directory / f"{process_name}.log",
        when="midnight",
        backupCount=7,
        encoding="utf-8",
    )
    daily_handler.suffix = "%Y-%m-%d"

    # Key repeat can fire hundreds of toggles in a few seconds
    size_handler = RotatingFileHandler(
        directory / f"{process_name}-current.log",
        maxBytes=1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )

    for handler in (daily_handler, size_handler):
        handler.setLevel(level)
        handler.setFormatter(file_fmt)
        root.addHandler(handler)

    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
