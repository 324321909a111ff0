import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from utils import config

_console: Optional[Console] = None


def _log_console() -> Console:
    """
    The TUI owns the terminal, so log records go to a rich Console bound to
    LOG_FILE. An empty LOG_FILE falls back to stderr.
    """
    global _console
    if _console is None:
        if config.LOG_FILE:
            log_dir = os.path.dirname(config.LOG_FILE)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            stream = open(config.LOG_FILE, "a", encoding="utf-8")
            _console = Console(file=stream, width=140, force_terminal=False)
        else:
            _console = Console(stderr=True)
    return _console


class PaddedNameFormatter(logging.Formatter):
    """Pads logger names to the longest one seen so messages line up."""

    width = 12

    def format(self, record):
        PaddedNameFormatter.width = max(PaddedNameFormatter.width, len(record.name))
        record.padded_name = record.name.ljust(PaddedNameFormatter.width)
        return super().format(record)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Return a logger with a RichHandler attached. DEBUG env var enables debug level.
    """
    logger = logging.getLogger(name or "fh-admin")
    log_level = logging.DEBUG if os.getenv("DEBUG") else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = RichHandler(
            console=_log_console(),
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            markup=False,
            log_time_format="[%X]",
        )
        handler.setFormatter(PaddedNameFormatter("[%(padded_name)s]  %(message)s"))
        handler.setLevel(log_level)
        logger.addHandler(handler)

        logger.propagate = False
        logger.debug(f"Logger for '{logger.name}' initialized.")

    return logger
