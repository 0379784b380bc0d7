"""Diagnostic log file setup.

The log file is truncated on every start. Opening it is the only logging
failure that matters; once the handler is installed, write errors are
dropped so they can never take down the UI.
"""

import logging
from pathlib import Path

from .exceptions import StartupError

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


def setup_file_logging(path: str | Path, level: str = "debug") -> logging.Handler:
    """Route the package's log records to a freshly truncated file.

    Args:
        path: Log file location
        level: Threshold name (debug, info, warning, error)

    Returns:
        The installed handler (close it on shutdown)

    Raises:
        StartupError: If the file cannot be opened for writing
    """
    try:
        handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    except OSError as e:
        raise StartupError(f"cannot open log file {path}: {e}", code="LOG") from e

    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # Write failures after this point are reported nowhere
    logging.raiseExceptions = False

    root = logging.getLogger("promptline")
    root.setLevel(level.upper())
    root.addHandler(handler)
    root.propagate = False
    return handler


def teardown_file_logging(handler: logging.Handler) -> None:
    """Detach and close a handler installed by setup_file_logging."""
    logging.getLogger("promptline").removeHandler(handler)
    handler.close()
