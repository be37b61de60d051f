"""Logging setup for patchright-session.

Library modules only ever call ``logging.getLogger(__name__)``; applications
that want the default formatting call :func:`setup_logging` once.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"
_HANDLER_MARKER = "_patchright_session_handler"

CONSOLE_LOGGER_NAME = "patchright_session.console"


def setup_logging(level: str | int = "INFO", log_path: str | Path | None = None) -> None:
    """Configure the ``patchright_session`` logger hierarchy.

    Always logs to *stderr*; additionally appends to *log_path* if given.
    Calling this again replaces the handlers installed by a previous call.
    """
    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)
    package_logger = logging.getLogger("patchright_session")
    package_logger.setLevel(level)

    for handler in list(package_logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            package_logger.removeHandler(handler)
            handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_path is not None:
        handlers.append(logging.FileHandler(log_path, mode="a", encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARKER, True)
        package_logger.addHandler(handler)
