"""
Logging configuration for the API.

``setup_logging`` attaches a console handler, and optionally a file
handler, to the root logger the first time it is called.  Later calls
(for example when tests build several apps) only adjust the level.
"""

import logging
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_NAME = "local_services_api"


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure the root logger.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``, ``"INFO"``).  Case
        insensitive; unknown names fall back to ``INFO``.
    logfile : Optional[str]
        Path of a file to also write records to.  Resolved relative to
        the current working directory.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        return

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.set_name(_HANDLER_NAME)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.set_name(f"{_HANDLER_NAME}.file")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
