"""
Logging configuration for the application.

``setup_logging`` attaches a console handler and an optional file
handler to the ``academic_records_api`` logger, which every module
reaches through ``logging.getLogger(__name__)``.  Records still
propagate to the root logger, so server and test harness handlers see
them too.  Log format includes the timestamp, logger name, log level
and message.
"""

import logging
from pathlib import Path
from typing import Optional

APP_LOGGER = "academic_records_api"
CONSOLE_HANDLER = "academic_records_console"
FILE_HANDLER = "academic_records_file"


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> logging.Logger:
    """Configure and return the application logger.

    Handlers are added once per process: calling this again (repeated
    ``create_app`` calls in tests) only updates the level, and adds the
    file handler if it was not configured before.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``, ``"INFO"``).  Case
        insensitive; unknown names fall back to ``INFO``.
    logfile : Optional[str]
        Path to a file to log messages to.  If omitted, no file
        handler is added.
    """
    logger = logging.getLogger(APP_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    installed = {handler.get_name() for handler in logger.handlers}

    if CONSOLE_HANDLER not in installed:
        console_handler = logging.StreamHandler()
        console_handler.set_name(CONSOLE_HANDLER)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if logfile and FILE_HANDLER not in installed:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.set_name(FILE_HANDLER)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
