"""Logging helpers for applications that host blueprints."""

from __future__ import annotations

import logging
import os

from blueprintkit.config import LoggingSettings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logger(
    settings: LoggingSettings | None = None,
    *,
    name: str = "blueprintkit",
) -> logging.Logger:
    """
    Configure the `blueprintkit` logger hierarchy.

    Logs go to stderr and, when `settings.log_file` is set, to a UTF-8 file that
    always receives DEBUG records. Calling this again replaces earlier handlers.
    """

    settings = settings or LoggingSettings()

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if settings.log_file else settings.level_number)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(settings.level_number)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if settings.log_file:
        log_dir = os.path.dirname(settings.log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(settings.log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.debug("Blueprint log file: %s", settings.log_file)

    logger.propagate = settings.propagate
    return logger
