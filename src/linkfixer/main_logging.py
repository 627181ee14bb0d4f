"""Logging configuration for the linkfixer CLI."""
from __future__ import annotations

import logging

LOGGER_NAME = "linkfixer"

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(verbose: bool, log_file: str | None = None) -> logging.Logger:
    """Configure the linkfixer logger and return it.

    Args:
        verbose: If True, log DEBUG to stderr; otherwise INFO.
        log_file: Append-only file receiving ERROR records, kept across
            restarts for postmortems. None disables the file.

    Returns:
        The application logger, to be passed to every component.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as e:
            logger.warning("Cannot open log file %s, logging to stderr only: %s", log_file, e)
        else:
            file_handler.setLevel(logging.ERROR)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            logger.addHandler(file_handler)
    return logger
