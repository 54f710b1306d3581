"""Logging configuration for the CLI and the web app."""

import logging

from rich.logging import RichHandler

from site_annotator.config import LOG_LEVEL

PACKAGE_LOGGER = "site_annotator"


def setup_logging(level: str | int | None = None) -> logging.Logger:
    """Attach a rich console handler to the package logger.

    Safe to call more than once; existing handlers are replaced.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level or LOG_LEVEL)
    logger.handlers.clear()

    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s | %(message)s", datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
