"""
Logging setup for the catalog sync scripts.

Every module logs under the `catalog_sync` package logger. Records go to
stderr; stdout carries the sync summaries the scripts print.
"""

import logging
import sys

PACKAGE_LOGGER = "catalog_sync"
LOG_FORMAT = "%(levelname)-8s %(name)s: %(message)s"

# HTTP connection pool chatter from the catalog and image requests
NOISY_LOGGERS = ("urllib3",)


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """
    Route package log records to stderr.

    `verbose` selects DEBUG and also lets the HTTP libraries log their
    connection details; `quiet` keeps only warnings and errors.

    Returns:
        The configured package logger
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)

    return logger
