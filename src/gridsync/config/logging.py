"""Logging setup for the command line entry point."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# the HTTP stack logs one line per request at INFO
_HTTP_LOGGERS = ("httpx", "httpcore", "hishel")


def configure_logging(*, verbosity: int = 0, force: bool = False) -> None:
    """Send log records to stderr.

    ``verbosity=0`` logs gridsync at INFO, ``1`` at DEBUG, and ``2`` also lets the
    HTTP libraries through. Pass ``force=True`` to replace handlers installed earlier.
    """

    logging.basicConfig(
        level=logging.DEBUG if verbosity > 0 else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=force,
    )
    http_level = logging.DEBUG if verbosity > 1 else logging.WARNING
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)
