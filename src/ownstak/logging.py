"""Logging configuration for the CLI."""

from __future__ import annotations

import logging
import sys

from ownstak.settings import get_settings

_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_HANDLER_NAME = "ownstak-stderr"


def setup_logging(*, debug: bool = False) -> None:
    """Configure the ``ownstak`` logger tree.

    Level is DEBUG when *debug* is set, otherwise the ``LOG_LEVEL``
    setting.  Output goes to stderr so stdout stays clean for command
    results.  Third-party loggers (httpx, httpcore) stay at WARNING.
    """
    level = logging.DEBUG if debug else _LEVELS[get_settings().log_level]

    logger = logging.getLogger("ownstak")
    logger.setLevel(level)
    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s", "%H:%M:%S")
        )
        logger.addHandler(handler)
    logger.propagate = False

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
