from __future__ import annotations

import logging

from eventbox.core.config import get_settings


_LEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}

ROOT_LOGGER = "eventbox"

# Library loggers stay quiet unless the host application configures handlers
logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; the configured level goes on the ``eventbox`` logger.

    Module loggers keep ``NOTSET`` and inherit, so a level the host sets on
    ``eventbox`` afterwards applies to every module.
    """
    level = _LEVELS.get(get_settings().log_level.strip().lower())
    if level is not None:
        logging.getLogger(ROOT_LOGGER).setLevel(level)
    return logging.getLogger(name)
