"""Loggers under the ``driveupload`` namespace."""

import logging

PACKAGE_LOGGER = 'driveupload'


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger inside the package namespace.

    Names are prefixed with ``driveupload.`` when missing, so
    ``get_logger('upload.chunk')`` and ``get_logger('driveupload.upload.chunk')``
    are the same logger. The level is left unset and records flow to the
    package logger, then to the root logger.
    """
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + '.'):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def set_package_level(level) -> None:
    """Set ``level`` on the package logger and every logger created under it."""
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if name.startswith(PACKAGE_LOGGER + '.') and isinstance(logger, logging.Logger):
            logger.setLevel(level)
