"""Logging configuration for the shiftcopy package."""

import logging
import sys
from typing import Iterable, Optional, Union

LOGGER_NAME = "shiftcopy"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
DEFAULT_LOG_LEVEL = logging.WARNING


def configure_logging(
    level: Union[int, str] = DEFAULT_LOG_LEVEL,
    extra_handlers: Optional[Iterable[logging.Handler]] = None,
) -> logging.Logger:
    """Configure the package logger and return it.

    Installs a single stderr handler on the ``shiftcopy`` logger. Calling
    this again replaces the previous handlers, so it is safe to call once
    per CLI invocation.
    """
    if isinstance(level, str):
        level = level.upper()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handlers: list[logging.Handler] = [stream_handler]
    if extra_handlers:
        handlers.extend(extra_handlers)

    for handler in handlers:
        logger.addHandler(handler)

    logger.debug("Logging configured at level %s", logging.getLevelName(logger.level))
    return logger
