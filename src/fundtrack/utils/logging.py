"""Logging setup shared by the CLI and tests."""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers that are too chatty at INFO for interactive use
NOISY_LOGGERS = [
    "sqlalchemy.engine",
    "sqlalchemy.pool",
]


def setup_logging(level: int = logging.WARNING) -> logging.Logger:
    """Configure the fundtrack logger with a single console handler.

    Calling this more than once replaces the previous handler, so repeated
    CLI invocations inside one process (as in tests) do not stack output.

    Args:
        level: Log level for the fundtrack logger

    Returns:
        The configured package logger
    """
    logger = logging.getLogger("fundtrack")
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger
