"""Logging setup for the tweetvault command line."""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

# HTTP libraries log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(debug: bool = False) -> logging.Logger:
    """Attach a stderr handler to the package logger.

    Safe to call more than once; later calls only adjust levels.
    """
    package_logger = logging.getLogger("tweetvault")
    package_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        package_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)
    return package_logger
