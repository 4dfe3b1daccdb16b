"""
Logging helpers.

Every module logs through the "autoclock" logger. log_debug keeps the
component-tagged call shape used throughout the package:

    log_debug("trigger", "context suppressed")
"""

import logging

LOGGER_NAME = "autoclock"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(LOGGER_NAME)


def log_debug(component: str, message: str) -> None:
    """Debug line tagged with the emitting component."""
    logger.debug("%s: %s", component, message)


def configure_logging(debug: bool = False) -> logging.Logger:
    """Standardized logging for the command line entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )
    if debug:
        logger.setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled")
    return logger
