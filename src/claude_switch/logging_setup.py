"""
Logging bootstrap for the CLI.
Diagnostics go to stderr so stdout stays pure JSON.
"""

from __future__ import annotations

import logging
import os
import sys

LOGGER_NAME = "claude_switch"
LEVEL_ENV = "CLAUDE_SWITCH_LOG_LEVEL"
DEFAULT_LEVEL = "WARNING"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(verbose: bool = False) -> logging.Logger:
    level_name = "DEBUG" if verbose else os.environ.get(LEVEL_ENV, DEFAULT_LEVEL).upper()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level_name, logging.WARNING))
    logger.propagate = False

    # Remove handlers from earlier calls to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger
