"""Logging setup for the command line entry point.

Library modules only create loggers; handlers are attached here.
"""

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> logging.Logger:
    """Configure the root logger.

    The level falls back to the LOG_LEVEL environment variable, then WARNING.
    """
    level = (level or os.getenv("LOG_LEVEL", "WARNING")).upper()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level, logging.WARNING))

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    return root_logger
