# isofem/logger_setup.py
"""Package logger configuration."""

import logging
import os

DEFAULT_FORMAT = "[%(asctime)s][%(levelname)s] %(name)s: %(message)s"


def setup_logger(name: str, level: int = None) -> logging.Logger:
    """
    Create (or fetch) the named logger with a single stream handler.

    The level defaults to the ISOFEM_LOG_LEVEL environment variable, or
    WARNING when it is not set. Calling this twice for the same name does
    not stack handlers.
    """
    logger = logging.getLogger(name)

    if level is None:
        level_name = os.environ.get("ISOFEM_LOG_LEVEL", "WARNING").upper()
        level = getattr(logging, level_name, logging.WARNING)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
    logger.propagate = False

    return logger
