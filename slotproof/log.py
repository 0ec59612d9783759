"""
Logging setup for slotproof.

One stream handler per logger, level taken from the SLOTPROOF_LOG_LEVEL
environment variable (default WARNING, the CLI reports progress itself).
"""
import logging
import os
from typing import Optional

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name if name else "slotproof")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
        logger.addHandler(handler)

        level_str = os.getenv("SLOTPROOF_LOG_LEVEL", "WARNING").upper()
        level = getattr(logging, level_str, logging.WARNING)
        logger.setLevel(level)

    return logger
