"""
Logging helpers.

The sandbox API key is a credential: never pass it to a logger,
not even truncated. Log vendor resource ids and paths instead.
"""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once for the whole process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a logger for the specified module.

    Usage:
        >>> from increase_demo.utils.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Demo session created")
    """
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger
